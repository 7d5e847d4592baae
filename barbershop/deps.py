# barbershop/deps.py

from fastapi import Depends, HTTPException
from sqlmodel import Session, select

from .auth import get_current_user
from .models import Admin, Client

ADMIN_ROLES = ("owner", "receptionist")
STAFF_ROLES = ("owner", "receptionist", "barber")


def require_role(user: dict, *roles: str, detail: str = "Forbidden"):
    if user["role"] not in roles:
        raise HTTPException(status_code=403, detail=detail)


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    require_role(current_user, *ADMIN_ROLES, detail="Admin access required")
    return current_user


def require_barber(current_user: dict = Depends(get_current_user)) -> dict:
    require_role(current_user, "barber", detail="Barber access required")
    return current_user


def require_staff(current_user: dict = Depends(get_current_user)) -> dict:
    require_role(current_user, *STAFF_ROLES, detail="Staff access required")
    return current_user


def require_client(current_user: dict = Depends(get_current_user)) -> dict:
    require_role(current_user, "client", detail="Client access required")
    return current_user


def require_self_or_staff(user: dict, client_id: int):
    """Clients may only touch their own record; staff may touch any."""
    if user["user_type"] == "client" and user["id"] != client_id:
        raise HTTPException(status_code=403, detail="Forbidden")


def get_client_or_404(session: Session, client_ref: str) -> Client:
    """Resolve a path segment that is either a numeric id or a client code."""
    client = None
    if client_ref.isdigit():
        client = session.get(Client, int(client_ref))
    if client is None:
        client = session.exec(select(Client).where(Client.client_code == client_ref.upper())).first()
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


def get_staff_or_404(session: Session, admin_id: int) -> Admin:
    admin = session.get(Admin, admin_id)
    if admin is None:
        raise HTTPException(status_code=404, detail="Staff member not found")
    return admin

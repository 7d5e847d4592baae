# barbershop/routers/users_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from barbershop.config import LOGIN_RATE_LIMIT, RATE_LIMIT_WINDOW_SECONDS
from barbershop.core import utcnow, generate_client_code
from barbershop.db import get_session
from barbershop.models import Admin, Client
from barbershop.rate_limiter import create_rate_limiter
from barbershop.schemas import (
    AdminProfileUpdate,
    ClientPublic,
    ClientRegister,
    PasswordChange,
    StaffPublic,
    public,
)
from barbershop.auth import get_current_user, hash_password, verify_password
from barbershop.deps import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["users"],
)

register_limit = create_rate_limiter(LOGIN_RATE_LIMIT, RATE_LIMIT_WINDOW_SECONDS, key_prefix="register")


def unique_client_code(session: Session) -> str:
    while True:
        code = generate_client_code()
        taken = session.exec(select(Client.id).where(Client.client_code == code)).first()
        if taken is None:
            return code


@router.post("/register", status_code=201, response_model=ClientPublic)
def register(
    payload: ClientRegister,
    session: Session = Depends(get_session),
    _: None = Depends(register_limit),
):
    # 1) Phone numbers are the client login, so they must be unique
    phone = payload.phone_number.strip()
    existing = session.exec(select(Client).where(Client.phone_number == phone)).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Phone number already registered")

    # 2) Create the client
    client = Client(
        client_code=unique_client_code(session),
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
        phone_number=phone,
        password_hash=hash_password(payload.password),
    )
    session.add(client)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Phone number already registered")

    session.refresh(client)
    logger.info(f"Client registered: {client.client_code}")
    return client


@router.get("/me")
def me(
    current_user: dict = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if current_user["user_type"] == "admin":
        return {"user_type": "admin", "profile": public(session.get(Admin, current_user["id"]), StaffPublic)}
    return {"user_type": "client", "profile": public(session.get(Client, current_user["id"]), ClientPublic)}


@router.put("/me/password")
def change_password(
    payload: PasswordChange,
    current_user: dict = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    model = Admin if current_user["user_type"] == "admin" else Client
    account = session.get(model, current_user["id"])

    if not verify_password(payload.current_password, account.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    account.password_hash = hash_password(payload.new_password)
    if model is Admin:
        account.updated_at = utcnow()
    session.add(account)
    session.commit()
    return {"message": "Password updated successfully"}


@router.put("/admin/profile", response_model=StaffPublic)
def update_admin_profile(
    payload: AdminProfileUpdate,
    current_user: dict = Depends(require_admin),
    session: Session = Depends(get_session),
):
    admin = session.get(Admin, current_user["id"])

    if payload.email is not None:
        email = payload.email.strip().lower()
        taken = session.exec(
            select(Admin).where(Admin.email == email).where(Admin.id != admin.id)
        ).first()
        if taken is not None:
            raise HTTPException(status_code=409, detail="Email already in use")
        admin.email = email
    if payload.name is not None:
        admin.name = payload.name.strip()
    if payload.phone_number is not None:
        admin.phone_number = payload.phone_number.strip() or None

    admin.updated_at = utcnow()
    session.add(admin)
    session.commit()
    session.refresh(admin)
    return admin

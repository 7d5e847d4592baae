# barbershop/routers/clients_routes.py

import base64
import io
import logging

import qrcode
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from barbershop.core import utcnow, generate_password, is_phone_query, strip_phone, pagination
from barbershop.db import get_session
from barbershop.models import Client, Reservation, Visit
from barbershop.schemas import (
    ClientCreate,
    ClientCreated,
    ClientPublic,
    ClientUpdate,
    PasswordReset,
    public,
)
from barbershop.auth import get_current_user, hash_password
from barbershop.deps import (
    require_admin,
    require_staff,
    require_self_or_staff,
    get_client_or_404,
)
from barbershop.routers.users_routes import unique_client_code

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["clients"],
)


def qr_data_url(data: str) -> str:
    qr = qrcode.QRCode(version=1, box_size=10, border=5)
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return f"data:image/png;base64,{base64.b64encode(buffer.getvalue()).decode()}"


def _stripped_phone_column():
    column = Client.phone_number
    for char in (" ", "-", "+", "(", ")", "."):
        column = func.replace(column, char, "")
    return column


@router.get("/clients")
def list_clients(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_staff),
):
    total = session.exec(select(func.count(Client.id))).one()
    clients = session.exec(
        select(Client)
        .order_by(Client.last_name, Client.first_name)
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()
    return {
        "clients": [public(c, ClientPublic) for c in clients],
        "pagination": pagination(total, page, limit),
    }


@router.post("/clients", status_code=201, response_model=ClientCreated)
def create_client(
    payload: ClientCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_staff),
):
    # 1) Phone must be unique
    phone = payload.phone_number.strip()
    existing = session.exec(select(Client).where(Client.phone_number == phone)).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Phone number already registered")

    # 2) Walk-in clients get a generated password they can change later
    generated = None
    password = payload.password
    if password is None:
        generated = password = generate_password()

    client = Client(
        client_code=unique_client_code(session),
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
        phone_number=phone,
        password_hash=hash_password(password),
        preferred_services=list(payload.preferred_services),
    )
    session.add(client)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Phone number already registered")

    session.refresh(client)
    logger.info(f"Client {client.client_code} created by {current_user['name']}")
    return {"client": client, "generated_password": generated}


@router.get("/clients/search")
def search_clients(
    q: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_staff),
):
    query = q.strip()
    if is_phone_query(query):
        cleaned = strip_phone(query)
        condition = or_(
            _stripped_phone_column().contains(cleaned),
            Client.phone_number.contains(query),
        )
    else:
        pattern = f"%{query}%"
        fields = [Client.first_name.ilike(pattern), Client.last_name.ilike(pattern), Client.client_code.ilike(pattern)]
        if len(query) < 3:
            fields.append(Client.phone_number.ilike(pattern))
        condition = or_(*fields)

    total = session.exec(select(func.count(Client.id)).where(condition)).one()
    clients = session.exec(
        select(Client)
        .where(condition)
        .order_by(Client.last_name, Client.first_name)
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()
    return {
        "clients": [public(c, ClientPublic) for c in clients],
        "pagination": pagination(total, page, limit),
    }


@router.get("/clients/{client_ref}", response_model=ClientPublic)
def get_client(
    client_ref: str,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    client = get_client_or_404(session, client_ref)
    require_self_or_staff(current_user, client.id)
    return client


@router.put("/clients/{client_ref}", response_model=ClientPublic)
def update_client(
    client_ref: str,
    payload: ClientUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_staff),
):
    client = get_client_or_404(session, client_ref)

    if payload.phone_number is not None:
        phone = payload.phone_number.strip()
        taken = session.exec(
            select(Client).where(Client.phone_number == phone).where(Client.id != client.id)
        ).first()
        if taken is not None:
            raise HTTPException(status_code=409, detail="Phone number already registered")
        client.phone_number = phone
    if payload.first_name is not None:
        client.first_name = payload.first_name.strip()
    if payload.last_name is not None:
        client.last_name = payload.last_name.strip()
    if payload.preferred_services is not None:
        client.preferred_services = list(payload.preferred_services)
    if payload.account_active is not None:
        client.account_active = payload.account_active

    session.add(client)
    session.commit()
    session.refresh(client)
    return client


@router.delete("/clients/{client_ref}", status_code=204)
def delete_client(
    client_ref: str,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    client = get_client_or_404(session, client_ref)
    client_code = client.client_code

    # Visits go with the client; reservations are kept as guest history
    for visit in session.exec(select(Visit).where(Visit.client_id == client.id)).all():
        session.delete(visit)
    reservations = session.exec(select(Reservation).where(Reservation.client_id == client.id)).all()
    for reservation in reservations:
        reservation.client_id = None
        if not reservation.guest_name:
            reservation.guest_name = client.full_name
            reservation.guest_phone = client.phone_number
        session.add(reservation)

    session.delete(client)
    session.commit()
    logger.info(f"Client {client_code} deleted by {current_user['name']}")
    return None


@router.put("/admin/clients/{client_ref}/password")
def reset_client_password(
    client_ref: str,
    payload: PasswordReset,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    client = get_client_or_404(session, client_ref)
    client.password_hash = hash_password(payload.new_password)
    session.add(client)
    session.commit()
    logger.info(f"Password reset for client {client.client_code} by {current_user['name']}")
    return {"message": "Password updated successfully"}


@router.get("/clients/{client_ref}/qrcode")
def client_qrcode(
    client_ref: str,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    client = get_client_or_404(session, client_ref)
    require_self_or_staff(current_user, client.id)

    qr_code = qr_data_url(client.client_code)
    if not client.qr_code_url:
        client.qr_code_url = qr_code
        session.add(client)
        session.commit()

    return {"client_code": client.client_code, "qr_code": qr_code, "generated_at": utcnow()}

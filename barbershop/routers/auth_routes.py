# barbershop/routers/auth_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session, select

from barbershop.config import LOGIN_RATE_LIMIT, RATE_LIMIT_WINDOW_SECONDS
from barbershop.core import utcnow
from barbershop.db import get_session
from barbershop.models import Admin, Client
from barbershop.rate_limiter import create_rate_limiter
from barbershop.schemas import Token
from barbershop.auth import verify_password, token_for_admin, token_for_client

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)

login_limit = create_rate_limiter(LOGIN_RATE_LIMIT, RATE_LIMIT_WINDOW_SECONDS, key_prefix="login")


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: Session = Depends(get_session),
    _: None = Depends(login_limit),
):
    identifier = form_data.username.strip()
    password = form_data.password

    # Staff sign in with their email, clients with their phone number
    if "@" in identifier:
        admin = session.exec(
            select(Admin).where(Admin.email == identifier.lower())
        ).first()
        if admin is None or not verify_password(password, admin.password_hash):
            raise HTTPException(status_code=401, detail="Invalid credentials")
        if not admin.active:
            raise HTTPException(status_code=401, detail="Account is deactivated")

        admin.last_login = utcnow()
        session.add(admin)
        session.commit()
        logger.info(f"Staff login: {admin.email} ({admin.role})")
        return {"access_token": token_for_admin(admin), "token_type": "bearer"}

    client = session.exec(
        select(Client).where(Client.phone_number == identifier)
    ).first()
    if client is None or not verify_password(password, client.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not client.account_active:
        raise HTTPException(status_code=401, detail="Account is deactivated")

    client.last_login = utcnow()
    session.add(client)
    session.commit()
    logger.info(f"Client login: {client.client_code}")
    return {"access_token": token_for_client(client), "token_type": "bearer"}

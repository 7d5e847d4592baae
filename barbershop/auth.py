# barbershop/auth.py

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlmodel import Session

from .config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
from .db import get_session
from .models import Admin, Client

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def create_access_token(data: dict, expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode["exp"] = expire
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def token_for_admin(admin: Admin) -> str:
    return create_access_token({"sub": str(admin.id), "user_type": "admin", "role": admin.role})


def token_for_client(client: Client) -> str:
    return create_access_token({"sub": str(client.id), "user_type": "client", "role": "client"})


def admin_to_user(admin: Admin) -> dict:
    return {
        "id": admin.id,
        "user_type": "admin",
        "role": admin.role,
        "name": admin.name,
        "email": admin.email,
    }


def client_to_user(client: Client) -> dict:
    return {
        "id": client.id,
        "user_type": "client",
        "role": "client",
        "name": client.full_name,
        "email": "",
    }


def _credentials_error(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _resolve_user(token: str, session: Session) -> dict:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        subject = payload.get("sub")
        user_type = payload.get("user_type")
        if subject is None or user_type not in ("admin", "client"):
            raise _credentials_error("Invalid token")
        user_id = int(subject)
    except (JWTError, ValueError):
        logger.warning("Rejected invalid or expired token")
        raise _credentials_error("Invalid token")

    if user_type == "admin":
        admin = session.get(Admin, user_id)
        if admin is None or not admin.active:
            raise _credentials_error("User not found")
        return admin_to_user(admin)

    client = session.get(Client, user_id)
    if client is None or not client.account_active:
        raise _credentials_error("User not found")
    return client_to_user(client)


def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
) -> dict:
    return _resolve_user(token, session)


def get_optional_user(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    session: Session = Depends(get_session),
) -> Optional[dict]:
    if not token:
        return None
    return _resolve_user(token, session)

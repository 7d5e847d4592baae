# barbershop/scanner.py

import logging
from datetime import timedelta
from typing import Optional

from fastapi import HTTPException
from sqlmodel import Session, select

from .config import SCANNER_DEFAULT_AUTO_DISABLE_HOURS, SCANNER_MIN_HOURS, SCANNER_MAX_HOURS
from .core import utcnow
from .models import Admin, ScannerSettings

logger = logging.getLogger(__name__)


def get_settings(session: Session) -> ScannerSettings:
    settings = session.exec(select(ScannerSettings)).first()
    if settings is None:
        settings = ScannerSettings(auto_disable_hours=SCANNER_DEFAULT_AUTO_DISABLE_HOURS)
        session.add(settings)
        session.commit()
        session.refresh(settings)
    return settings


def apply_auto_disable(session: Session, settings: ScannerSettings) -> bool:
    """Switch the scanner off once its deadline has passed. Returns True if it did."""
    if settings.disabled_until is None or utcnow() < settings.disabled_until:
        return False

    settings.global_scanner_enabled = False
    settings.disabled_until = None
    settings.updated_at = utcnow()
    session.add(settings)
    session.commit()
    session.refresh(settings)
    logger.info("Scanner auto-disabled after its time window expired")
    return True


def current_settings(session: Session) -> ScannerSettings:
    settings = get_settings(session)
    apply_auto_disable(session, settings)
    return settings


def update_settings(session: Session, enabled: Optional[bool], hours: Optional[int],
                    changed_by: str) -> ScannerSettings:
    if hours is not None and not SCANNER_MIN_HOURS <= hours <= SCANNER_MAX_HOURS:
        raise HTTPException(
            status_code=422,
            detail=f"Auto-disable hours must be between {SCANNER_MIN_HOURS} and {SCANNER_MAX_HOURS}",
        )

    settings = current_settings(session)
    now = utcnow()

    if hours is not None:
        settings.auto_disable_hours = hours

    if enabled is True:
        settings.global_scanner_enabled = True
        settings.disabled_until = now + timedelta(hours=settings.auto_disable_hours)
        settings.last_enabled_by = changed_by
        settings.last_enabled_at = now
    elif enabled is False:
        settings.global_scanner_enabled = False
        settings.disabled_until = None
    elif hours is not None and settings.global_scanner_enabled:
        # new window length re-arms the running deadline
        settings.disabled_until = now + timedelta(hours=hours)

    settings.updated_at = now
    session.add(settings)
    session.commit()
    session.refresh(settings)
    logger.info(
        f"Scanner settings updated by {changed_by}: enabled={settings.global_scanner_enabled} "
        f"hours={settings.auto_disable_hours}"
    )
    return settings


def settings_public(settings: ScannerSettings) -> dict:
    remaining = None
    if settings.global_scanner_enabled and settings.disabled_until:
        remaining = max(0, int((settings.disabled_until - utcnow()).total_seconds()))
    return {
        "global_scanner_enabled": settings.global_scanner_enabled,
        "auto_disable_hours": settings.auto_disable_hours,
        "disabled_until": settings.disabled_until,
        "remaining_seconds": remaining,
        "last_enabled_by": settings.last_enabled_by,
        "last_enabled_at": settings.last_enabled_at,
        "updated_at": settings.updated_at,
    }


def barber_status(session: Session, barber: Admin) -> dict:
    settings = current_settings(session)
    return {
        "global_scanner_enabled": settings.global_scanner_enabled,
        "individual_scanner_enabled": barber.scanner_enabled,
        "effective_scanner_enabled": settings.global_scanner_enabled and barber.scanner_enabled,
        "disabled_until": settings.disabled_until,
    }


def require_scanner(session: Session, barber: Admin):
    if not barber_status(session, barber)["effective_scanner_enabled"]:
        raise HTTPException(status_code=403, detail="Scanner is disabled")

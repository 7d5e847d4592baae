# barbershop/routers/scanner_routes.py

import logging

from fastapi import APIRouter, Depends
from sqlmodel import Session

from barbershop.db import get_session
from barbershop.models import Admin
from barbershop.schemas import ClientPublic, ScannerSettingsUpdate, public
from barbershop.deps import require_admin, require_barber, get_client_or_404
from barbershop import loyalty, scanner

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["scanner"],
)


@router.get("/admin/scanner-settings")
def get_scanner_settings(
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    return scanner.settings_public(scanner.current_settings(session))


@router.put("/admin/scanner-settings")
def update_scanner_settings(
    payload: ScannerSettingsUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    settings = scanner.update_settings(
        session,
        enabled=payload.global_scanner_enabled,
        hours=payload.auto_disable_hours,
        changed_by=current_user["name"],
    )
    return scanner.settings_public(settings)


@router.post("/admin/scanner-settings/auto-disable")
def run_auto_disable(
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    settings = scanner.get_settings(session)
    disabled = scanner.apply_auto_disable(session, settings)
    return {"disabled": disabled, "current_status": scanner.settings_public(settings)}


@router.get("/barber/scanner-status")
def scanner_status(
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_barber),
):
    barber = session.get(Admin, current_user["id"])
    return scanner.barber_status(session, barber)


@router.get("/barber/scan/{client_code}")
def scan_client(
    client_code: str,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_barber),
):
    barber = session.get(Admin, current_user["id"])
    scanner.require_scanner(session, barber)

    client = get_client_or_404(session, client_code.strip())
    logger.info(f"Barber {barber.username} scanned client {client.client_code}")
    return {
        "client": public(client, ClientPublic),
        "loyalty_status": loyalty.get_loyalty_status(session, client),
    }

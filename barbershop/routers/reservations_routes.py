# barbershop/routers/reservations_routes.py

import logging
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import func
from sqlmodel import Session, select

from barbershop.config import RESERVATION_RATE_LIMIT, RATE_LIMIT_WINDOW_SECONDS
from barbershop.core import utcnow, TIME_RE, pagination
from barbershop.db import get_session
from barbershop.models import Client, Reservation
from barbershop.schemas import (
    ReservationCreate,
    ReservationUpdate,
    ReservationSource,
    ReservationStatus,
)
from barbershop.auth import get_current_user, get_optional_user
from barbershop.deps import ADMIN_ROLES, require_admin
from barbershop.rate_limiter import create_rate_limiter, client_ip

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/reservations",
    tags=["reservations"],
)

reservation_limit = create_rate_limiter(RESERVATION_RATE_LIMIT, RATE_LIMIT_WINDOW_SECONDS, key_prefix="reservation")

OPEN_STATUSES = ("pending", "contacted", "confirmed")


def _is_admin(user: dict) -> bool:
    return user["user_type"] == "admin" and user["role"] in ADMIN_ROLES


def _get_reservation_or_404(session: Session, reservation_id: int) -> Reservation:
    reservation = session.get(Reservation, reservation_id)
    if reservation is None:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return reservation


def _check_time(value: str):
    if not TIME_RE.match(value):
        raise HTTPException(status_code=422, detail="Preferred time must be in HH:MM format")


def _count(session: Session, *conditions) -> int:
    query = select(func.count(Reservation.id))
    for condition in conditions:
        query = query.where(condition)
    return session.exec(query).one()


def reservation_public(session: Session, reservation: Reservation) -> dict:
    data = reservation.model_dump()
    data["display_name"] = reservation.guest_name
    data["display_phone"] = reservation.guest_phone
    if reservation.client_id is not None:
        client = session.get(Client, reservation.client_id)
        if client is not None:
            data["display_name"] = client.full_name
            data["display_phone"] = client.phone_number
    return data


@router.post("", status_code=201)
def create_reservation(
    payload: ReservationCreate,
    request: Request,
    session: Session = Depends(get_session),
    current_user: Optional[dict] = Depends(get_optional_user),
    _: None = Depends(reservation_limit),
):
    # 1) Validate date and time
    _check_time(payload.preferred_time)
    if payload.preferred_date < utcnow().date():
        raise HTTPException(status_code=422, detail="Preferred date cannot be in the past")

    # 2) Logged-in clients book for themselves, everyone else is a guest
    client_id = None
    if current_user is not None and current_user["user_type"] == "client":
        client_id = current_user["id"]
        source = ReservationSource.client_account.value
    else:
        if not payload.guest_name or not payload.guest_phone:
            raise HTTPException(status_code=422, detail="Guest name and phone are required")
        source = ReservationSource.guest.value

    reservation = Reservation(
        client_id=client_id,
        guest_name=payload.guest_name.strip() if payload.guest_name else None,
        guest_phone=payload.guest_phone.strip() if payload.guest_phone else None,
        preferred_date=payload.preferred_date,
        preferred_time=payload.preferred_time,
        notes=payload.notes,
        source=source,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    session.add(reservation)
    session.commit()
    session.refresh(reservation)
    logger.info(f"Reservation {reservation.id} created ({source}) for {reservation.preferred_date}")
    return reservation_public(session, reservation)


@router.get("")
def list_reservations(
    status: Optional[ReservationStatus] = None,
    is_read: Optional[bool] = None,
    source: Optional[ReservationSource] = None,
    client_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    query = select(Reservation)
    if current_user["user_type"] == "client":
        query = query.where(Reservation.client_id == current_user["id"])
    elif not _is_admin(current_user):
        raise HTTPException(status_code=403, detail="Admin access required")
    elif client_id is not None:
        query = query.where(Reservation.client_id == client_id)

    if status is not None:
        query = query.where(Reservation.status == status.value)
    if is_read is not None:
        query = query.where(Reservation.is_read == is_read)
    if source is not None:
        query = query.where(Reservation.source == source.value)

    total = session.exec(select(func.count()).select_from(query.subquery())).one()
    reservations = session.exec(
        query.order_by(Reservation.created_at.desc(), Reservation.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

    result = {
        "reservations": [reservation_public(session, r) for r in reservations],
        "pagination": pagination(total, page, limit),
    }
    if _is_admin(current_user):
        result["statistics"] = {
            "total": _count(session),
            "unread": _count(session, Reservation.is_read == False),  # noqa: E712
            "pending": _count(session, Reservation.status == "pending"),
        }
    return result


@router.get("/stats")
def reservation_stats(
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    today = utcnow().date()
    by_status = {status.value: 0 for status in ReservationStatus}
    rows = session.exec(
        select(Reservation.status, func.count(Reservation.id)).group_by(Reservation.status)
    ).all()
    for status, count in rows:
        by_status[status] = count

    return {
        "total": sum(by_status.values()),
        "by_status": by_status,
        "unread": _count(session, Reservation.is_read == False),  # noqa: E712
        "today": _count(session, Reservation.preferred_date == today),
        "upcoming": _count(
            session,
            Reservation.preferred_date >= today,
            Reservation.preferred_date <= today + timedelta(days=7),
            Reservation.status.in_(OPEN_STATUSES),
        ),
    }


@router.post("/fix-unread")
def fix_unread(
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    stale = session.exec(
        select(Reservation)
        .where(Reservation.status != "pending")
        .where(Reservation.is_read == False)  # noqa: E712
    ).all()
    for reservation in stale:
        reservation.is_read = True
        reservation.updated_at = utcnow()
        session.add(reservation)
    session.commit()

    logger.info(f"Marked {len(stale)} processed reservations as read")
    return {"updated": len(stale)}


@router.get("/{reservation_id}")
def get_reservation(
    reservation_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    reservation = _get_reservation_or_404(session, reservation_id)
    if current_user["user_type"] == "client":
        if reservation.client_id != current_user["id"]:
            raise HTTPException(status_code=403, detail="Forbidden")
    elif not _is_admin(current_user):
        raise HTTPException(status_code=403, detail="Admin access required")
    return reservation_public(session, reservation)


@router.patch("/{reservation_id}")
def update_reservation(
    reservation_id: int,
    payload: ReservationUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    reservation = _get_reservation_or_404(session, reservation_id)
    now = utcnow()

    # 1) Quick actions
    if payload.action == "mark_read":
        reservation.is_read = True
    elif payload.action == "mark_unread":
        reservation.is_read = False
    elif payload.action == "update_status" and payload.status is None:
        raise HTTPException(status_code=422, detail="Status is required for update_status")

    # 2) Status changes; anything past pending has been looked at
    if payload.status is not None and payload.status.value != reservation.status:
        reservation.status = payload.status.value
        if reservation.status != "pending":
            reservation.is_read = True
        if reservation.status == "contacted":
            reservation.contacted_at = now
            reservation.contacted_by = current_user["id"]

    # 3) General edits
    if payload.admin_notes is not None:
        reservation.admin_notes = payload.admin_notes
    if payload.notes is not None:
        reservation.notes = payload.notes
    if payload.preferred_date is not None:
        reservation.preferred_date = payload.preferred_date
    if payload.preferred_time is not None:
        _check_time(payload.preferred_time)
        reservation.preferred_time = payload.preferred_time

    reservation.updated_at = now
    session.add(reservation)
    session.commit()
    session.refresh(reservation)
    return reservation_public(session, reservation)


@router.delete("/{reservation_id}", status_code=204)
def delete_reservation(
    reservation_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    reservation = _get_reservation_or_404(session, reservation_id)
    session.delete(reservation)
    session.commit()
    return None

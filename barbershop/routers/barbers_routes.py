# barbershop/routers/barbers_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from barbershop.core import utcnow
from barbershop.db import get_session
from barbershop.models import Admin, BarberStats
from barbershop.schemas import (
    BarberCreate,
    BarberProfileUpdate,
    BarberUpdate,
    BulkScannerToggle,
    LeaderboardSort,
    ScannerToggle,
    StaffPublic,
    TimePeriod,
    public,
)
from barbershop.auth import hash_password
from barbershop.deps import require_admin, require_barber, get_staff_or_404
from barbershop.stats import get_or_create_stats, stats_public, current_month_figures

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["barbers"],
)


def _get_barber_or_404(session: Session, barber_id: int) -> Admin:
    barber = get_staff_or_404(session, barber_id)
    if barber.role != "barber":
        raise HTTPException(status_code=404, detail="Barber not found")
    return barber


def _check_unique(session: Session, username=None, email=None, exclude_id=None):
    if username is not None:
        query = select(Admin).where(Admin.username == username)
        if exclude_id is not None:
            query = query.where(Admin.id != exclude_id)
        if session.exec(query).first() is not None:
            raise HTTPException(status_code=409, detail="Username already taken")
    if email is not None:
        query = select(Admin).where(Admin.email == email)
        if exclude_id is not None:
            query = query.where(Admin.id != exclude_id)
        if session.exec(query).first() is not None:
            raise HTTPException(status_code=409, detail="Email already in use")


# --- admin: barber management ---

@router.get("/admin/barbers")
def list_barbers(
    include_inactive: bool = False,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    query = select(Admin).where(Admin.role == "barber")
    if not include_inactive:
        query = query.where(Admin.active == True)  # noqa: E712
    barbers = session.exec(query.order_by(Admin.name)).all()
    return [public(b, StaffPublic) for b in barbers]


@router.post("/admin/barbers", status_code=201, response_model=StaffPublic)
def create_barber(
    payload: BarberCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    # 1) Username and email are both logins of a sort
    username = payload.username.strip()
    email = payload.email.strip().lower()
    _check_unique(session, username=username, email=email)

    # 2) Create the account and its empty stats row
    barber = Admin(
        username=username,
        email=email,
        password_hash=hash_password(payload.password),
        name=payload.name.strip(),
        role="barber",
        phone_number=payload.phone_number,
        profile_picture=payload.profile_picture,
        join_date=payload.join_date or utcnow(),
        scanner_enabled=payload.scanner_enabled,
    )
    session.add(barber)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Username or email already in use")

    session.refresh(barber)
    get_or_create_stats(session, barber.id)
    logger.info(f"Barber {barber.username} created by {current_user['name']}")
    return barber


@router.put("/admin/barbers/bulk-scanner-toggle")
def bulk_scanner_toggle(
    payload: BulkScannerToggle,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    query = select(Admin).where(Admin.role == "barber").where(Admin.active == True)  # noqa: E712
    if payload.barber_ids:
        query = query.where(Admin.id.in_(payload.barber_ids))
    barbers = session.exec(query).all()

    for barber in barbers:
        barber.scanner_enabled = payload.enabled
        barber.updated_at = utcnow()
        session.add(barber)
    session.commit()

    logger.info(f"Scanner {'enabled' if payload.enabled else 'disabled'} for {len(barbers)} barbers")
    return {"updated": len(barbers), "enabled": payload.enabled}


@router.get("/admin/barbers/{barber_id}", response_model=StaffPublic)
def get_barber(
    barber_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    return _get_barber_or_404(session, barber_id)


@router.put("/admin/barbers/{barber_id}", response_model=StaffPublic)
def update_barber(
    barber_id: int,
    payload: BarberUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    barber = _get_barber_or_404(session, barber_id)
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("username") is not None:
        changes["username"] = changes["username"].strip()
    if changes.get("email") is not None:
        changes["email"] = changes["email"].strip().lower()
    _check_unique(session, changes.get("username"), changes.get("email"), exclude_id=barber.id)

    password = changes.pop("password", None)
    if password:
        barber.password_hash = hash_password(password)

    # role is fixed: barbers stay barbers
    for field, value in changes.items():
        if value is not None or field in ("phone_number", "profile_picture"):
            setattr(barber, field, value)
    barber.updated_at = utcnow()

    session.add(barber)
    session.commit()
    session.refresh(barber)
    return barber


@router.delete("/admin/barbers/{barber_id}")
def deactivate_barber(
    barber_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    barber = _get_barber_or_404(session, barber_id)
    barber.active = False
    barber.scanner_enabled = False
    barber.updated_at = utcnow()
    session.add(barber)
    session.commit()

    logger.info(f"Barber {barber.username} deactivated by {current_user['name']}")
    return {"message": "Barber deactivated", "id": barber.id}


@router.get("/admin/barbers/{barber_id}/stats")
def barber_stats(
    barber_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    barber = _get_barber_or_404(session, barber_id)
    return {
        "barber": public(barber, StaffPublic),
        "stats": stats_public(get_or_create_stats(session, barber.id)),
    }


@router.put("/admin/barbers/{barber_id}/scanner-toggle", response_model=StaffPublic)
def scanner_toggle(
    barber_id: int,
    payload: ScannerToggle,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    barber = _get_barber_or_404(session, barber_id)
    barber.scanner_enabled = payload.enabled
    barber.updated_at = utcnow()
    session.add(barber)
    session.commit()
    session.refresh(barber)
    return barber


# --- admin: leaderboard ---

@router.get("/admin/leaderboard")
def leaderboard(
    sort_by: LeaderboardSort = LeaderboardSort.overall,
    time_period: TimePeriod = TimePeriod.all_time,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    rows = session.exec(
        select(BarberStats, Admin)
        .join(Admin, Admin.id == BarberStats.barber_id)
        .where(Admin.role == "barber")
        .where(Admin.active == True)  # noqa: E712
    ).all()

    entries = []
    for stats, barber in rows:
        work_days = stats.work_days_since_joining or 1
        visits_per_day = stats.total_visits / work_days
        revenue_per_visit = stats.total_revenue / stats.total_visits if stats.total_visits else 0
        this_month = current_month_figures(stats)

        visits = stats.total_visits
        revenue = stats.total_revenue
        clients = len(stats.unique_clients or [])
        if time_period == TimePeriod.this_month:
            visits = this_month["visits_count"]
            revenue = this_month["revenue"]
            clients = this_month["unique_clients"]

        entries.append({
            "barber_id": barber.id,
            "name": barber.name,
            "profile_picture": barber.profile_picture,
            "join_date": barber.join_date,
            "work_days": stats.work_days_since_joining,
            "stats": {
                "total_visits": visits,
                "total_revenue": revenue,
                "unique_clients": clients,
                "this_month": {"visits": this_month["visits_count"], "revenue": this_month["revenue"]},
            },
            "efficiency": round(visits_per_day * revenue_per_visit, 1),
        })

    sort_keys = {
        LeaderboardSort.overall: lambda e: (e["stats"]["total_visits"], e["stats"]["total_revenue"]),
        LeaderboardSort.visits: lambda e: e["stats"]["total_visits"],
        LeaderboardSort.revenue: lambda e: e["stats"]["total_revenue"],
        LeaderboardSort.clients: lambda e: e["stats"]["unique_clients"],
        LeaderboardSort.efficiency: lambda e: e["efficiency"],
    }
    entries.sort(key=sort_keys[sort_by], reverse=True)
    for index, entry in enumerate(entries):
        entry["rank"] = index + 1

    return {"sort_by": sort_by.value, "time_period": time_period.value, "leaderboard": entries}


# --- barber self-service ---

@router.get("/barber/profile", response_model=StaffPublic)
def barber_profile(
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_barber),
):
    return session.get(Admin, current_user["id"])


@router.put("/barber/profile", response_model=StaffPublic)
def update_barber_profile(
    payload: BarberProfileUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_barber),
):
    barber = session.get(Admin, current_user["id"])
    if payload.name is not None:
        barber.name = payload.name.strip()
    if payload.phone_number is not None:
        barber.phone_number = payload.phone_number.strip() or None
    if payload.profile_picture is not None:
        barber.profile_picture = payload.profile_picture or None
    barber.updated_at = utcnow()

    session.add(barber)
    session.commit()
    session.refresh(barber)
    return barber


@router.get("/barber/stats")
def my_stats(
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_barber),
):
    return stats_public(get_or_create_stats(session, current_user["id"]))

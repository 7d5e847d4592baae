# barbershop/routers/visits_routes.py

import logging
from collections import Counter
from datetime import date, datetime, time, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlmodel import Session, select

from barbershop.core import utcnow, month_key, pagination
from barbershop.db import get_session
from barbershop.models import Admin, Service, Visit
from barbershop.schemas import VisitCreate
from barbershop.auth import get_current_user
from barbershop.deps import (
    require_admin,
    require_barber,
    require_staff,
    require_self_or_staff,
    get_client_or_404,
)
from barbershop.exports import csv_response, visit_row, VISIT_HEADER
from barbershop import achievements, barber_rewards, loyalty, scanner, stats

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["visits"],
)


def visit_public(visit: Visit) -> dict:
    return {
        "id": visit.id,
        "client_id": visit.client_id,
        "visit_date": visit.visit_date,
        "services": visit.services,
        "total_price": visit.total_price,
        "barber": visit.barber,
        "barber_id": visit.barber_id,
        "notes": visit.notes,
        "reward_redeemed": visit.reward_redeemed,
        "redeemed_reward_id": visit.redeemed_reward_id,
        "redemption": visit.redemption,
        "visit_number": visit.visit_number,
        "is_reward_redemption": visit.is_reward_redemption,
    }


def refresh_barber_progress(session: Session, barber: Admin, visit: Visit):
    stats.update_after_visit(session, barber, visit)
    achievements.update_progress(session, barber)
    barber_rewards.update_progress(session, barber)


def _resolve_barber(session: Session, current_user: dict, barber_id: Optional[int]) -> Optional[Admin]:
    staff = session.get(Admin, current_user["id"])
    if staff.is_barber:
        scanner.require_scanner(session, staff)
        return staff
    if barber_id is None:
        return None
    barber = session.get(Admin, barber_id)
    if barber is None or barber.role != "barber" or not barber.active:
        raise HTTPException(status_code=422, detail="Barber not found or inactive")
    return barber


def _filtered_visits(start_date, end_date, barber):
    query = select(Visit)
    if start_date is not None:
        query = query.where(Visit.visit_date >= datetime.combine(start_date, time.min))
    if end_date is not None:
        query = query.where(Visit.visit_date < datetime.combine(end_date, time.min) + timedelta(days=1))
    if barber:
        query = query.where(func.lower(Visit.barber).contains(barber.strip().lower()))
    return query


@router.post("/clients/{client_ref}/visits", status_code=201)
def record_visit(
    client_ref: str,
    payload: VisitCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_staff),
):
    client = get_client_or_404(session, client_ref)
    if not client.account_active:
        raise HTTPException(status_code=422, detail="Client account is inactive")

    # 1) Who performed the visit (barbers need their scanner on)
    barber = _resolve_barber(session, current_user, payload.barber_id)

    # 2) Snapshot services from the catalog
    snapshots = []
    services = []
    for service_id in payload.service_ids:
        service = session.get(Service, service_id)
        if service is None or not service.is_active:
            raise HTTPException(status_code=422, detail=f"Service {service_id} not found or inactive")
        services.append(service)
        snapshots.append({
            "service_id": service.id,
            "name": service.name,
            "price": service.price,
            "duration": service.duration_minutes,
        })

    total_price = payload.total_price
    if total_price is None:
        total_price = sum(s["price"] for s in snapshots)

    visit = Visit(
        client_id=client.id,
        visit_date=payload.visit_date or utcnow(),
        services=snapshots,
        total_price=total_price,
        barber=barber.name if barber else current_user["name"],
        barber_id=barber.id if barber else None,
        notes=payload.notes,
    )

    # 3) Loyalty counters and service popularity
    loyalty.record_visit(client, visit)
    for service in services:
        service.popularity_score += 1
        session.add(service)

    session.add(visit)
    session.add(client)
    session.commit()
    session.refresh(visit)
    session.refresh(client)
    logger.info(f"Visit {visit.id} recorded for client {client.client_code} by {visit.barber}")

    # 4) Barber stats, achievements and rewards
    if barber is not None:
        refresh_barber_progress(session, barber, visit)

    return {
        "visit": visit_public(visit),
        "loyalty_status": loyalty.get_loyalty_status(session, client),
    }


@router.get("/clients/{client_ref}/visits")
def list_client_visits(
    client_ref: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    client = get_client_or_404(session, client_ref)
    require_self_or_staff(current_user, client.id)

    total = session.exec(select(func.count(Visit.id)).where(Visit.client_id == client.id)).one()
    visits = session.exec(
        select(Visit)
        .where(Visit.client_id == client.id)
        .order_by(Visit.visit_date.desc(), Visit.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()
    return {
        "visits": [visit_public(v) for v in visits],
        "pagination": pagination(total, page, limit),
    }


@router.get("/clients/{client_ref}/visits/export")
def export_client_visits(
    client_ref: str,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    client = get_client_or_404(session, client_ref)
    require_self_or_staff(current_user, client.id)

    visits = session.exec(
        select(Visit).where(Visit.client_id == client.id).order_by(Visit.visit_date.desc())
    ).all()
    return csv_response(
        f"visits_{client.client_code}_{utcnow().strftime('%Y%m%d')}.csv",
        VISIT_HEADER,
        (visit_row(v) for v in visits),
    )


@router.get("/clients/{client_ref}/service-history")
def service_history(
    client_ref: str,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    client = get_client_or_404(session, client_ref)
    require_self_or_staff(current_user, client.id)

    visits = session.exec(
        select(Visit).where(Visit.client_id == client.id).order_by(Visit.visit_date)
    ).all()

    per_service: dict[str, dict] = {}
    months: dict[str, dict] = {}
    for visit in visits:
        key = month_key(visit.visit_date)
        bucket = months.setdefault(key, {"month": key, "visits": 0, "total_spent": 0, "services": Counter()})
        bucket["visits"] += 1
        bucket["total_spent"] += visit.total_price

        for item in visit.services:
            entry = per_service.setdefault(item["name"], {
                "service_id": item["service_id"],
                "name": item["name"],
                "count": 0,
                "total_spent": 0,
                "last_used": None,
            })
            entry["count"] += 1
            entry["total_spent"] += item["price"]
            entry["last_used"] = visit.visit_date
            bucket["services"][item["name"]] += 1

    services = sorted(per_service.values(), key=lambda s: s["count"], reverse=True)
    for entry in services:
        entry["average_price"] = round(entry["total_spent"] / entry["count"], 2)

    trends = []
    for key in sorted(months):
        bucket = months[key]
        top = bucket["services"].most_common(1)
        trends.append({
            "month": key,
            "visits": bucket["visits"],
            "total_spent": bucket["total_spent"],
            "most_popular_service": top[0][0] if top else None,
        })

    return {
        "client_id": client.id,
        "total_visits": len(visits),
        "total_spent": sum(v.total_price for v in visits),
        "services": services,
        "monthly_trends": trends,
    }


@router.get("/visits")
def list_visits(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    barber: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    query = _filtered_visits(start_date, end_date, barber)
    total = session.exec(select(func.count()).select_from(query.subquery())).one()
    visits = session.exec(
        query.order_by(Visit.visit_date.desc(), Visit.id.desc()).offset((page - 1) * limit).limit(limit)
    ).all()
    return {
        "visits": [visit_public(v) for v in visits],
        "pagination": pagination(total, page, limit),
    }


@router.get("/visits/export")
def export_visits(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    barber: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    visits = session.exec(
        _filtered_visits(start_date, end_date, barber).order_by(Visit.visit_date.desc())
    ).all()
    return csv_response(
        f"visits_{utcnow().strftime('%Y%m%d')}.csv",
        VISIT_HEADER,
        (visit_row(v) for v in visits),
    )


@router.get("/barber/visits")
def list_barber_visits(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_barber),
):
    total = session.exec(select(func.count(Visit.id)).where(Visit.barber_id == current_user["id"])).one()
    visits = session.exec(
        select(Visit)
        .where(Visit.barber_id == current_user["id"])
        .order_by(Visit.visit_date.desc(), Visit.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()
    return {
        "visits": [visit_public(v) for v in visits],
        "pagination": pagination(total, page, limit),
    }

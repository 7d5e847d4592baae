# barbershop/stats.py

import logging

from sqlalchemy import func
from sqlmodel import Session, select

from .core import utcnow, month_key, month_bounds, work_days_since
from .models import Admin, BarberStats, Visit

logger = logging.getLogger(__name__)


def get_or_create_stats(session: Session, barber_id: int) -> BarberStats:
    stats = session.exec(select(BarberStats).where(BarberStats.barber_id == barber_id)).first()
    if stats is None:
        stats = BarberStats(barber_id=barber_id)
        session.add(stats)
        session.commit()
        session.refresh(stats)
        logger.info(f"Created stats record for barber {barber_id}")
    return stats


def retention_rate(session: Session, barber_id: int, unique_clients: int) -> float:
    """Share of a barber's clients who came back at least once."""
    if unique_clients == 0:
        return 0
    per_client = (
        select(Visit.client_id)
        .where(Visit.barber_id == barber_id)
        .group_by(Visit.client_id)
        .having(func.count(Visit.id) > 1)
    ).subquery()
    repeat = session.exec(select(func.count()).select_from(per_client)).one()
    return repeat / unique_clients * 100


def update_after_visit(session: Session, barber: Admin, visit: Visit) -> BarberStats:
    """Fold one committed visit into the barber's running stats."""
    stats = get_or_create_stats(session, barber.id)
    visit_month = month_key(visit.visit_date)

    # 1) Totals
    stats.total_visits += 1
    stats.total_revenue += visit.total_price

    unique_clients = list(stats.unique_clients or [])
    if visit.client_id not in unique_clients:
        unique_clients.append(visit.client_id)
    stats.unique_clients = unique_clients

    # 2) Month bucket
    start, end = month_bounds(visit_month)
    month_clients = session.exec(
        select(func.count(func.distinct(Visit.client_id)))
        .where(Visit.barber_id == barber.id)
        .where(Visit.visit_date >= start)
        .where(Visit.visit_date < end)
    ).one()

    monthly = [dict(m) for m in stats.monthly_stats or []]
    bucket = next((m for m in monthly if m["month"] == visit_month), None)
    if bucket is None:
        bucket = {"month": visit_month, "visits_count": 0, "revenue": 0, "unique_clients": 0}
        monthly.append(bucket)
    bucket["visits_count"] += 1
    bucket["revenue"] += visit.total_price
    bucket["unique_clients"] = month_clients
    stats.monthly_stats = monthly

    # 3) Per-service counters
    service_stats = [dict(s) for s in stats.service_stats or []]
    for item in visit.services:
        entry = next((s for s in service_stats if s["service_id"] == item["service_id"]), None)
        if entry is None:
            entry = {"service_id": item["service_id"], "service_name": item["name"], "count": 0, "revenue": 0}
            service_stats.append(entry)
        entry["count"] += 1
        entry["revenue"] += item["price"]
    service_stats.sort(key=lambda s: s["count"], reverse=True)
    stats.service_stats = service_stats
    stats.top_services = [s["service_name"] for s in service_stats[:5]]

    busy_hours = list(stats.busy_hours or [])
    if visit.visit_date.hour not in busy_hours:
        busy_hours.append(visit.visit_date.hour)
    stats.busy_hours = busy_hours

    # 4) Rates
    stats.work_days_since_joining = work_days_since(barber.join_date)
    if stats.work_days_since_joining > 0:
        stats.average_visits_per_day = stats.total_visits / stats.work_days_since_joining
    else:
        stats.average_visits_per_day = 0

    stats.client_retention_rate = retention_rate(session, barber.id, len(unique_clients))

    duration = sum(item.get("duration", 0) for item in visit.services)
    stats.average_service_time = (
        stats.average_service_time * (stats.total_visits - 1) + duration
    ) / stats.total_visits

    stats.last_updated = utcnow()
    session.add(stats)
    session.commit()
    session.refresh(stats)
    return stats


def current_month_figures(stats: BarberStats) -> dict:
    key = month_key(utcnow())
    bucket = next((m for m in stats.monthly_stats or [] if m["month"] == key), None)
    if bucket is None:
        return {"month": key, "visits_count": 0, "revenue": 0, "unique_clients": 0}
    return bucket


def stats_public(stats: BarberStats) -> dict:
    return {
        "barber_id": stats.barber_id,
        "total_visits": stats.total_visits,
        "total_revenue": stats.total_revenue,
        "unique_clients": len(stats.unique_clients or []),
        "work_days_since_joining": stats.work_days_since_joining,
        "average_visits_per_day": stats.average_visits_per_day,
        "monthly_stats": stats.monthly_stats,
        "service_stats": stats.service_stats,
        "client_retention_rate": stats.client_retention_rate,
        "average_service_time": stats.average_service_time,
        "top_services": stats.top_services,
        "busy_hours": sorted(stats.busy_hours or []),
        "current_month": current_month_figures(stats),
        "last_updated": stats.last_updated,
    }

# barbershop/routers/analytics_routes.py

from collections import Counter, defaultdict
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlmodel import Session, select

from barbershop.core import utcnow, date_range, growth_percentage, visit_frequency_bucket
from barbershop.db import get_session
from barbershop.models import Client, Reservation, Service, Visit
from barbershop.deps import require_admin

router = APIRouter(
    prefix="/admin/analytics",
    tags=["analytics"],
)

FREQUENCY_BUCKETS = ("1", "2-3", "4-6", "7-10", "11+")


def visits_between(session: Session, start, end) -> list[Visit]:
    return session.exec(
        select(Visit).where(Visit.visit_date >= start).where(Visit.visit_date < end).order_by(Visit.visit_date)
    ).all()


def _new_clients(session: Session, start, end) -> int:
    return session.exec(
        select(func.count(Client.id)).where(Client.date_created >= start).where(Client.date_created < end)
    ).one()


@router.get("/overview")
def overview(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    start, end = date_range(start_date, end_date)
    previous_start = start - (end - start)

    # 1) Totals
    total_clients = session.exec(select(func.count(Client.id))).one()
    total_visits = session.exec(select(func.count(Visit.id))).one()
    total_revenue = session.exec(select(func.coalesce(func.sum(Visit.total_price), 0))).one()

    # 2) This period against the one before it
    current = visits_between(session, start, end)
    previous = visits_between(session, previous_start, start)
    new_clients = _new_clients(session, start, end)
    previous_new_clients = _new_clients(session, previous_start, start)
    revenue = sum(v.total_price for v in current)
    previous_revenue = sum(v.total_price for v in previous)

    # 3) Engagement
    active_clients = session.exec(
        select(func.count(func.distinct(Visit.client_id)))
        .where(Visit.visit_date >= utcnow() - timedelta(days=30))
    ).one()
    loyalty_members = session.exec(select(func.count(Client.id)).where(Client.loyalty_status != "new")).one()
    rewards_redeemed = session.exec(select(func.coalesce(func.sum(Client.rewards_redeemed), 0))).one()
    active_services = session.exec(
        select(func.count(Service.id)).where(Service.is_active == True)  # noqa: E712
    ).one()
    popular = session.exec(
        select(Service.name)
        .where(Service.is_active == True)  # noqa: E712
        .order_by(Service.popularity_score.desc(), Service.name)
    ).first()

    return {
        "period": {"start": start, "end": end},
        "total_clients": total_clients,
        "new_clients": new_clients,
        "client_growth_percentage": growth_percentage(new_clients, previous_new_clients),
        "total_visits": total_visits,
        "visits_in_period": len(current),
        "visit_growth_percentage": growth_percentage(len(current), len(previous)),
        "active_clients": active_clients,
        "total_revenue": total_revenue,
        "revenue_in_period": revenue,
        "revenue_growth_percentage": growth_percentage(revenue, previous_revenue),
        "average_visit_value": round(total_revenue / total_visits, 2) if total_visits else 0,
        "active_services": active_services,
        "most_popular_service": popular,
        "loyalty_members": loyalty_members,
        "loyalty_participation_rate": round(loyalty_members / total_clients * 100, 1) if total_clients else 0,
        "rewards_redeemed": rewards_redeemed,
        "average_visits_per_client": round(total_visits / total_clients, 1) if total_clients else 0,
    }


@router.get("/client-growth")
def client_growth(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    start, end = date_range(start_date, end_date)
    clients = session.exec(
        select(Client.date_created)
        .where(Client.date_created >= start)
        .where(Client.date_created < end)
        .order_by(Client.date_created)
    ).all()
    baseline = session.exec(select(func.count(Client.id)).where(Client.date_created < start)).one()

    per_day = Counter(created.strftime("%Y-%m-%d") for created in clients)
    series = []
    cumulative = baseline
    for day in sorted(per_day):
        cumulative += per_day[day]
        series.append({"date": day, "new_clients": per_day[day], "total_clients": cumulative})

    return {"data": series, "total_new_clients": len(clients)}


@router.get("/client-retention")
def client_retention(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    start, end = date_range(start_date, end_date)
    counts = Counter(v.client_id for v in visits_between(session, start, end))
    returning = sum(1 for n in counts.values() if n >= 2)

    return {
        "clients_with_visits": len(counts),
        "returning_clients": returning,
        "one_time_clients": len(counts) - returning,
        "retention_rate": round(returning / len(counts) * 100, 1) if counts else 0,
    }


@router.get("/visit-frequency")
def visit_frequency(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    start, end = date_range(start_date, end_date)
    counts = Counter(v.client_id for v in visits_between(session, start, end))

    distribution = {bucket: 0 for bucket in FREQUENCY_BUCKETS}
    for visits in counts.values():
        distribution[visit_frequency_bucket(visits)] += 1

    return {
        "distribution": [{"visits": bucket, "clients": distribution[bucket]} for bucket in FREQUENCY_BUCKETS],
        "average_visits_per_client": round(sum(counts.values()) / len(counts), 1) if counts else 0,
    }


@router.get("/service-popularity")
def service_popularity(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    start, end = date_range(start_date, end_date)
    services: dict[str, dict] = {}
    for visit in visits_between(session, start, end):
        for item in visit.services:
            entry = services.setdefault(item["name"], {"name": item["name"], "count": 0, "revenue": 0})
            entry["count"] += 1
            entry["revenue"] += item["price"]

    return {"services": sorted(services.values(), key=lambda s: s["count"], reverse=True)}


@router.get("/performance-trends")
def performance_trends(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    start, end = date_range(start_date, end_date)
    per_day: dict[str, dict] = defaultdict(lambda: {"visits": 0, "revenue": 0})
    for visit in visits_between(session, start, end):
        bucket = per_day[visit.visit_date.strftime("%Y-%m-%d")]
        bucket["visits"] += 1
        bucket["revenue"] += visit.total_price

    return {"data": [{"date": day, **per_day[day]} for day in sorted(per_day)]}


@router.get("/reservation-analytics")
def reservation_analytics(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    start, end = date_range(start_date, end_date)
    reservations = session.exec(
        select(Reservation).where(Reservation.created_at >= start).where(Reservation.created_at < end)
    ).all()

    by_status = Counter(r.status for r in reservations)
    by_source = Counter(r.source for r in reservations)
    total = len(reservations)

    return {
        "total": total,
        "by_status": dict(by_status),
        "by_source": dict(by_source),
        "conversion_rate": round(by_status.get("completed", 0) / total * 100, 1) if total else 0,
    }

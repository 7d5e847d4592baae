# barbershop/routers/reports_routes.py

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlmodel import Session, select

from barbershop.core import utcnow, date_range, period_key, revenue_trend
from barbershop.db import get_session
from barbershop.models import Client
from barbershop.schemas import ExportType, ReportPeriod
from barbershop.deps import require_admin
from barbershop.exports import csv_response, visit_row, VISIT_HEADER
from barbershop.routers.analytics_routes import visits_between

router = APIRouter(
    prefix="/admin/reports",
    tags=["reports"],
)


def financial_rows(visits, period: str) -> list[dict]:
    buckets: dict[str, dict] = {}
    for visit in visits:
        key = period_key(visit.visit_date, period)
        bucket = buckets.setdefault(key, {"period": key, "revenue": 0, "visits": 0, "clients": set()})
        bucket["revenue"] += visit.total_price
        bucket["visits"] += 1
        bucket["clients"].add(visit.client_id)

    rows = []
    previous = None
    for key in sorted(buckets):
        bucket = buckets[key]
        rows.append({
            "period": key,
            "revenue": round(bucket["revenue"], 2),
            "visits": bucket["visits"],
            "clients": len(bucket["clients"]),
            "average_value": round(bucket["revenue"] / bucket["visits"], 2),
            "trend": revenue_trend(bucket["revenue"], previous),
        })
        previous = bucket["revenue"]
    return rows


@router.get("/financial")
def financial_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    period: ReportPeriod = ReportPeriod.daily,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    start, end = date_range(start_date, end_date)
    visits = visits_between(session, start, end)
    rows = financial_rows(visits, period.value)

    total_revenue = sum(v.total_price for v in visits)
    growth = 0
    if len(rows) >= 2 and rows[-2]["revenue"] > 0:
        current, previous = rows[-1]["revenue"], rows[-2]["revenue"]
        growth = round((current - previous) / previous * 100, 1)

    return {
        "data": rows,
        "summary": {
            "total_revenue": round(total_revenue, 2),
            "total_visits": len(visits),
            "unique_clients": len({v.client_id for v in visits}),
            "average_visit_value": round(total_revenue / len(visits), 2) if visits else 0,
            "growth_percentage": growth,
            "period": period.value,
            "report_period": f"{start:%Y-%m-%d} to {(end_date or end):%Y-%m-%d}",
        },
    }


def client_rows(session: Session, visits, limit: int) -> list[dict]:
    per_client: dict[int, dict] = {}
    for visit in visits:
        entry = per_client.setdefault(visit.client_id, {
            "client_id": visit.client_id,
            "total_visits": 0,
            "total_spent": 0,
            "last_visit": None,
        })
        entry["total_visits"] += 1
        entry["total_spent"] += visit.total_price
        entry["last_visit"] = visit.visit_date

    ranked = sorted(per_client.values(), key=lambda e: e["total_spent"], reverse=True)[:limit]
    for entry in ranked:
        client = session.get(Client, entry["client_id"])
        entry["client_name"] = client.full_name if client else "Unknown"
        entry["loyalty_status"] = client.loyalty_status if client else None
        entry["total_spent"] = round(entry["total_spent"], 2)
        entry["average_visit_value"] = round(entry["total_spent"] / entry["total_visits"], 2)
        if entry["total_visits"] >= 10:
            entry["frequency"] = "high"
        elif entry["total_visits"] >= 5:
            entry["frequency"] = "medium"
        else:
            entry["frequency"] = "low"
    return ranked


@router.get("/clients")
def clients_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = Query(50, ge=1, le=500),
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    start, end = date_range(start_date, end_date)
    visits = visits_between(session, start, end)
    rows = client_rows(session, visits, limit)

    loyalty = dict(session.exec(
        select(Client.loyalty_status, func.count(Client.id)).group_by(Client.loyalty_status)
    ).all())
    active = len({v.client_id for v in visits})
    revenue = sum(v.total_price for v in visits)

    return {
        "data": rows,
        "loyalty_breakdown": loyalty,
        "summary": {
            "total_clients": session.exec(select(func.count(Client.id))).one(),
            "active_clients": active,
            "total_revenue": round(revenue, 2),
            "average_spending_per_client": round(revenue / active, 2) if active else 0,
        },
    }


@router.get("/barbers")
def barbers_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    barber: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    start, end = date_range(start_date, end_date)
    per_barber: dict[str, dict] = {}
    for visit in visits_between(session, start, end):
        if barber and visit.barber != barber:
            continue
        entry = per_barber.setdefault(visit.barber, {
            "barber_name": visit.barber,
            "barber_id": visit.barber_id,
            "total_visits": 0,
            "total_revenue": 0,
            "clients": set(),
            "service_minutes": 0,
        })
        entry["total_visits"] += 1
        entry["total_revenue"] += visit.total_price
        entry["clients"].add(visit.client_id)
        entry["service_minutes"] += sum(item.get("duration", 0) for item in visit.services)

    rows = []
    for entry in per_barber.values():
        rows.append({
            "barber_name": entry["barber_name"],
            "barber_id": entry["barber_id"],
            "total_visits": entry["total_visits"],
            "total_revenue": round(entry["total_revenue"], 2),
            "unique_clients": len(entry["clients"]),
            "average_visit_value": round(entry["total_revenue"] / entry["total_visits"], 2),
            "average_service_minutes": round(entry["service_minutes"] / entry["total_visits"], 1),
        })
    rows.sort(key=lambda r: r["total_revenue"], reverse=True)

    total_revenue = sum(r["total_revenue"] for r in rows)
    return {
        "data": rows,
        "summary": {
            "total_barbers": len(rows),
            "total_visits": sum(r["total_visits"] for r in rows),
            "total_revenue": round(total_revenue, 2),
            "average_revenue_per_barber": round(total_revenue / len(rows), 2) if rows else 0,
        },
    }


@router.get("/export")
def export_report(
    type: ExportType = ExportType.visits,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    period: ReportPeriod = ReportPeriod.daily,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    start, end = date_range(start_date, end_date)
    visits = visits_between(session, start, end)
    stamp = utcnow().strftime("%Y%m%d")

    if type == ExportType.clients:
        rows = client_rows(session, visits, limit=len(visits) or 1)
        return csv_response(
            f"clients_report_{stamp}.csv",
            ["Client ID", "Name", "Visits", "Total Spent", "Average Visit", "Last Visit", "Loyalty Status"],
            (
                [r["client_id"], r["client_name"], r["total_visits"], f"{r['total_spent']:.2f}",
                 f"{r['average_visit_value']:.2f}", r["last_visit"].strftime("%Y-%m-%d"), r["loyalty_status"]]
                for r in rows
            ),
        )

    if type == ExportType.financial:
        rows = financial_rows(visits, period.value)
        return csv_response(
            f"financial_report_{stamp}.csv",
            ["Period", "Revenue", "Visits", "Clients", "Average Value", "Trend"],
            (
                [r["period"], f"{r['revenue']:.2f}", r["visits"], r["clients"], f"{r['average_value']:.2f}", r["trend"]]
                for r in rows
            ),
        )

    return csv_response(f"visits_report_{stamp}.csv", VISIT_HEADER, (visit_row(v) for v in visits))

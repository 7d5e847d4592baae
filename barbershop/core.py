# barbershop/core.py
#
# Plain arithmetic shared by the route handlers. Nothing in here touches the
# database.

import calendar
import math
import re
import secrets
from datetime import datetime, date, timedelta, timezone
from typing import Optional

DAYS_PER_MONTH = 30.44

TIME_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
PHONE_QUERY_RE = re.compile(r"^[\d\s\-\+\(\)\.]+$")
PHONE_PUNCTUATION_RE = re.compile(r"[\s\-\+\(\)\.]")


def utcnow() -> datetime:
    """Naive UTC timestamp, which is what every column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), datetime.min.time())


def start_of_week(dt: datetime) -> datetime:
    # weeks start on Sunday
    days_since_sunday = (dt.weekday() + 1) % 7
    return start_of_day(dt) - timedelta(days=days_since_sunday)


def month_key(dt: datetime) -> str:
    return dt.strftime("%Y-%m")


def month_bounds(key: str) -> tuple[datetime, datetime]:
    year, month = (int(part) for part in key.split("-"))
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    return start, end


def add_months(dt: datetime, months: int) -> datetime:
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def months_between(start: datetime, end: datetime) -> int:
    """Whole calendar months from start to end; a month counts once the day-of-month is reached."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return max(0, months)


def days_between(start: datetime, end: datetime) -> int:
    return (end.date() - start.date()).days


def work_days_since(join_date: datetime, now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    seconds = abs((now - join_date).total_seconds())
    return math.ceil(seconds / 86400)


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def duration_progress(join_date: datetime, requirement_months: int, now: Optional[datetime] = None) -> dict:
    """Tenure towards a months-worked requirement, split into months and leftover days."""
    now = now or utcnow()
    join = start_of_day(join_date)
    today = start_of_day(now)

    total_days = max(0, days_between(join, today))
    required_days = math.floor(requirement_months * DAYS_PER_MONTH)
    months = months_between(join, today)
    remaining_days = max(0, days_between(add_months(join, months), today))

    years, leftover_months = divmod(months, 12)
    parts = []
    if years:
        parts.append(_plural(years, "year"))
    if leftover_months:
        parts.append(_plural(leftover_months, "month"))
    if remaining_days or not parts:
        parts.append(_plural(remaining_days, "day"))

    if required_days > 0:
        progress = min(total_days / required_days * 100, 100)
    else:
        progress = 100

    return {
        "total_days": total_days,
        "months": months,
        "remaining_days": remaining_days,
        "display_text": ", ".join(parts),
        "required_days": required_days,
        "progress_percentage": round(progress),
    }


def progress_percentage(value: float, target: float) -> int:
    if target <= 0:
        return 100
    return min(round(value / target * 100), 100)


def growth_percentage(current: float, previous: float) -> float:
    if previous == 0:
        return 100.0
    return round((current - previous) / previous * 100, 1)


def revenue_trend(current: float, previous: Optional[float]) -> str:
    if previous is None:
        return "stable"
    if current > previous * 1.05:
        return "up"
    if current < previous * 0.95:
        return "down"
    return "stable"


def leaderboard_score(total_visits: int, unique_clients: int, months_worked: float,
                      retention_rate: float, earned_rewards: int) -> float:
    return (
        total_visits * 1
        + unique_clients * 2
        + months_worked * 10
        + retention_rate * 0.5
        + earned_rewards * 50
    )


def barber_badges(months_worked: float, total_visits: int, unique_clients: int,
                  retention_rate: float, earned_rewards: int) -> list[str]:
    badges = []

    if months_worked >= 12:
        badges.append("👑")
    elif months_worked >= 6:
        badges.append("🏆")
    elif months_worked >= 3:
        badges.append("🥇")

    if total_visits >= 1000:
        badges.append("💎")
    elif total_visits >= 500:
        badges.append("🥇")
    elif total_visits >= 100:
        badges.append("🥈")

    if unique_clients >= 200:
        badges.append("🌟")
    elif unique_clients >= 100:
        badges.append("🤝")

    if retention_rate >= 80:
        badges.append("⭐")
    if earned_rewards >= 5:
        badges.append("🎖️")

    return badges[:4]


def reward_expiry(start: datetime, valid_for_days: Optional[int]) -> Optional[datetime]:
    if not valid_for_days:
        return None
    return start + timedelta(days=valid_for_days)


def is_expired(start: datetime, valid_for_days: Optional[int], now: Optional[datetime] = None) -> bool:
    expiry = reward_expiry(start, valid_for_days)
    if expiry is None:
        return False
    return (now or utcnow()) > expiry


def discounted_price(price: float, reward_type: str, discount_percentage: Optional[int]) -> float:
    if reward_type == "free":
        return 0
    return price * (100 - (discount_percentage or 0)) / 100


def is_phone_query(query: str) -> bool:
    return bool(PHONE_QUERY_RE.match(query))


def strip_phone(query: str) -> str:
    return PHONE_PUNCTUATION_RE.sub("", query)


def generate_client_code() -> str:
    return f"C{secrets.randbelow(90000000) + 10000000}"


def generate_password(length: int = 12) -> str:
    return secrets.token_urlsafe(length)[:length]


def visit_frequency_bucket(visits: int) -> str:
    if visits <= 1:
        return "1"
    if visits <= 3:
        return "2-3"
    if visits <= 6:
        return "4-6"
    if visits <= 10:
        return "7-10"
    return "11+"


def period_key(dt: datetime, period: str) -> str:
    if period == "daily":
        return dt.strftime("%Y-%m-%d")
    if period == "monthly":
        return dt.strftime("%Y-%m")
    year, week, _ = dt.isocalendar()
    return f"{year}-W{week:02d}"


def date_range(start_date: Optional[date], end_date: Optional[date], default_days: int = 30) -> tuple[datetime, datetime]:
    """Inclusive date filter turned into a [start, end) datetime window."""
    now = utcnow()
    end = datetime.combine(end_date, datetime.min.time()) + timedelta(days=1) if end_date else now
    start = datetime.combine(start_date, datetime.min.time()) if start_date else end - timedelta(days=default_days)
    return start, end


def pagination(total: int, page: int, limit: int) -> dict:
    return {"total": total, "page": page, "limit": limit, "pages": math.ceil(total / limit) if limit else 0}

# barbershop/achievements.py

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .core import utcnow, start_of_day, start_of_week, days_between, period_key, progress_percentage
from .models import Achievement, Admin, BarberAchievement, BarberStats, Visit
from .stats import get_or_create_stats, current_month_figures

logger = logging.getLogger(__name__)

STREAK_WINDOW_DAYS = 30
CONSISTENCY_WINDOW_WEEKS = 12
TIER_ORDER = {"bronze": 0, "silver": 1, "gold": 2, "platinum": 3, "diamond": 4}


def _visits_between(session: Session, barber_id: int, start, end=None) -> int:
    query = select(func.count(Visit.id)).where(Visit.barber_id == barber_id).where(Visit.visit_date >= start)
    if end is not None:
        query = query.where(Visit.visit_date < end)
    return session.exec(query).one()


def tenure_progress(barber: Admin, achievement: Achievement) -> int:
    days = max(0, days_between(barber.join_date, utcnow()))
    if achievement.requirement_type == "days":
        return min(days, achievement.requirement)
    if achievement.requirement_type == "milestone":
        months = days // 30
        return achievement.requirement if months >= achievement.requirement else months
    return days


def visits_progress(session: Session, barber: Admin, stats: BarberStats, achievement: Achievement) -> int:
    timeframe = (achievement.requirement_details or {}).get("timeframe", "all-time")
    now = utcnow()
    if timeframe == "monthly":
        return current_month_figures(stats)["visits_count"]
    if timeframe == "weekly":
        return _visits_between(session, barber.id, start_of_week(now))
    if timeframe == "daily":
        today = start_of_day(now)
        return _visits_between(session, barber.id, today, today + timedelta(days=1))
    return stats.total_visits


def clients_progress(stats: BarberStats, achievement: Achievement) -> int:
    timeframe = (achievement.requirement_details or {}).get("timeframe", "all-time")
    if timeframe == "monthly":
        return current_month_figures(stats)["unique_clients"]
    return len(stats.unique_clients or [])


def consistency_progress(session: Session, barber: Admin, achievement: Achievement) -> tuple[int, int]:
    """Returns (progress, current_streak)."""
    details = achievement.requirement_details or {}
    today = start_of_day(utcnow())

    if achievement.subcategory == "daily_visits":
        minimum = details.get("minimum_value") or 1
        streak = 0
        for offset in range(STREAK_WINDOW_DAYS):
            day = today - timedelta(days=offset)
            if _visits_between(session, barber.id, day, day + timedelta(days=1)) < minimum:
                break
            streak += 1
        return streak, streak

    if achievement.subcategory == "weekly_consistency":
        minimum = details.get("minimum_value") or 5
        this_week = start_of_week(today)
        weeks = 0
        for offset in range(CONSISTENCY_WINDOW_WEEKS):
            week_start = this_week - timedelta(weeks=offset)
            if _visits_between(session, barber.id, week_start, week_start + timedelta(weeks=1)) >= minimum:
                weeks += 1
        return weeks, 0

    return 0, 0


def quality_progress(stats: BarberStats, achievement: Achievement) -> int:
    if achievement.subcategory == "client_retention":
        return int(stats.client_retention_rate or 0)
    if achievement.subcategory == "service_variety":
        return len(stats.service_stats or [])
    return 0


def _in_window(achievement: Achievement, now) -> bool:
    if achievement.valid_from and now < achievement.valid_from:
        return False
    if achievement.valid_until and now > achievement.valid_until:
        return False
    return True


def _progress_for(session: Session, barber: Admin, stats: BarberStats,
                  achievement: Achievement) -> Optional[tuple[int, int]]:
    category = achievement.category
    if category == "tenure":
        return tenure_progress(barber, achievement), 0
    if category == "visits":
        return visits_progress(session, barber, stats, achievement), 0
    if category == "clients":
        return clients_progress(stats, achievement), 0
    if category == "consistency":
        return consistency_progress(session, barber, achievement)
    if category == "quality":
        return quality_progress(stats, achievement), 0
    # teamwork, learning and milestone are awarded by hand
    return None


def completion_period(achievement: Achievement, now) -> str:
    """Window a repeatable achievement can be completed once in."""
    timeframe = (achievement.requirement_details or {}).get("timeframe", "all-time")
    if timeframe in ("daily", "weekly", "monthly"):
        return period_key(now, timeframe)
    return "all-time"


def apply_progress(record: BarberAchievement, achievement: Achievement, progress: int, streak: int, now):
    """Store new progress and handle completion, including repeatable resets."""
    meta = dict(record.meta or {})
    period = completion_period(achievement, now)
    was_completed = record.is_completed or meta.get("completed_period") == period

    record.progress = progress
    record.last_progress_date = now
    if streak > 0:
        record.current_streak = streak
        meta["current_streak"] = streak

    completed = False
    if progress >= achievement.requirement and not was_completed:
        record.is_completed = True
        record.completed_at = now
        record.completion_count += 1
        meta["completed_period"] = period
        completed = True

        if achievement.is_repeatable:
            cap = achievement.max_completions
            if cap is None or record.completion_count < cap:
                record.is_completed = False
                record.progress = 0

    record.meta = meta
    return completed


def update_progress(session: Session, barber: Admin):
    now = utcnow()
    stats = get_or_create_stats(session, barber.id)
    achievements = session.exec(select(Achievement).where(Achievement.is_active == True)).all()  # noqa: E712

    for achievement in achievements:
        if not _in_window(achievement, now):
            continue
        try:
            result = _progress_for(session, barber, stats, achievement)
            if result is None:
                continue
            progress, streak = result

            record = session.exec(
                select(BarberAchievement)
                .where(BarberAchievement.barber_id == barber.id)
                .where(BarberAchievement.achievement_id == achievement.id)
            ).first()
            if record is None:
                record = BarberAchievement(barber_id=barber.id, achievement_id=achievement.id)

            if apply_progress(record, achievement, progress, streak, now):
                logger.info(f"Barber {barber.id} completed achievement '{achievement.title}'")

            session.add(record)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            logger.exception(f"Error updating achievement {achievement.id} for barber {barber.id}")


def get_barber_achievements(session: Session, barber_id: int) -> list[dict]:
    achievements = session.exec(select(Achievement).where(Achievement.is_active == True)).all()  # noqa: E712
    achievements = sorted(achievements, key=lambda a: (TIER_ORDER.get(a.tier, 0), a.points))
    records = session.exec(select(BarberAchievement).where(BarberAchievement.barber_id == barber_id)).all()
    by_achievement = {r.achievement_id: r for r in records}

    result = []
    for achievement in achievements:
        record = by_achievement.get(achievement.id)
        progress = record.progress if record else 0
        result.append({
            "achievement_id": achievement.id,
            "title": achievement.title,
            "description": achievement.description,
            "category": achievement.category,
            "tier": achievement.tier,
            "badge": achievement.badge,
            "color": achievement.color,
            "icon": achievement.icon,
            "points": achievement.points,
            "progress": progress,
            "requirement": achievement.requirement,
            "is_completed": record.is_completed if record else False,
            "completed_at": record.completed_at if record else None,
            "completion_count": record.completion_count if record else 0,
            "progress_percentage": progress_percentage(progress, achievement.requirement),
            "reward": achievement.reward,
        })
    return result


def get_leaderboard(session: Session, limit: int = 50) -> list[dict]:
    rows = session.exec(
        select(BarberAchievement, Achievement, Admin)
        .join(Achievement, Achievement.id == BarberAchievement.achievement_id)
        .join(Admin, Admin.id == BarberAchievement.barber_id)
        .where(BarberAchievement.completion_count > 0)
        .where(Admin.role == "barber")
        .where(Admin.active == True)  # noqa: E712
    ).all()

    board: dict[int, dict] = {}
    for record, achievement, barber in rows:
        entry = board.setdefault(barber.id, {
            "barber_id": barber.id,
            "name": barber.name,
            "profile_picture": barber.profile_picture,
            "total_points": 0,
            "completed_achievements": 0,
            "gold_achievements": 0,
            "platinum_achievements": 0,
            "diamond_achievements": 0,
        })
        entry["total_points"] += achievement.points * record.completion_count
        entry["completed_achievements"] += 1
        if achievement.tier in ("gold", "platinum", "diamond"):
            entry[f"{achievement.tier}_achievements"] += 1

    ranked = sorted(board.values(), key=lambda e: (e["total_points"], e["completed_achievements"]), reverse=True)
    ranked = ranked[:limit]
    for index, entry in enumerate(ranked):
        entry["rank"] = index + 1
    return ranked

# barbershop/barber_rewards.py

import logging

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .core import (
    utcnow,
    months_between,
    duration_progress,
    progress_percentage,
    leaderboard_score,
    barber_badges,
)
from .models import Admin, BarberReward, BarberRewardRedemption, BarberStats
from .stats import get_or_create_stats

logger = logging.getLogger(__name__)


def current_value(barber: Admin, stats: BarberStats, requirement_type: str) -> int:
    if requirement_type == "visits":
        return stats.total_visits
    if requirement_type == "clients":
        return len(stats.unique_clients or [])
    if requirement_type == "months_worked":
        return months_between(barber.join_date, utcnow())
    if requirement_type == "client_retention":
        return round(stats.client_retention_rate or 0)
    # custom rewards are granted by hand
    return 0


def _redemptions_by_reward(session: Session, barber_id: int) -> dict[int, BarberRewardRedemption]:
    rows = session.exec(
        select(BarberRewardRedemption).where(BarberRewardRedemption.barber_id == barber_id)
    ).all()
    return {r.reward_id: r for r in rows}


def update_progress(session: Session, barber: Admin):
    """Create an 'earned' redemption for every reward the barber newly qualifies for."""
    stats = get_or_create_stats(session, barber.id)
    rewards = session.exec(
        select(BarberReward).where(BarberReward.is_active == True).order_by(BarberReward.priority)  # noqa: E712
    ).all()
    existing = _redemptions_by_reward(session, barber.id)

    for reward in rewards:
        if reward.id in existing or reward.requirement_type == "custom":
            continue
        try:
            value = current_value(barber, stats, reward.requirement_type)
            if value < reward.requirement_value:
                continue

            session.add(BarberRewardRedemption(
                barber_id=barber.id,
                reward_id=reward.id,
                status="earned",
                earned_at=utcnow(),
                progress_at_earning={
                    "total_visits": stats.total_visits,
                    "unique_clients": len(stats.unique_clients or []),
                    "months_worked": months_between(barber.join_date, utcnow()),
                    "client_retention_rate": stats.client_retention_rate,
                },
            ))
            session.commit()
            logger.info(f"Barber {barber.id} earned reward '{reward.name}'")
        except SQLAlchemyError:
            session.rollback()
            logger.exception(f"Error updating reward {reward.id} for barber {barber.id}")


def get_progress(session: Session, barber: Admin) -> list[dict]:
    stats = get_or_create_stats(session, barber.id)
    rewards = session.exec(
        select(BarberReward)
        .where(BarberReward.is_active == True)  # noqa: E712
        .order_by(BarberReward.priority, BarberReward.category)
    ).all()
    redemptions = _redemptions_by_reward(session, barber.id)

    result = []
    for reward in rewards:
        value = current_value(barber, stats, reward.requirement_type)
        percentage = progress_percentage(value, reward.requirement_value)
        duration = None
        if reward.requirement_type == "months_worked":
            duration = duration_progress(barber.join_date, reward.requirement_value)
            percentage = duration["progress_percentage"]
            value = duration["months"]

        redemption = redemptions.get(reward.id)
        result.append({
            "reward_id": reward.id,
            "name": reward.name,
            "description": reward.description,
            "reward_type": reward.reward_type,
            "reward_value": reward.reward_value,
            "requirement_type": reward.requirement_type,
            "requirement_value": reward.requirement_value,
            "requirement_description": reward.requirement_description,
            "category": reward.category,
            "icon": reward.icon,
            "color": reward.color,
            "priority": reward.priority,
            "current_value": value,
            "is_eligible": value >= reward.requirement_value,
            "is_earned": redemption is not None,
            "is_redeemed": redemption is not None and redemption.status == "redeemed",
            "earned_at": redemption.earned_at if redemption else None,
            "redeemed_at": redemption.redeemed_at if redemption else None,
            "redemption_id": redemption.id if redemption else None,
            "progress_percentage": percentage,
            "duration_progress": duration,
        })
    return result


def mark_redeemed(session: Session, redemption_id: int, admin_id: int, notes=None) -> BarberRewardRedemption:
    redemption = session.get(BarberRewardRedemption, redemption_id)
    if redemption is None:
        raise HTTPException(status_code=404, detail="Redemption not found")
    if redemption.status == "redeemed":
        raise HTTPException(status_code=409, detail="Reward already redeemed")

    redemption.status = "redeemed"
    redemption.redeemed_at = utcnow()
    redemption.redeemed_by = admin_id
    redemption.notes = notes or ""
    session.add(redemption)
    session.commit()
    session.refresh(redemption)
    logger.info(f"Barber reward redemption {redemption.id} marked redeemed by admin {admin_id}")
    return redemption


def get_leaderboard(session: Session) -> list[dict]:
    now = utcnow()
    rows = session.exec(
        select(BarberStats, Admin)
        .join(Admin, Admin.id == BarberStats.barber_id)
        .where(Admin.role == "barber")
        .where(Admin.active == True)  # noqa: E712
    ).all()

    entries = []
    for stats, barber in rows:
        redemptions = session.exec(
            select(BarberRewardRedemption).where(BarberRewardRedemption.barber_id == barber.id)
        ).all()
        earned = sum(1 for r in redemptions if r.status == "earned")
        redeemed = sum(1 for r in redemptions if r.status == "redeemed")
        months_worked = round((now - barber.join_date).total_seconds() / 86400 / 30, 1)
        unique_clients = len(stats.unique_clients or [])
        retention = round(stats.client_retention_rate or 0, 1)

        entries.append({
            "barber_id": barber.id,
            "name": barber.name,
            "profile_picture": barber.profile_picture,
            "join_date": barber.join_date,
            "months_worked": months_worked,
            "total_visits": stats.total_visits,
            "unique_clients": unique_clients,
            "client_retention_rate": retention,
            "earned_rewards": earned,
            "redeemed_rewards": redeemed,
            "leaderboard_score": round(leaderboard_score(
                stats.total_visits, unique_clients, months_worked, stats.client_retention_rate or 0, earned
            )),
            "efficiency": round(stats.average_visits_per_day or 0, 1),
            "badges": barber_badges(months_worked, stats.total_visits, unique_clients, retention, earned),
        })

    entries.sort(key=lambda e: (e["leaderboard_score"], e["total_visits"], e["months_worked"]), reverse=True)
    for index, entry in enumerate(entries):
        entry["rank"] = index + 1
    return entries


def get_statistics(session: Session) -> dict:
    total_rewards = session.exec(
        select(func.count(BarberReward.id)).where(BarberReward.is_active == True)  # noqa: E712
    ).one()
    total_redemptions = session.exec(select(func.count(BarberRewardRedemption.id))).one()
    pending = session.exec(
        select(func.count(BarberRewardRedemption.id)).where(BarberRewardRedemption.status == "earned")
    ).one()
    active_barbers = session.exec(
        select(func.count(Admin.id)).where(Admin.role == "barber").where(Admin.active == True)  # noqa: E712
    ).one()

    by_category = session.exec(
        select(BarberReward.category, func.count(BarberReward.id))
        .where(BarberReward.is_active == True)  # noqa: E712
        .group_by(BarberReward.category)
    ).all()
    by_type = session.exec(
        select(BarberReward.reward_type, func.count(BarberRewardRedemption.id))
        .select_from(BarberRewardRedemption)
        .join(BarberReward, BarberReward.id == BarberRewardRedemption.reward_id)
        .group_by(BarberReward.reward_type)
    ).all()

    return {
        "total_rewards": total_rewards,
        "total_redemptions": total_redemptions,
        "pending_redemptions": pending,
        "active_barbers": active_barbers,
        "redemption_rate": round(total_redemptions / active_barbers, 2) if active_barbers else 0,
        "categories": [{"category": c, "count": n} for c, n in by_category],
        "redemptions_by_type": [{"reward_type": t, "count": n} for t, n in by_type],
    }

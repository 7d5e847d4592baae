# barbershop/routers/achievements_routes.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.core import utcnow
from barbershop.db import get_session
from barbershop.models import Achievement, Admin, BarberAchievement
from barbershop.schemas import AchievementCategory, AchievementCreate, AchievementUpdate
from barbershop.deps import require_admin, require_barber
from barbershop import achievements

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["achievements"],
)


def _get_achievement_or_404(session: Session, achievement_id: int) -> Achievement:
    achievement = session.get(Achievement, achievement_id)
    if achievement is None:
        raise HTTPException(status_code=404, detail="Achievement not found")
    return achievement


@router.get("/admin/achievements")
def list_achievements(
    category: Optional[AchievementCategory] = None,
    include_inactive: bool = True,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    query = select(Achievement)
    if category is not None:
        query = query.where(Achievement.category == category.value)
    if not include_inactive:
        query = query.where(Achievement.is_active == True)  # noqa: E712
    return session.exec(query.order_by(Achievement.category, Achievement.requirement)).all()


@router.get("/admin/achievements/leaderboard")
def admin_achievement_leaderboard(
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    return {"leaderboard": achievements.get_leaderboard(session)}


@router.post("/admin/achievements", status_code=201)
def create_achievement(
    payload: AchievementCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    achievement = Achievement(**payload.model_dump(mode="json", exclude={"valid_from", "valid_until"}))
    achievement.valid_from = payload.valid_from
    achievement.valid_until = payload.valid_until
    session.add(achievement)
    session.commit()
    session.refresh(achievement)
    logger.info(f"Achievement '{achievement.title}' created by {current_user['name']}")
    return achievement


@router.get("/admin/achievements/{achievement_id}")
def get_achievement(
    achievement_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    return _get_achievement_or_404(session, achievement_id)


@router.put("/admin/achievements/{achievement_id}")
def update_achievement(
    achievement_id: int,
    payload: AchievementUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    achievement = _get_achievement_or_404(session, achievement_id)
    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if hasattr(value, "value"):
            value = value.value
        setattr(achievement, field, value)
    achievement.updated_at = utcnow()

    session.add(achievement)
    session.commit()
    session.refresh(achievement)
    return achievement


@router.delete("/admin/achievements/{achievement_id}", status_code=204)
def delete_achievement(
    achievement_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    achievement = _get_achievement_or_404(session, achievement_id)
    records = session.exec(
        select(BarberAchievement).where(BarberAchievement.achievement_id == achievement.id)
    ).all()
    for record in records:
        session.delete(record)
    session.delete(achievement)
    session.commit()
    return None


@router.get("/barber/achievements")
def my_achievements(
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_barber),
):
    barber = session.get(Admin, current_user["id"])
    achievements.update_progress(session, barber)

    items = achievements.get_barber_achievements(session, barber.id)
    completed = [a for a in items if a["is_completed"]]
    return {
        "achievements": items,
        "summary": {
            "total": len(items),
            "completed": len(completed),
            "total_points": sum(a["points"] for a in completed),
        },
    }


@router.get("/barber/leaderboard")
def barber_leaderboard(
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_barber),
):
    board = achievements.get_leaderboard(session)
    mine = next((e for e in board if e["barber_id"] == current_user["id"]), None)
    return {"leaderboard": board, "my_rank": mine["rank"] if mine else None}

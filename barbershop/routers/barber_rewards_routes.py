# barbershop/routers/barber_rewards_routes.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.core import utcnow
from barbershop.db import get_session
from barbershop.models import Admin, BarberReward, BarberRewardRedemption
from barbershop.schemas import BarberRewardCreate, BarberRewardUpdate, RedemptionRedeem
from barbershop.deps import require_admin, require_barber
from barbershop import barber_rewards

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["barber-rewards"],
)


def _get_reward_or_404(session: Session, reward_id: int) -> BarberReward:
    reward = session.get(BarberReward, reward_id)
    if reward is None:
        raise HTTPException(status_code=404, detail="Barber reward not found")
    return reward


@router.get("/admin/barber-rewards")
def list_barber_rewards(
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    return session.exec(select(BarberReward).order_by(BarberReward.priority, BarberReward.name)).all()


@router.get("/admin/barber-rewards/redemptions")
def list_redemptions(
    status: Optional[str] = None,
    barber_id: Optional[int] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    query = (
        select(BarberRewardRedemption, BarberReward, Admin)
        .join(BarberReward, BarberReward.id == BarberRewardRedemption.reward_id)
        .join(Admin, Admin.id == BarberRewardRedemption.barber_id)
    )
    if status:
        query = query.where(BarberRewardRedemption.status == status)
    if barber_id is not None:
        query = query.where(BarberRewardRedemption.barber_id == barber_id)

    rows = session.exec(query.order_by(BarberRewardRedemption.earned_at.desc())).all()
    return [
        {
            **redemption.model_dump(),
            "reward_name": reward.name,
            "reward_type": reward.reward_type,
            "reward_value": reward.reward_value,
            "barber_name": barber.name,
        }
        for redemption, reward, barber in rows
    ]


@router.post("/admin/barber-rewards/redemptions/{redemption_id}/redeem")
def redeem_barber_reward(
    redemption_id: int,
    payload: Optional[RedemptionRedeem] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    notes = payload.notes if payload else None
    return barber_rewards.mark_redeemed(session, redemption_id, current_user["id"], notes)


@router.get("/admin/barber-rewards/statistics")
def barber_reward_statistics(
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    return barber_rewards.get_statistics(session)


@router.get("/admin/barber-rewards/leaderboard")
def barber_reward_leaderboard(
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    return {"leaderboard": barber_rewards.get_leaderboard(session)}


@router.post("/admin/barber-rewards", status_code=201)
def create_barber_reward(
    payload: BarberRewardCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    reward = BarberReward(**payload.model_dump(mode="json"))
    session.add(reward)
    session.commit()
    session.refresh(reward)
    logger.info(f"Barber reward '{reward.name}' created by {current_user['name']}")
    return reward


@router.get("/admin/barber-rewards/{reward_id}")
def get_barber_reward(
    reward_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    return _get_reward_or_404(session, reward_id)


@router.put("/admin/barber-rewards/{reward_id}")
def update_barber_reward(
    reward_id: int,
    payload: BarberRewardUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    reward = _get_reward_or_404(session, reward_id)
    for field, value in payload.model_dump(mode="json", exclude_unset=True).items():
        if value is not None:
            setattr(reward, field, value)
    reward.updated_at = utcnow()

    session.add(reward)
    session.commit()
    session.refresh(reward)
    return reward


@router.delete("/admin/barber-rewards/{reward_id}", status_code=204)
def delete_barber_reward(
    reward_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    reward = _get_reward_or_404(session, reward_id)
    redemptions = session.exec(
        select(BarberRewardRedemption).where(BarberRewardRedemption.reward_id == reward.id)
    ).all()
    for redemption in redemptions:
        session.delete(redemption)
    session.delete(reward)
    session.commit()
    return None


@router.get("/barber/rewards")
def my_rewards(
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_barber),
):
    barber = session.get(Admin, current_user["id"])
    barber_rewards.update_progress(session, barber)

    progress = barber_rewards.get_progress(session, barber)
    return {
        "rewards": progress,
        "summary": {
            "total": len(progress),
            "earned": sum(1 for r in progress if r["is_earned"]),
            "redeemed": sum(1 for r in progress if r["is_redeemed"]),
        },
    }

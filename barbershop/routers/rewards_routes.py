# barbershop/routers/rewards_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_
from sqlmodel import Session, select

from barbershop.core import utcnow, pagination
from barbershop.db import get_session
from barbershop.models import Client, Reward, Service, Visit
from barbershop.schemas import RewardCreate, RewardUpdate
from barbershop.deps import require_admin, require_staff
from barbershop.loyalty import reward_public

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/rewards",
    tags=["rewards"],
)


def _get_reward_or_404(session: Session, reward_id: int) -> Reward:
    reward = session.get(Reward, reward_id)
    if reward is None:
        raise HTTPException(status_code=404, detail="Reward not found")
    return reward


def _validate_reward(session: Session, reward_type: str, discount_percentage, applicable_services):
    if reward_type == "discount" and not discount_percentage:
        raise HTTPException(status_code=422, detail="Discount percentage is required for discount rewards")
    for service_id in applicable_services or []:
        if session.get(Service, service_id) is None:
            raise HTTPException(status_code=422, detail=f"Service {service_id} does not exist")


@router.get("")
def list_rewards(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str = "",
    active_only: bool = False,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_staff),
):
    query = select(Reward)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(or_(Reward.name.ilike(pattern), Reward.description.ilike(pattern)))
    if active_only:
        query = query.where(Reward.is_active == True)  # noqa: E712

    total = session.exec(select(func.count()).select_from(query.subquery())).one()
    rewards = session.exec(
        query.order_by(Reward.visits_required, Reward.name).offset((page - 1) * limit).limit(limit)
    ).all()
    return {
        "rewards": [reward_public(r) for r in rewards],
        "pagination": pagination(total, page, limit),
    }


@router.get("/statistics")
def reward_statistics(
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    rewards = session.exec(select(Reward)).all()
    redemption_rows = session.exec(
        select(Visit.redeemed_reward_id, func.count(Visit.id))
        .where(Visit.reward_redeemed == True)  # noqa: E712
        .group_by(Visit.redeemed_reward_id)
    ).all()
    redemptions = {reward_id: count for reward_id, count in redemption_rows}

    by_type: dict[str, int] = {}
    for reward in rewards:
        by_type[reward.reward_type] = by_type.get(reward.reward_type, 0) + 1

    return {
        "total_rewards": len(rewards),
        "active_rewards": sum(1 for r in rewards if r.is_active),
        "total_redemptions": sum(redemptions.values()),
        "redemptions_by_reward": [
            {"reward_id": r.id, "name": r.name, "redemptions": redemptions.get(r.id, 0)}
            for r in rewards
        ],
        "rewards_by_type": by_type,
    }


@router.post("", status_code=201)
def create_reward(
    payload: RewardCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    _validate_reward(session, payload.reward_type.value, payload.discount_percentage, payload.applicable_services)

    reward = Reward(
        name=payload.name.strip(),
        description=payload.description.strip(),
        visits_required=payload.visits_required,
        reward_type=payload.reward_type.value,
        discount_percentage=payload.discount_percentage if payload.reward_type == "discount" else None,
        is_active=payload.is_active,
        applicable_services=list(payload.applicable_services),
        max_redemptions=payload.max_redemptions,
        valid_for_days=payload.valid_for_days,
    )
    session.add(reward)
    session.commit()
    session.refresh(reward)
    logger.info(f"Reward '{reward.name}' created by {current_user['name']}")
    return reward_public(reward)


@router.get("/{reward_id}")
def get_reward(
    reward_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_staff),
):
    return reward_public(_get_reward_or_404(session, reward_id))


@router.put("/{reward_id}")
def update_reward(
    reward_id: int,
    payload: RewardUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    reward = _get_reward_or_404(session, reward_id)
    changes = payload.model_dump(exclude_unset=True, mode="json")

    reward_type = changes.get("reward_type", reward.reward_type)
    discount = changes.get("discount_percentage", reward.discount_percentage)
    _validate_reward(session, reward_type, discount, changes.get("applicable_services"))

    for field, value in changes.items():
        setattr(reward, field, value)
    if reward.reward_type == "free":
        reward.discount_percentage = None
    reward.updated_at = utcnow()

    session.add(reward)
    session.commit()
    session.refresh(reward)
    return reward_public(reward)


@router.patch("/{reward_id}/toggle")
def toggle_reward(
    reward_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    reward = _get_reward_or_404(session, reward_id)
    reward.is_active = not reward.is_active
    reward.updated_at = utcnow()
    session.add(reward)
    session.commit()
    session.refresh(reward)
    return reward_public(reward)


@router.delete("/{reward_id}", status_code=204)
def delete_reward(
    reward_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    reward = _get_reward_or_404(session, reward_id)

    # Nobody can keep working towards a reward that no longer exists
    clients = session.exec(select(Client).where(Client.selected_reward_id == reward.id)).all()
    for client in clients:
        client.selected_reward_id = None
        client.selected_reward_start_visits = None
        if client.loyalty_status == "milestone_reached":
            client.loyalty_status = "active"
        session.add(client)

    # Past redemptions keep their snapshot in Visit.redemption
    visits = session.exec(select(Visit).where(Visit.redeemed_reward_id == reward.id)).all()
    for visit in visits:
        visit.redeemed_reward_id = None
        session.add(visit)
    session.flush()

    session.delete(reward)
    session.commit()
    logger.info(f"Reward {reward_id} deleted by {current_user['name']}")
    return None

# barbershop/loyalty.py
#
# Loyalty bookkeeping for a single client. Callers own the session and commit.

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlmodel import Session, select

from .core import utcnow, is_expired, reward_expiry, discounted_price
from .models import Client, Reward, Service, Visit

logger = logging.getLogger(__name__)


def _reward_start(client: Client):
    return client.loyalty_join_date or client.date_created


def redemption_counts(session: Session, client_id: int) -> dict[int, int]:
    rows = session.exec(
        select(Visit.redeemed_reward_id, func.count(Visit.id))
        .where(Visit.client_id == client_id)
        .where(Visit.reward_redeemed == True)  # noqa: E712
        .where(Visit.redeemed_reward_id != None)  # noqa: E711
        .group_by(Visit.redeemed_reward_id)
    ).all()
    return {reward_id: count for reward_id, count in rows}


def _at_max(reward: Reward, counts: dict[int, int]) -> bool:
    if not reward.max_redemptions:
        return False
    return counts.get(reward.id, 0) >= reward.max_redemptions


def _clear_selection(client: Client):
    client.selected_reward_id = None
    client.selected_reward_start_visits = None
    client.loyalty_status = "active"


def reward_public(reward: Reward) -> dict:
    return {
        "id": reward.id,
        "name": reward.name,
        "description": reward.description,
        "visits_required": reward.visits_required,
        "reward_type": reward.reward_type,
        "discount_percentage": reward.discount_percentage,
        "is_active": reward.is_active,
        "applicable_services": list(reward.applicable_services or []),
        "max_redemptions": reward.max_redemptions,
        "valid_for_days": reward.valid_for_days,
    }


def get_loyalty_status(session: Session, client: Client) -> dict:
    now = utcnow()
    changed = False

    selected = session.get(Reward, client.selected_reward_id) if client.selected_reward_id else None
    if client.selected_reward_id and selected is None:
        _clear_selection(client)
        changed = True

    # 1) Drop an expired selection
    if selected is not None and selected.valid_for_days:
        if is_expired(_reward_start(client), selected.valid_for_days, now):
            logger.info(f"Selected reward {selected.id} expired for client {client.id}")
            _clear_selection(client)
            selected = None
            changed = True

    # 2) Rewards the client could redeem right now
    counts = redemption_counts(session, client.id)
    lifetime = client.total_lifetime_visits
    progress = client.current_progress_visits
    active_rewards = session.exec(
        select(Reward).where(Reward.is_active == True).order_by(Reward.visits_required)  # noqa: E712
    ).all()
    eligible = [
        r for r in active_rewards
        if lifetime > 0
        and r.visits_required <= lifetime
        and r.visits_required <= progress
        and not _at_max(r, counts)
    ]

    # 3) Progress against the selection
    visits_to_next_reward = 0
    progress_pct = 0
    can_redeem = False
    milestone_reached = False
    expires_at = None

    if selected is not None:
        required = selected.visits_required
        visits_to_next_reward = max(0, required - progress)
        progress_pct = round(min(100, progress / required * 100)) if required else 100
        expires_at = reward_expiry(_reward_start(client), selected.valid_for_days)

        can_redeem = (
            progress >= required
            and lifetime > 0
            and progress > 0
            and not _at_max(selected, counts)
        )
        milestone_reached = can_redeem

        new_status = "milestone_reached" if can_redeem else "active"
        if client.loyalty_status != new_status and (can_redeem or client.loyalty_status == "milestone_reached"):
            client.loyalty_status = new_status
            changed = True
    elif eligible:
        milestone_reached = True

    if changed:
        session.add(client)
        session.commit()
        session.refresh(client)

    return {
        "client_id": client.id,
        "loyalty_status": client.loyalty_status,
        "selected_reward": reward_public(selected) if selected else None,
        "selected_reward_expires_at": expires_at,
        "eligible_rewards": [reward_public(r) for r in eligible],
        "visits_to_next_reward": visits_to_next_reward,
        "progress_percentage": progress_pct,
        "can_redeem": can_redeem,
        "total_visits": lifetime,
        "current_progress_visits": progress,
        "rewards_redeemed": client.rewards_redeemed,
        "milestone_reached": milestone_reached,
    }


def select_reward(session: Session, client: Client, reward_id: int) -> dict:
    reward = session.get(Reward, reward_id)
    if reward is None or not reward.is_active:
        raise HTTPException(status_code=404, detail="Reward not found or inactive")

    client.selected_reward_id = reward.id
    client.selected_reward_start_visits = client.current_progress_visits
    client.loyalty_status = "active"
    if client.loyalty_join_date is None:
        client.loyalty_join_date = utcnow()

    session.add(client)
    session.commit()
    session.refresh(client)
    logger.info(f"Client {client.id} selected reward {reward.id}")
    return get_loyalty_status(session, client)


def record_visit(client: Client, visit: Visit):
    """Bump the visit counters; the caller adds both rows and commits."""
    client.visit_count += 1
    client.total_lifetime_visits += 1
    client.current_progress_visits += 1
    client.last_visit = visit.visit_date

    if client.loyalty_status == "new":
        client.loyalty_status = "active"
        if client.loyalty_join_date is None:
            client.loyalty_join_date = utcnow()

    visit.visit_number = client.visit_count


def _special_visit(session: Session, client: Client, reward: Reward, redeemed_by: str,
                   barber_id: Optional[int]) -> Visit:
    services = []
    for service_id in reward.applicable_services or []:
        service = session.get(Service, service_id)
        if service is None:
            continue
        services.append({
            "service_id": service.id,
            "name": service.name,
            "price": discounted_price(service.price, reward.reward_type, reward.discount_percentage),
            "duration": service.duration_minutes or 30,
        })

    if reward.reward_type == "free":
        label = "Free Service"
    else:
        label = f"{reward.discount_percentage}% Discount Applied"

    visit = Visit(
        client_id=client.id,
        visit_date=utcnow(),
        services=services,
        total_price=sum(s["price"] for s in services),
        barber=redeemed_by,
        barber_id=barber_id,
        visit_number=client.visit_count + 1,
        notes=f"🎁 REWARD REDEMPTION: {reward.name} - {label}",
        is_reward_redemption=True,
    )

    # progress is not bumped: this visit is the redemption itself
    client.visit_count += 1
    client.total_lifetime_visits += 1
    client.last_visit = visit.visit_date
    return visit


def redeem_reward(
    session: Session,
    client: Client,
    reward_id: int,
    redeemed_by: str,
    barber_id: Optional[int] = None,
    visit_id: Optional[int] = None,
    create_special_visit: bool = False,
) -> dict:
    reward = session.get(Reward, reward_id)
    if reward is None or not reward.is_active:
        raise HTTPException(status_code=404, detail="Reward not found or inactive")

    progress = client.current_progress_visits
    lifetime = client.total_lifetime_visits
    required = reward.visits_required

    # 1) Enough visits
    if progress < required:
        raise HTTPException(
            status_code=400,
            detail=(
                f"Client needs {required - progress} more visits to redeem this reward. "
                f"Current progress: {progress}/{required}"
            ),
        )
    if lifetime < required:
        raise HTTPException(
            status_code=400,
            detail=f"Client needs {required - lifetime} more total visits to redeem this reward",
        )
    if lifetime == 0 or progress == 0:
        raise HTTPException(status_code=400, detail="Client must have at least 1 visit to redeem any reward")

    # 2) Still valid
    if reward.valid_for_days and is_expired(_reward_start(client), reward.valid_for_days):
        raise HTTPException(status_code=400, detail="This reward has expired. Please select a new reward.")

    # 3) Redemption cap
    if _at_max(reward, redemption_counts(session, client.id)):
        raise HTTPException(
            status_code=400,
            detail=f"Client has already redeemed this reward the maximum number of times ({reward.max_redemptions})",
        )

    # 4) Visit that carries the redemption
    visit = None
    if visit_id is not None:
        visit = session.get(Visit, visit_id)
        if visit is None or visit.client_id != client.id:
            raise HTTPException(status_code=404, detail="Visit not found")
    elif create_special_visit:
        visit = _special_visit(session, client, reward, redeemed_by, barber_id)

    now = utcnow()
    redemption = {
        "reward_id": reward.id,
        "reward_name": reward.name,
        "reward_type": reward.reward_type,
        "discount_percentage": reward.discount_percentage,
        "redeemed_at": now.isoformat(),
        "redeemed_by": redeemed_by,
        "previous_visit_count": progress,
    }
    if reward.reward_type == "free":
        redemption["services_free"] = list(reward.applicable_services or [])

    if visit is not None:
        visit.reward_redeemed = True
        visit.redeemed_reward_id = reward.id
        visit.redemption = redemption
        session.add(visit)

    # 5) Counters; excess progress carries over to the next reward
    client.rewards_redeemed += 1
    client.rewards_earned += 1
    client.current_progress_visits = max(0, progress - required)
    _clear_selection(client)

    session.add(client)
    session.commit()
    session.refresh(client)
    if visit is not None:
        session.refresh(visit)

    logger.info(f"Client {client.id} redeemed reward {reward.id} (by {redeemed_by})")
    return {
        "success": True,
        "redemption": redemption,
        "visit_id": visit.id if visit is not None else None,
        "loyalty_status": get_loyalty_status(session, client),
    }


def get_reward_history(session: Session, client: Client, reward_id: Optional[int] = None) -> list[dict]:
    query = (
        select(Visit)
        .where(Visit.client_id == client.id)
        .where(Visit.reward_redeemed == True)  # noqa: E712
    )
    if reward_id is not None:
        query = query.where(Visit.redeemed_reward_id == reward_id)

    visits = session.exec(query.order_by(Visit.visit_date.desc(), Visit.id.desc())).all()
    return [
        {
            "visit_id": v.id,
            "visit_date": v.visit_date,
            "reward_id": v.redeemed_reward_id,
            "redemption": v.redemption,
            "total_price": v.total_price,
            "services": v.services,
        }
        for v in visits
    ]


def get_available_rewards(session: Session, client: Client) -> list[Reward]:
    counts = redemption_counts(session, client.id)
    rewards = session.exec(
        select(Reward).where(Reward.is_active == True).order_by(Reward.visits_required)  # noqa: E712
    ).all()
    return [r for r in rewards if not _at_max(r, counts)]


def get_loyalty_statistics(session: Session) -> dict:
    total_clients = session.exec(
        select(func.count(Client.id)).where(Client.account_active == True)  # noqa: E712
    ).one()
    members = session.exec(select(func.count(Client.id)).where(Client.loyalty_status != "new")).one()
    active = session.exec(select(func.count(Client.id)).where(Client.loyalty_status == "active")).one()
    milestone = session.exec(
        select(func.count(Client.id)).where(Client.loyalty_status == "milestone_reached")
    ).one()
    redemptions = session.exec(
        select(func.count(Visit.id)).where(Visit.reward_redeemed == True)  # noqa: E712
    ).one()
    avg_visits = session.exec(
        select(func.avg(Client.total_lifetime_visits)).where(Client.loyalty_status != "new")
    ).one()

    popular_rows = session.exec(
        select(Visit.redeemed_reward_id, func.count(Visit.id).label("count"))
        .where(Visit.reward_redeemed == True)  # noqa: E712
        .where(Visit.redeemed_reward_id != None)  # noqa: E711
        .group_by(Visit.redeemed_reward_id)
        .order_by(func.count(Visit.id).desc())
        .limit(5)
    ).all()
    popular = []
    for reward_id, count in popular_rows:
        reward = session.get(Reward, reward_id)
        if reward is None:
            continue
        popular.append({"reward_id": reward_id, "name": reward.name, "count": count})

    return {
        "total_clients": total_clients,
        "loyalty_members": members,
        "active_members": active,
        "milestone_reached": milestone,
        "total_redemptions": redemptions,
        "average_visits": float(avg_visits or 0),
        "popular_rewards": popular,
        "loyalty_participation_rate": round(members / total_clients * 100, 1) if total_clients else 0,
    }


def reset_loyalty(session: Session, client: Client) -> dict:
    client.current_progress_visits = 0
    _clear_selection(client)
    session.add(client)
    session.commit()
    session.refresh(client)
    logger.info(f"Loyalty progress reset for client {client.id}")
    return get_loyalty_status(session, client)

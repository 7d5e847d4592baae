# barbershop/routers/loyalty_routes.py

from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from barbershop.core import utcnow
from barbershop.db import get_session
from barbershop.models import Admin
from barbershop.schemas import RewardRedeem, RewardSelect
from barbershop.auth import get_current_user
from barbershop.deps import require_admin, require_staff, require_self_or_staff, get_client_or_404
from barbershop.exports import csv_response
from barbershop import loyalty

router = APIRouter(
    prefix="/loyalty",
    tags=["loyalty"],
)


@router.get("/statistics")
def loyalty_statistics(
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    return loyalty.get_loyalty_statistics(session)


@router.get("/{client_ref}")
def loyalty_status(
    client_ref: str,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    client = get_client_or_404(session, client_ref)
    require_self_or_staff(current_user, client.id)
    return loyalty.get_loyalty_status(session, client)


@router.post("/{client_ref}")
def select_reward(
    client_ref: str,
    payload: RewardSelect,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    client = get_client_or_404(session, client_ref)
    require_self_or_staff(current_user, client.id)
    return loyalty.select_reward(session, client, payload.reward_id)


@router.get("/{client_ref}/rewards")
def available_rewards(
    client_ref: str,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    client = get_client_or_404(session, client_ref)
    require_self_or_staff(current_user, client.id)
    rewards = loyalty.get_available_rewards(session, client)
    return {"rewards": [loyalty.reward_public(r) for r in rewards]}


@router.post("/{client_ref}/redeem")
def redeem_reward(
    client_ref: str,
    payload: RewardRedeem,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_staff),
):
    client = get_client_or_404(session, client_ref)
    staff = session.get(Admin, current_user["id"])
    return loyalty.redeem_reward(
        session,
        client,
        payload.reward_id,
        redeemed_by=staff.name,
        barber_id=staff.id if staff.is_barber else None,
        visit_id=payload.visit_id,
        create_special_visit=payload.create_special_visit,
    )


@router.get("/{client_ref}/history")
def reward_history(
    client_ref: str,
    reward_id: Optional[int] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    client = get_client_or_404(session, client_ref)
    require_self_or_staff(current_user, client.id)
    return {"history": loyalty.get_reward_history(session, client, reward_id)}


@router.get("/{client_ref}/export")
def export_loyalty(
    client_ref: str,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    client = get_client_or_404(session, client_ref)
    require_self_or_staff(current_user, client.id)
    history = loyalty.get_reward_history(session, client)

    rows = []
    for item in history:
        redemption = item["redemption"] or {}
        rows.append([
            item["visit_date"].strftime("%Y-%m-%d %H:%M"),
            redemption.get("reward_name", ""),
            redemption.get("reward_type", ""),
            redemption.get("discount_percentage") or "",
            redemption.get("redeemed_by", ""),
            f"{item['total_price']:.2f}",
        ])

    return csv_response(
        f"loyalty_{client.client_code}_{utcnow().strftime('%Y%m%d')}.csv",
        ["Date", "Reward", "Type", "Discount %", "Redeemed By", "Visit Total"],
        rows,
    )


@router.post("/{client_ref}/reset")
def reset_loyalty(
    client_ref: str,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    client = get_client_or_404(session, client_ref)
    return loyalty.reset_loyalty(session, client)

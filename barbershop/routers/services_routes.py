# barbershop/routers/services_routes.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from barbershop.core import utcnow, pagination
from barbershop.db import get_session
from barbershop.models import Reward, Service, ServiceCategory, Transformation
from barbershop.schemas import CategoryCreate, CategoryUpdate, ServiceCreate, ServiceUpdate
from barbershop.deps import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["services"],
)


def _get_service_or_404(session: Session, service_id: int) -> Service:
    service = session.get(Service, service_id)
    if service is None:
        raise HTTPException(status_code=404, detail="Service not found")
    return service


def _get_category_or_404(session: Session, category_id: int) -> ServiceCategory:
    category = session.get(ServiceCategory, category_id)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


def _require_category(session: Session, category_id: int):
    if session.get(ServiceCategory, category_id) is None:
        raise HTTPException(status_code=422, detail="Category does not exist")


# --- services ---

@router.get("/services")
def list_services(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    search: str = "",
    category_id: Optional[int] = None,
    active_only: bool = True,
    session: Session = Depends(get_session),
):
    query = select(Service)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(or_(Service.name.ilike(pattern), Service.description.ilike(pattern)))
    if category_id is not None:
        query = query.where(Service.category_id == category_id)
    if active_only:
        query = query.where(Service.is_active == True)  # noqa: E712

    total = session.exec(select(func.count()).select_from(query.subquery())).one()
    services = session.exec(
        query.order_by(Service.popularity_score.desc(), Service.name)
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()
    return {
        "services": services,
        "pagination": pagination(total, page, limit),
    }


@router.get("/services/{service_id}")
def get_service(
    service_id: int,
    session: Session = Depends(get_session),
):
    return _get_service_or_404(session, service_id)


@router.post("/services", status_code=201)
def create_service(
    payload: ServiceCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    _require_category(session, payload.category_id)

    service = Service(**payload.model_dump())
    session.add(service)
    session.commit()
    session.refresh(service)
    logger.info(f"Service '{service.name}' created by {current_user['name']}")
    return service


@router.put("/services/{service_id}")
def update_service(
    service_id: int,
    payload: ServiceUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    service = _get_service_or_404(session, service_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("category_id") is not None:
        _require_category(session, changes["category_id"])

    for field, value in changes.items():
        if value is not None:
            setattr(service, field, value)
    service.updated_at = utcnow()

    session.add(service)
    session.commit()
    session.refresh(service)
    return service


@router.patch("/services/{service_id}/toggle")
def toggle_service(
    service_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    service = _get_service_or_404(session, service_id)
    service.is_active = not service.is_active
    service.updated_at = utcnow()
    session.add(service)
    session.commit()
    session.refresh(service)
    return service


@router.delete("/services/{service_id}", status_code=204)
def delete_service(
    service_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    service = _get_service_or_404(session, service_id)

    for transformation in session.exec(select(Transformation).where(Transformation.service_id == service.id)).all():
        transformation.service_id = None
        session.add(transformation)

    for reward in session.exec(select(Reward)).all():
        if service.id in reward.applicable_services:
            reward.applicable_services = [s for s in reward.applicable_services if s != service.id]
            session.add(reward)
    session.flush()

    session.delete(service)
    session.commit()
    logger.info(f"Service {service_id} deleted by {current_user['name']}")
    return None


# --- categories ---

@router.get("/service-categories")
def list_categories(
    active_only: bool = False,
    session: Session = Depends(get_session),
):
    query = select(ServiceCategory)
    if active_only:
        query = query.where(ServiceCategory.is_active == True)  # noqa: E712
    categories = session.exec(query.order_by(ServiceCategory.display_order, ServiceCategory.name)).all()

    counts = dict(session.exec(
        select(Service.category_id, func.count(Service.id)).group_by(Service.category_id)
    ).all())
    return [
        {**category.model_dump(), "service_count": counts.get(category.id, 0)}
        for category in categories
    ]


@router.post("/service-categories", status_code=201)
def create_category(
    payload: CategoryCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    category = ServiceCategory(**payload.model_dump())
    session.add(category)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Category name already exists")

    session.refresh(category)
    return category


@router.put("/service-categories/{category_id}")
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    category = _get_category_or_404(session, category_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(category, field, value)
    category.updated_at = utcnow()

    session.add(category)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Category name already exists")

    session.refresh(category)
    return category


@router.delete("/service-categories/{category_id}", status_code=204)
def delete_category(
    category_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    category = _get_category_or_404(session, category_id)

    in_use = session.exec(select(func.count(Service.id)).where(Service.category_id == category.id)).one()
    if in_use:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot delete category with {in_use} service(s). Move or delete them first.",
        )

    session.delete(category)
    session.commit()
    return None

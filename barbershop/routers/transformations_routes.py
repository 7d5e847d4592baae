# barbershop/routers/transformations_routes.py

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.core import utcnow
from barbershop.db import get_session
from barbershop.models import Admin, Service, Transformation
from barbershop.schemas import TransformationCreate, TransformationUpdate
from barbershop.deps import require_admin

router = APIRouter(
    tags=["transformations"],
)


def _get_transformation_or_404(session: Session, transformation_id: int) -> Transformation:
    transformation = session.get(Transformation, transformation_id)
    if transformation is None:
        raise HTTPException(status_code=404, detail="Transformation not found")
    return transformation


def _check_refs(session: Session, barber_id, service_id):
    if barber_id is not None and session.get(Admin, barber_id) is None:
        raise HTTPException(status_code=422, detail="Barber does not exist")
    if service_id is not None and session.get(Service, service_id) is None:
        raise HTTPException(status_code=422, detail="Service does not exist")


@router.get("/transformations/gallery")
def gallery(session: Session = Depends(get_session)):
    return session.exec(
        select(Transformation)
        .where(Transformation.is_active == True)  # noqa: E712
        .order_by(Transformation.is_featured.desc(), Transformation.display_order, Transformation.id)
    ).all()


@router.get("/admin/transformations")
def list_transformations(
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    return session.exec(
        select(Transformation).order_by(Transformation.display_order, Transformation.id)
    ).all()


@router.post("/admin/transformations", status_code=201)
def create_transformation(
    payload: TransformationCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    _check_refs(session, payload.barber_id, payload.service_id)
    transformation = Transformation(**payload.model_dump())
    session.add(transformation)
    session.commit()
    session.refresh(transformation)
    return transformation


@router.get("/admin/transformations/{transformation_id}")
def get_transformation(
    transformation_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    return _get_transformation_or_404(session, transformation_id)


@router.put("/admin/transformations/{transformation_id}")
def update_transformation(
    transformation_id: int,
    payload: TransformationUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    transformation = _get_transformation_or_404(session, transformation_id)
    changes = payload.model_dump(exclude_unset=True)
    _check_refs(session, changes.get("barber_id"), changes.get("service_id"))

    for field, value in changes.items():
        setattr(transformation, field, value)
    transformation.updated_at = utcnow()

    session.add(transformation)
    session.commit()
    session.refresh(transformation)
    return transformation


@router.delete("/admin/transformations/{transformation_id}", status_code=204)
def delete_transformation(
    transformation_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    transformation = _get_transformation_or_404(session, transformation_id)
    session.delete(transformation)
    session.commit()
    return None

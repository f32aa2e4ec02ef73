# healthconnect/routers/consultations.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from .. import crud, schemas, security, models, transitions
from ..access import Actor
from ..database import get_db

import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/consultations",
    tags=["Consultations"],
    dependencies=[Depends(security.get_current_user)], # Ensure user is logged in
    responses={404: {"description": "Not found"}},
)

# One message for "missing", "not yours" and "update not applied" alike
NOT_FOUND = "Consultation not found"


def _no_effect():
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)


def _run_transition(action, *args, **kwargs) -> models.Consultation:
    try:
        consultation = action(*args, **kwargs)
    except crud.ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if consultation is None:
        raise _no_effect()
    return consultation


@router.post("", response_model=schemas.ConsultationResponse, status_code=status.HTTP_201_CREATED)
def create_consultation_endpoint(
    consultation: schemas.ConsultationCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(security.get_current_actor)
):
    """Book a consultation. It starts pending and unpaid; the amount defaults to the fee for its type."""
    try:
        db_consultation = crud.create_consultation(db=db, actor=actor, consultation=consultation)
    except crud.ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if db_consultation is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Consultations can only be booked for yourself.")
    return db_consultation


@router.get("", response_model=List[schemas.ConsultationResponse])
def list_consultations_endpoint(
    status_filter: Optional[models.ConsultationStatus] = None,
    payment_status: Optional[models.PaymentStatus] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    actor: Actor = Depends(security.get_current_actor)
):
    """Consultations visible to the caller, newest first. Admins see everyone's."""
    try:
        return crud.list_consultations(db, actor, status=status_filter, payment_status=payment_status, skip=skip, limit=limit)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get("/unpaid/latest", response_model=schemas.ConsultationResponse)
def latest_unpaid_consultation_endpoint(
    db: Session = Depends(get_db),
    actor: Actor = Depends(security.get_current_actor)
):
    """The booking the payment page settles."""
    consultation = crud.get_latest_unpaid_consultation(db, actor)
    if consultation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No unpaid consultation found")
    return consultation


@router.get("/{consultation_id}", response_model=schemas.ConsultationResponse)
def get_consultation_endpoint(
    consultation_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(security.get_current_actor)
):
    try:
        consultation = crud.get_consultation(db, actor, consultation_id)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if consultation is None:
        raise _no_effect()
    return consultation


@router.post("/{consultation_id}/confirm-payment", response_model=schemas.ConsultationResponse)
def confirm_payment_endpoint(
    consultation_id: str,
    payment: schemas.PaymentConfirmation,
    db: Session = Depends(get_db),
    actor: Actor = Depends(security.get_current_actor)
):
    """Owner reports the bank transfer as sent."""
    return _run_transition(transitions.confirm_payment, db, actor, consultation_id, payment.bank_account_id)


@router.post("/{consultation_id}/cancel", response_model=schemas.ConsultationResponse)
def cancel_consultation_endpoint(
    consultation_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(security.get_current_actor)
):
    return _run_transition(transitions.cancel_consultation, db, actor, consultation_id)


@router.patch("/{consultation_id}/status", response_model=schemas.ConsultationResponse)
def set_status_endpoint(
    consultation_id: str,
    update: schemas.StatusUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(security.require_admin)
):
    """Approve, decline or otherwise re-status a consultation. Admins only."""
    return _run_transition(
        transitions.admin_set_status, db, actor, consultation_id,
        update.status, notes=update.admin_notes, expected_status=update.expected_status,
    )


@router.post("/{consultation_id}/refund", response_model=schemas.ConsultationResponse)
def refund_endpoint(
    consultation_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(security.require_admin)
):
    return _run_transition(transitions.refund_payment, db, actor, consultation_id)

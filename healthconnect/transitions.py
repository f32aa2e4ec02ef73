# healthconnect/transitions.py
"""
Consultation status and payment transitions.

A transition is applied as one compare-and-set UPDATE in its own transaction,
together with the notification it triggers. Callers get the updated
consultation back, or None when the update had no effect. "No effect" covers
access denied, record missing, failed precondition and lost races alike; the
reasons are logged but never returned, so a caller cannot probe for records it
is not allowed to see.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import crud, models
from .access import Actor, Operation, Resource, is_allowed, scope_consultations
from .crud import CRUDError, ValidationError
from .notifications import emit_status_notification

logger = structlog.get_logger(__name__)

Status = models.ConsultationStatus
Payment = models.PaymentStatus

# Statuses an owner may move their own consultation to; the rest need an admin
OWNER_STATUSES = frozenset({Status.cancelled})
OWNER_PAYMENT_STATUSES = frozenset({Payment.paid})


class _NoEffect(Exception):
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


def _coerce(enum_cls, value, field: str):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Invalid {field}: {value!r}")


def next_timestamp(previous: Optional[datetime]) -> datetime:
    """A timestamp strictly later than `previous`, even if the clock has not moved."""
    now = models.utcnow()
    if previous is None:
        return now
    if previous.tzinfo is None:
        previous = previous.replace(tzinfo=timezone.utc)
    return max(now, previous + timedelta(microseconds=1))


def _check_owner_fields(consultation: models.Consultation, status, payment_status, admin_notes) -> None:
    if status is not None:
        if status not in OWNER_STATUSES:
            raise _NoEffect("status_requires_admin")
    if payment_status is not None:
        if payment_status not in OWNER_PAYMENT_STATUSES:
            raise _NoEffect("payment_status_requires_admin")
        if consultation.payment_status != Payment.unpaid:
            raise _NoEffect("payment_requires_unpaid")
    if admin_notes is not None:
        raise _NoEffect("admin_notes_require_admin")


def apply_transition(
    db: Session,
    actor: Actor,
    consultation_id: str,
    *,
    status=None,
    payment_status=None,
    admin_notes: Optional[str] = None,
    bank_account_id: Optional[str] = None,
    expected_status=None,
    expected_payment_status=None,
) -> Optional[models.Consultation]:
    """Validate, authorize and apply one change to a consultation.

    Raises ValidationError for malformed requests before touching the store,
    and CRUDError if the store fails (after rolling back). Every other failure
    returns None with nothing written.
    """
    status = _coerce(Status, status, "status")
    payment_status = _coerce(Payment, payment_status, "payment_status")
    expected_status = _coerce(Status, expected_status, "expected_status")
    expected_payment_status = _coerce(Payment, expected_payment_status, "expected_payment_status")

    if status is None and payment_status is None and admin_notes is None:
        raise ValidationError("Nothing to change: give a status, payment_status or admin_notes.")
    if payment_status == Payment.paid and not bank_account_id:
        raise ValidationError("Marking a consultation paid requires a bank account.")
    if bank_account_id and payment_status != Payment.paid:
        raise ValidationError("A bank account can only be selected when confirming payment.")

    log = logger.bind(consultation_id=consultation_id, actor_id=actor.user_id)
    try:
        consultation = scope_consultations(db.query(models.Consultation), actor).populate_existing().filter(
            models.Consultation.id == consultation_id
        ).first()
        if consultation is None:
            raise _NoEffect("not_visible")
        if not is_allowed(actor, Operation.update, Resource.consultation, owner_id=consultation.user_id):
            raise _NoEffect("update_denied")
        if not actor.is_admin:
            _check_owner_fields(consultation, status, payment_status, admin_notes)
        if expected_status is not None and consultation.status != expected_status:
            raise _NoEffect("status_precondition_failed")
        if expected_payment_status is not None and consultation.payment_status != expected_payment_status:
            raise _NoEffect("payment_precondition_failed")
        if bank_account_id and crud.get_bank_account(db, actor, bank_account_id) is None:
            raise ValidationError("The selected bank account is not available.")

        previous_status = consultation.status
        previous_updated_at = consultation.updated_at

        values = {"updated_at": next_timestamp(previous_updated_at)}
        if status is not None:
            values["status"] = status
        if payment_status is not None:
            values["payment_status"] = payment_status
        if bank_account_id:
            values["bank_account_id"] = bank_account_id
        if admin_notes is not None:
            values["admin_notes"] = admin_notes

        # Compare-and-set: zero rows if another writer committed since the read above
        updated = db.query(models.Consultation).filter(
            models.Consultation.id == consultation.id,
            models.Consultation.status == previous_status,
            models.Consultation.updated_at == previous_updated_at,
        ).update(values, synchronize_session=False)
        if updated != 1:
            raise _NoEffect("concurrent_update")

        db.refresh(consultation)
        emit_status_notification(db, consultation, previous_status)
        db.commit()
    except _NoEffect as no_effect:
        db.rollback()
        log.info("transition_rejected", reason=no_effect.reason)
        return None
    except ValidationError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        log.error("transition_failed", error=str(e))
        raise CRUDError("A database error occurred while updating the consultation.")

    log.info(
        "transition_applied",
        previous_status=previous_status,
        status=consultation.status,
        payment_status=consultation.payment_status,
    )
    return consultation


# ==================== Client-triggered actions ====================

def confirm_payment(db: Session, actor: Actor, consultation_id: str, bank_account_id: str) -> Optional[models.Consultation]:
    """Owner self-reports a bank transfer to the selected account."""
    return apply_transition(
        db, actor, consultation_id,
        payment_status=Payment.paid,
        bank_account_id=bank_account_id,
        expected_payment_status=Payment.unpaid,
    )


def cancel_consultation(
    db: Session,
    actor: Actor,
    consultation_id: str,
    expected_status=None,
) -> Optional[models.Consultation]:
    """Owner (or admin) cancels from any status. Pass `expected_status` to cancel only from that status."""
    return apply_transition(
        db, actor, consultation_id,
        status=Status.cancelled,
        expected_status=expected_status,
    )


def admin_set_status(
    db: Session,
    actor: Actor,
    consultation_id: str,
    new_status,
    notes: Optional[str] = None,
    expected_status=None,
) -> Optional[models.Consultation]:
    """Approve, decline, complete or otherwise re-status any consultation."""
    new_status = _coerce(Status, new_status, "status")
    if not actor.is_admin:
        logger.info("transition_rejected", reason="admin_required", consultation_id=consultation_id, actor_id=actor.user_id)
        return None
    return apply_transition(
        db, actor, consultation_id,
        status=new_status,
        admin_notes=notes,
        expected_status=expected_status,
    )


def refund_payment(db: Session, actor: Actor, consultation_id: str) -> Optional[models.Consultation]:
    if not actor.is_admin:
        logger.info("transition_rejected", reason="admin_required", consultation_id=consultation_id, actor_id=actor.user_id)
        return None
    return apply_transition(
        db, actor, consultation_id,
        payment_status=Payment.refunded,
        expected_payment_status=Payment.paid,
    )

# healthconnect/notifications.py
"""Notifications raised by consultation status changes."""
from typing import Optional

import structlog
from sqlalchemy.orm import Session

from . import models

logger = structlog.get_logger(__name__)

APPROVED_TITLE = "Consultation Approved"
APPROVED_MESSAGE = "Your consultation request has been approved! You will receive further details soon."
DECLINED_TITLE = "Consultation Declined"
DECLINED_MESSAGE = "Your consultation request has been declined. "
CONTACT_SUPPORT = "Please contact support for more information."

NOTIFYING_STATUSES = (models.ConsultationStatus.approved, models.ConsultationStatus.declined)


def build_status_notification(
    consultation: models.Consultation,
    previous_status: Optional[models.ConsultationStatus],
) -> Optional[models.Notification]:
    """The notification owed for this status change, or None.

    Only an actual change into approved or declined produces one.
    """
    new_status = models.ConsultationStatus(consultation.status)
    if previous_status is not None and models.ConsultationStatus(previous_status) == new_status:
        return None
    if new_status not in NOTIFYING_STATUSES:
        return None

    if new_status == models.ConsultationStatus.approved:
        title, message = APPROVED_TITLE, APPROVED_MESSAGE
    else:
        notes = (consultation.admin_notes or "").strip()
        title = DECLINED_TITLE
        message = DECLINED_MESSAGE + (f"Reason: {notes}" if notes else CONTACT_SUPPORT)

    return models.Notification(
        user_id=consultation.user_id,
        consultation_id=consultation.id,
        title=title,
        message=message,
    )


def emit_status_notification(
    db: Session,
    consultation: models.Consultation,
    previous_status: Optional[models.ConsultationStatus],
) -> Optional[models.Notification]:
    """Add the status notification to the caller's transaction.

    Flushes so constraint violations surface here, but never commits: the
    caller's status update and this row succeed or fail together.
    """
    notification = build_status_notification(consultation, previous_status)
    if notification is None:
        return None
    db.add(notification)
    db.flush()
    logger.info(
        "notification_emitted",
        notification_id=notification.id,
        consultation_id=consultation.id,
        user_id=consultation.user_id,
        status=consultation.status,
    )
    return notification

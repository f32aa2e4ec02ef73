# tests/test_notifications.py
import pytest

from healthconnect import crud, models, transitions
from healthconnect.notifications import build_status_notification, emit_status_notification

from conftest import booking

Status = models.ConsultationStatus


def make(status, notes=None):
    return models.Consultation(id="c-1", user_id="u-1", status=status, admin_notes=notes)


@pytest.mark.parametrize("previous,new,title", [
    (Status.pending, Status.approved, "Consultation Approved"),
    (Status.pending, Status.declined, "Consultation Declined"),
    (Status.declined, Status.approved, "Consultation Approved"),
])
def test_notification_on_change_into_approved_or_declined(previous, new, title):
    notification = build_status_notification(make(new), previous)
    assert notification.title == title
    assert notification.user_id == "u-1"
    assert notification.consultation_id == "c-1"


@pytest.mark.parametrize("previous,new", [
    (Status.approved, Status.approved),
    (Status.declined, Status.declined),
    (Status.pending, Status.completed),
    (Status.pending, Status.cancelled),
    (Status.approved, Status.pending),
])
def test_no_notification_otherwise(previous, new):
    assert build_status_notification(make(new), previous) is None


def test_declined_reason_is_trimmed():
    notification = build_status_notification(make(Status.declined, "  doctor unavailable \n"), Status.pending)
    assert notification.message == "Your consultation request has been declined. Reason: doctor unavailable"


def test_notifications_are_private_to_their_owner(db, owner, stranger, admin, consultation):
    transitions.admin_set_status(db, admin, consultation.id, Status.approved)

    [notification] = crud.list_notifications(db, owner)
    assert crud.list_notifications(db, stranger) == []
    assert crud.list_notifications(db, admin) == []

    assert crud.mark_notification_read(db, stranger, notification.id) is False
    assert crud.mark_notification_read(db, admin, notification.id) is False
    assert crud.count_unread_notifications(db, owner) == 1

    assert crud.mark_notification_read(db, owner, notification.id) is True
    assert crud.count_unread_notifications(db, owner) == 0


def test_mark_all_read_only_touches_own_rows(db, owner, stranger, admin):
    mine = [crud.create_consultation(db, owner, booking()) for _ in range(2)]
    theirs = crud.create_consultation(db, stranger, booking())
    for consultation in mine + [theirs]:
        transitions.admin_set_status(db, admin, consultation.id, Status.declined)

    assert crud.mark_all_notifications_read(db, owner) == 2
    assert crud.count_unread_notifications(db, owner) == 0
    assert crud.count_unread_notifications(db, stranger) == 1
    assert len(crud.list_notifications(db, stranger, unread_only=True)) == 1


def test_emitter_adds_without_committing(db, owner, consultation):
    consultation.status = Status.approved
    notification = emit_status_notification(db, consultation, Status.pending)
    assert notification.id is not None

    db.rollback()
    assert db.query(models.Notification).count() == 0
    assert emit_status_notification(db, make(Status.completed), Status.pending) is None

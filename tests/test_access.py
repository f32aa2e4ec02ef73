# tests/test_access.py
import pytest

from healthconnect import models
from healthconnect.access import (
    Actor, Operation, Resource, is_allowed,
    scope_consultations, scope_notifications, scope_bank_accounts,
)

OWNER = Actor("u-1")
OTHER = Actor("u-2")
ADMIN = Actor("a-1", models.UserRole.admin)


@pytest.mark.parametrize("actor,operation,expected", [
    (OWNER, Operation.read, True),
    (OTHER, Operation.read, False),
    (ADMIN, Operation.read, True),
    (OWNER, Operation.update, True),
    (OTHER, Operation.update, False),
    (ADMIN, Operation.update, True),
    (OWNER, Operation.create, True),
    (OTHER, Operation.create, False),
    (ADMIN, Operation.create, False),
])
def test_consultation_predicates(actor, operation, expected):
    assert is_allowed(actor, operation, Resource.consultation, owner_id="u-1") is expected


@pytest.mark.parametrize("actor,expected", [(OWNER, True), (OTHER, False), (ADMIN, False)])
def test_notification_read_and_update_are_owner_only(actor, expected):
    assert is_allowed(actor, Operation.read, Resource.notification, owner_id="u-1") is expected
    assert is_allowed(actor, Operation.update, Resource.notification, owner_id="u-1") is expected


def test_notification_create_is_always_allowed():
    assert is_allowed(None, Operation.create, Resource.notification)


def test_bank_account_predicates():
    assert is_allowed(OWNER, Operation.read, Resource.bank_account, is_active=True)
    assert not is_allowed(OWNER, Operation.read, Resource.bank_account, is_active=False)
    assert is_allowed(ADMIN, Operation.read, Resource.bank_account, is_active=False)
    assert not is_allowed(None, Operation.read, Resource.bank_account, is_active=True)

    assert not is_allowed(OWNER, Operation.create, Resource.bank_account)
    assert not is_allowed(OWNER, Operation.update, Resource.bank_account)
    assert is_allowed(ADMIN, Operation.update, Resource.bank_account)


def test_missing_actor_is_denied():
    assert not is_allowed(None, Operation.read, Resource.consultation, owner_id="u-1")


def test_consultation_scope_hides_other_owners(db, owner, stranger, admin, consultation):
    def visible(actor):
        return scope_consultations(db.query(models.Consultation), actor).all()

    assert [c.id for c in visible(owner)] == [consultation.id]
    assert visible(stranger) == []
    assert [c.id for c in visible(admin)] == [consultation.id]


def test_notification_scope_has_no_admin_override(db, owner, admin, consultation):
    db.add(models.Notification(user_id=owner.user_id, consultation_id=consultation.id, title="t", message="m"))
    db.commit()

    assert len(scope_notifications(db.query(models.Notification), owner).all()) == 1
    assert scope_notifications(db.query(models.Notification), admin).all() == []


def test_bank_account_scope_hides_inactive_from_users(db, owner, admin, bank_account):
    bank_account.is_active = False
    db.commit()

    assert scope_bank_accounts(db.query(models.BankAccount), owner).all() == []
    assert len(scope_bank_accounts(db.query(models.BankAccount), admin).all()) == 1

# healthconnect/access.py
"""
Row-level access gate.

Every read or write against a consultation, notification or bank account is
checked here before it reaches the store. The predicates are pure: they look
only at the actor and at the owner / active fields of the target record.

Denied reads are expressed as query scopes, so a caller that is not allowed to
see a row gets zero rows back, exactly as if the row did not exist.
"""
import enum
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Query

from . import models


@dataclass(frozen=True)
class Actor:
    """An authenticated identity attempting an operation."""
    user_id: str
    role: models.UserRole = models.UserRole.user

    @property
    def is_admin(self) -> bool:
        return self.role == models.UserRole.admin


class Operation(str, enum.Enum):
    read = "read"
    create = "create"
    update = "update"


class Resource(str, enum.Enum):
    consultation = "consultation"
    notification = "notification"
    bank_account = "bank_account"


# --- Consultations ---

def can_read_consultation(actor: Actor, owner_id: str) -> bool:
    return actor.user_id == owner_id or actor.is_admin


def can_create_consultation(actor: Actor, owner_id: str) -> bool:
    # Admins get no override here: nobody books on someone else's behalf
    return actor.user_id == owner_id


def can_update_consultation(actor: Actor, owner_id: str) -> bool:
    return actor.user_id == owner_id or actor.is_admin


# --- Notifications ---

def can_read_notification(actor: Actor, owner_id: str) -> bool:
    return actor.user_id == owner_id


def can_update_notification(actor: Actor, owner_id: str) -> bool:
    return actor.user_id == owner_id


def can_create_notification() -> bool:
    # Only the transition hook creates notifications; no API route exposes this
    return True


# --- Bank accounts ---

def can_read_bank_account(actor: Optional[Actor], is_active: bool) -> bool:
    if actor is None:
        return False
    return bool(is_active) or actor.is_admin


def can_write_bank_account(actor: Optional[Actor]) -> bool:
    return actor is not None and actor.is_admin


def is_allowed(
    actor: Optional[Actor],
    operation: Operation,
    resource: Resource,
    owner_id: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> bool:
    """Single entry point over (actor, operation, record) triples."""
    if resource == Resource.bank_account:
        if operation == Operation.read:
            return can_read_bank_account(actor, bool(is_active))
        return can_write_bank_account(actor)

    if resource == Resource.notification and operation == Operation.create:
        return can_create_notification()

    if actor is None or owner_id is None:
        return False

    if resource == Resource.consultation:
        if operation == Operation.read:
            return can_read_consultation(actor, owner_id)
        if operation == Operation.create:
            return can_create_consultation(actor, owner_id)
        return can_update_consultation(actor, owner_id)

    if operation == Operation.read:
        return can_read_notification(actor, owner_id)
    return can_update_notification(actor, owner_id)


# --- Query scopes ---

def scope_consultations(query: Query, actor: Actor) -> Query:
    if actor.is_admin:
        return query
    return query.filter(models.Consultation.user_id == actor.user_id)


def scope_notifications(query: Query, actor: Actor) -> Query:
    return query.filter(models.Notification.user_id == actor.user_id)


def scope_bank_accounts(query: Query, actor: Actor) -> Query:
    if actor.is_admin:
        return query
    return query.filter(models.BankAccount.is_active.is_(True))

# healthconnect/crud.py
from decimal import Decimal
from typing import Optional, List, Dict, Any
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from . import models, schemas, security
from .access import Actor, Operation, Resource, is_allowed, scope_consultations, scope_notifications, scope_bank_accounts
from .config import get_settings

logger = logging.getLogger(__name__)


class CRUDError(Exception):
    pass


class ValidationError(CRUDError):
    """A constraint violation detected before anything is written."""


# ==================== IDENTITIES & PROFILES ====================

def get_user(db: Session, user_id: str) -> Optional[models.User]:
    try:
        return db.query(models.User).options(joinedload(models.User.profile)).filter(models.User.id == user_id).first()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching user {user_id}: {e}")
        raise CRUDError("A database error occurred while fetching the user.")


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    try:
        return db.query(models.User).filter(models.User.email == email.strip().lower()).first()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching user by email: {e}")
        raise CRUDError("A database error occurred while fetching the user.")


def register_identity(db: Session, email: str, password: str, full_name: Optional[str] = None) -> models.User:
    """Create an identity and materialize its profile in one transaction.

    The admin role is granted only here, and only to configured bootstrap
    emails. Nothing later in the profile's life changes the role.
    """
    email = email.strip().lower()
    if get_user_by_email(db, email):
        raise ValidationError("An account with this email already exists.")

    role = models.UserRole.admin if get_settings().is_bootstrap_admin(email) else models.UserRole.user
    try:
        db_user = models.User(email=email, password_hash=security.get_password_hash(password))
        db.add(db_user)
        db.flush()
        db.add(models.Profile(user_id=db_user.id, full_name=full_name, role=role))
        db.commit()
        db.refresh(db_user)
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error registering identity: {e}")
        raise ValidationError("An account with this email already exists.")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error registering identity: {e}")
        raise CRUDError("A database error occurred while creating the account.")

    logger.info(f"Registered identity {db_user.id} with role {role.value}")
    return db_user


def authenticate(db: Session, email: str, password: str) -> Optional[models.User]:
    user = get_user_by_email(db, email)
    if not user or not security.verify_password(password, user.password_hash):
        return None
    return user


def delete_identity(db: Session, user_id: str) -> bool:
    """Remove an identity; its profile, consultations and notifications cascade."""
    try:
        db_user = db.query(models.User).filter(models.User.id == user_id).first()
        if not db_user:
            return False
        db.delete(db_user)
        db.commit()
        logger.info(f"Deleted identity {user_id}")
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting identity {user_id}: {e}")
        raise CRUDError("A database error occurred while deleting the account.")


def get_profile(db: Session, user_id: str) -> Optional[models.Profile]:
    return db.query(models.Profile).filter(models.Profile.user_id == user_id).first()


def update_profile(db: Session, actor: Actor, profile_update: schemas.ProfileUpdate) -> Optional[models.Profile]:
    """Owners may change their display name. The role is not updatable."""
    db_profile = get_profile(db, actor.user_id)
    if not db_profile:
        return None
    try:
        db_profile.full_name = profile_update.full_name
        db.commit()
        db.refresh(db_profile)
        return db_profile
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error updating profile {actor.user_id}: {e}")
        raise CRUDError("A database error occurred while updating the profile.")


def actor_for(db: Session, user_id: str) -> Actor:
    """Build the explicit actor context. Missing profiles fall back to the user role."""
    role = db.query(models.Profile.role).filter(models.Profile.user_id == user_id).scalar()
    return Actor(user_id=user_id, role=role or models.UserRole.user)


# ==================== BANK ACCOUNTS ====================

def list_bank_accounts(db: Session, actor: Actor, include_inactive: bool = False) -> List[models.BankAccount]:
    """Active accounts for everyone; inactive ones only when an admin asks for them."""
    query = scope_bank_accounts(db.query(models.BankAccount), actor)
    if not include_inactive:
        query = query.filter(models.BankAccount.is_active.is_(True))
    return query.order_by(models.BankAccount.bank_name).all()


def get_bank_account(db: Session, actor: Actor, bank_account_id: str) -> Optional[models.BankAccount]:
    return scope_bank_accounts(db.query(models.BankAccount), actor).filter(models.BankAccount.id == bank_account_id).first()


def create_bank_account(db: Session, actor: Actor, account: schemas.BankAccountCreate) -> Optional[models.BankAccount]:
    if not is_allowed(actor, Operation.create, Resource.bank_account):
        logger.info(f"Actor {actor.user_id} denied bank account creation")
        return None
    try:
        db_account = models.BankAccount(**account.model_dump())
        db.add(db_account)
        db.commit()
        db.refresh(db_account)
        logger.info(f"Created bank account {db_account.id} by admin {actor.user_id}")
        return db_account
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating bank account: {e}")
        raise CRUDError("A database error occurred while creating the bank account.")


BANK_ACCOUNT_DETAIL_FIELDS = ("bank_name", "account_name", "account_number", "routing_number")


def update_bank_account(db: Session, actor: Actor, bank_account_id: str, account_update: schemas.BankAccountUpdate) -> Optional[models.BankAccount]:
    """Admin update. Details freeze once a consultation references the account."""
    if not is_allowed(actor, Operation.update, Resource.bank_account):
        logger.info(f"Actor {actor.user_id} denied bank account update")
        return None
    db_account = get_bank_account(db, actor, bank_account_id)
    if not db_account:
        return None

    changes = account_update.model_dump(exclude_unset=True)
    detail_changes = {k: v for k, v in changes.items() if k in BANK_ACCOUNT_DETAIL_FIELDS and getattr(db_account, k) != v}
    if detail_changes:
        referenced = db.query(models.Consultation.id).filter(models.Consultation.bank_account_id == bank_account_id).first()
        if referenced:
            raise ValidationError("Bank account details cannot change once a consultation references it.")

    try:
        for key, value in changes.items():
            setattr(db_account, key, value)
        db.commit()
        db.refresh(db_account)
        return db_account
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error updating bank account {bank_account_id}: {e}")
        raise CRUDError("A database error occurred while updating the bank account.")


# ==================== CONSULTATIONS ====================

def create_consultation(
    db: Session,
    actor: Actor,
    consultation: schemas.ConsultationCreate,
    owner_id: Optional[str] = None,
) -> Optional[models.Consultation]:
    """Book a consultation owned by the actor. Returns None if the owner is someone else."""
    owner_id = owner_id or actor.user_id
    if not is_allowed(actor, Operation.create, Resource.consultation, owner_id=owner_id):
        logger.info(f"Actor {actor.user_id} denied creating a consultation for {owner_id}")
        return None

    data = consultation.model_dump(exclude={"amount"})
    amount = consultation.amount
    if amount is None:
        amount = get_settings().fee_for(consultation.consultation_type.value)
    if Decimal(amount) < 0:
        raise ValidationError("Amount must be non-negative.")

    try:
        db_consultation = models.Consultation(
            **data,
            user_id=owner_id,
            amount=amount,
            status=models.ConsultationStatus.pending,
            payment_status=models.PaymentStatus.unpaid,
        )
        db.add(db_consultation)
        db.commit()
        db.refresh(db_consultation)
        logger.info(f"Created consultation {db_consultation.id} for user {owner_id}")
        return db_consultation
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Database integrity error on consultation creation: {e}")
        raise CRUDError("Could not create consultation due to a database integrity issue.")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error during consultation creation: {e}")
        raise CRUDError("A database error occurred while creating the consultation.")


def get_consultation(db: Session, actor: Actor, consultation_id: str) -> Optional[models.Consultation]:
    """Returns None both when the row is missing and when the actor may not see it."""
    try:
        return scope_consultations(db.query(models.Consultation), actor).filter(
            models.Consultation.id == consultation_id
        ).first()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching consultation {consultation_id}: {e}")
        raise CRUDError("A database error occurred while fetching the consultation.")


def list_consultations(
    db: Session,
    actor: Actor,
    status: Optional[models.ConsultationStatus] = None,
    payment_status: Optional[models.PaymentStatus] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[models.Consultation]:
    """Visible consultations, newest first. Admins see everyone's."""
    try:
        query = scope_consultations(db.query(models.Consultation), actor)
        if status:
            query = query.filter(models.Consultation.status == status)
        if payment_status:
            query = query.filter(models.Consultation.payment_status == payment_status)
        return query.order_by(models.Consultation.created_at.desc()).offset(skip).limit(limit).all()
    except SQLAlchemyError as e:
        logger.error(f"Error listing consultations for {actor.user_id}: {e}")
        raise CRUDError("A database error occurred while fetching consultations.")


def get_latest_unpaid_consultation(db: Session, actor: Actor) -> Optional[models.Consultation]:
    """The consultation the payment page settles: the actor's own newest unpaid booking."""
    return db.query(models.Consultation).filter(
        models.Consultation.user_id == actor.user_id,
        models.Consultation.payment_status == models.PaymentStatus.unpaid,
    ).order_by(models.Consultation.created_at.desc()).first()


# ==================== NOTIFICATIONS ====================

def list_notifications(db: Session, actor: Actor, unread_only: bool = False, skip: int = 0, limit: int = 50) -> List[models.Notification]:
    query = scope_notifications(db.query(models.Notification), actor)
    if unread_only:
        query = query.filter(models.Notification.is_read.is_(False))
    return query.order_by(models.Notification.created_at.desc()).offset(skip).limit(limit).all()


def count_unread_notifications(db: Session, actor: Actor) -> int:
    return scope_notifications(db.query(func.count(models.Notification.id)), actor).filter(
        models.Notification.is_read.is_(False)
    ).scalar() or 0


def mark_notification_read(db: Session, actor: Actor, notification_id: str) -> bool:
    """True when exactly one of the actor's own notifications was updated."""
    try:
        updated = scope_notifications(db.query(models.Notification), actor).filter(
            models.Notification.id == notification_id
        ).update({"is_read": True}, synchronize_session=False)
        db.commit()
        return updated == 1
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error marking notification {notification_id} read: {e}")
        raise CRUDError("A database error occurred while updating the notification.")


def mark_all_notifications_read(db: Session, actor: Actor) -> int:
    try:
        updated = scope_notifications(db.query(models.Notification), actor).filter(
            models.Notification.is_read.is_(False)
        ).update({"is_read": True}, synchronize_session=False)
        db.commit()
        return updated
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error marking notifications read for {actor.user_id}: {e}")
        raise CRUDError("A database error occurred while updating notifications.")


# ==================== DASHBOARDS ====================

ACTIVE_STATUSES = (models.ConsultationStatus.pending, models.ConsultationStatus.approved)


def get_user_dashboard(db: Session, actor: Actor) -> Dict[str, Any]:
    """The owner's own bookings; admins get their own here too, not everyone's."""
    own = db.query(models.Consultation).filter(models.Consultation.user_id == actor.user_id)
    consultations = own.order_by(models.Consultation.created_at.desc()).all()
    return {
        "profile": get_profile(db, actor.user_id),
        "total_consultations": len(consultations),
        "active_consultations": sum(1 for c in consultations if c.status in ACTIVE_STATUSES),
        "unread_notifications": count_unread_notifications(db, actor),
        "latest_unpaid": next((c for c in consultations if c.payment_status == models.PaymentStatus.unpaid), None),
        "consultations": consultations,
    }


def get_admin_dashboard(db: Session, actor: Actor) -> Optional[Dict[str, Any]]:
    if not actor.is_admin:
        return None
    try:
        rows = scope_consultations(
            db.query(models.Consultation, models.Profile.full_name), actor
        ).outerjoin(
            models.Profile, models.Profile.user_id == models.Consultation.user_id
        ).order_by(models.Consultation.created_at.desc()).all()

        status_counts = dict(
            db.query(models.Consultation.status, func.count(models.Consultation.id))
            .group_by(models.Consultation.status).all()
        )
        revenue = db.query(func.coalesce(func.sum(models.Consultation.amount), 0)).filter(
            models.Consultation.payment_status == models.PaymentStatus.paid
        ).scalar()
    except SQLAlchemyError as e:
        logger.error(f"Error building admin dashboard: {e}")
        raise CRUDError("A database error occurred while building the dashboard.")

    consultations = []
    for consultation, full_name in rows:
        item = schemas.ConsultationResponse.model_validate(consultation).model_dump()
        item["owner_name"] = full_name
        consultations.append(item)

    return {
        "total_consultations": sum(status_counts.values()),
        "pending_consultations": status_counts.get(models.ConsultationStatus.pending, 0),
        "approved_consultations": status_counts.get(models.ConsultationStatus.approved, 0),
        "total_revenue": Decimal(str(revenue or 0)),
        "consultations": consultations,
    }

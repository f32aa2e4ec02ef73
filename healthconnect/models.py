# healthconnect/models.py
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, DateTime, Date, Time, ForeignKey, Text, Boolean, Numeric,
    Integer, Enum as SQLAlchemyEnum, Index, CheckConstraint
)
from sqlalchemy.orm import relationship, validates

from .config import get_settings
from .database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class UserRole(str, enum.Enum):
    user = "user"
    admin = "admin"


class ConsultationType(str, enum.Enum):
    video_call = "video_call"
    phone_call = "phone_call"
    chat = "chat"


class ConsultationStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    declined = "declined"
    completed = "completed"
    cancelled = "cancelled"


class PaymentStatus(str, enum.Enum):
    unpaid = "unpaid"
    paid = "paid"
    refunded = "refunded"


def _enum_column(enum_cls, name):
    # Stored as plain strings guarded by a CHECK constraint, so the same schema works on SQLite and PostgreSQL
    return SQLAlchemyEnum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=True,
        validate_strings=True,
        length=20,
    )


# ==================== Identity & Profiles ====================

class User(Base):
    """Authentication identity. Owns profiles, consultations and notifications."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    profile = relationship("Profile", back_populates="user", uselist=False, cascade="all, delete-orphan", passive_deletes=True)
    consultations = relationship("Consultation", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)


class Profile(Base):
    __tablename__ = "profiles"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    full_name = Column(String(255), nullable=True)
    role = Column(_enum_column(UserRole, "user_role"), nullable=False, default=UserRole.user)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="profile")


# ==================== Payments ====================

class BankAccount(Base):
    """A payment destination shown on the payment page. Shared, admin-managed."""
    __tablename__ = "bank_accounts"

    id = Column(String(36), primary_key=True, default=new_id)
    bank_name = Column(String(255), nullable=False)
    account_name = Column(String(255), nullable=False)
    account_number = Column(String(64), nullable=False)
    routing_number = Column(String(64), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    consultations = relationship("Consultation", back_populates="bank_account")


# ==================== Consultations ====================

def _default_amount(context):
    # Fee configured for the row's consultation kind
    kind = context.get_current_parameters()["consultation_type"]
    return get_settings().fee_for(ConsultationType(kind).value)


class Consultation(Base):
    """One booking request. Source of truth for status and payment status."""
    __tablename__ = "consultations"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_consultations_amount_non_negative"),
        Index("idx_consultations_user_created", "user_id", "created_at"),
        Index("idx_consultations_status", "status"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    doctor_name = Column(Text, nullable=False)
    consultation_type = Column(_enum_column(ConsultationType, "consultation_type"), nullable=False)
    preferred_date = Column(Date, nullable=False)
    preferred_time = Column(Time, nullable=False)
    symptoms = Column(Text, nullable=False)
    status = Column(_enum_column(ConsultationStatus, "consultation_status"), nullable=False, default=ConsultationStatus.pending)
    payment_status = Column(_enum_column(PaymentStatus, "payment_status"), nullable=False, default=PaymentStatus.unpaid)
    amount = Column(Numeric(10, 2), nullable=False, default=_default_amount)
    bank_account_id = Column(String(36), ForeignKey("bank_accounts.id"), nullable=True)
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="consultations")
    bank_account = relationship("BankAccount", back_populates="consultations")
    notifications = relationship("Notification", back_populates="consultation", cascade="all, delete-orphan", passive_deletes=True)

    @validates("user_id")
    def _validate_owner(self, key, value):
        if self.user_id is not None and value != self.user_id:
            raise ValueError("The owner of a consultation cannot be changed")
        return value

    def __repr__(self):
        return f"<Consultation {self.id} - {self.status}>"


class Notification(Base):
    """One-way message to a user about a consultation event. Created by the system only."""
    __tablename__ = "notifications"
    __table_args__ = (
        Index("idx_notifications_user_read", "user_id", "is_read"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    consultation_id = Column(String(36), ForeignKey("consultations.id", ondelete="CASCADE"), nullable=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    user = relationship("User", back_populates="notifications")
    consultation = relationship("Consultation", back_populates="notifications")


# ==================== Hospital Directory ====================

class Hospital(Base):
    """Static hospital directory. Read-only through the API."""
    __tablename__ = "hospitals"
    __table_args__ = (
        Index("idx_hospitals_city_state", "city", "state"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    address = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(50), nullable=False)
    zip_code = Column(String(20), nullable=True)
    phone = Column(String(30), nullable=True)
    latitude = Column(Numeric(10, 8), nullable=True)
    longitude = Column(Numeric(11, 8), nullable=True)
    hospital_type = Column(String(50), default="General")
    emergency_services = Column(Boolean, default=True)
    rating = Column(Numeric(2, 1), default=4.0)
    bed_capacity = Column(Integer, nullable=True)
    website = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

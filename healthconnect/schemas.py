# healthconnect/schemas.py
from datetime import datetime, date, time
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, EmailStr, field_validator

from .models import UserRole, ConsultationType, ConsultationStatus, PaymentStatus


# --- Base Schemas ---
class BaseSchema(BaseModel):
    class Config:
        from_attributes = True


# --- Auth / Profile Schemas ---
class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    full_name: Optional[str] = Field(None, max_length=255)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if not any(char.isdigit() for char in v):
            raise ValueError('Password must contain at least one digit')
        if not any(char.isalpha() for char in v):
            raise ValueError('Password must contain at least one letter')
        return v


class ProfileResponse(BaseSchema):
    user_id: str
    full_name: Optional[str] = None
    role: UserRole
    created_at: datetime
    updated_at: datetime


class ProfileUpdate(BaseSchema):
    full_name: Optional[str] = Field(None, max_length=255)


class UserResponse(BaseSchema):
    id: str
    email: EmailStr
    created_at: datetime
    profile: Optional[ProfileResponse] = None


class TokenResponse(BaseSchema):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


# --- Bank Account Schemas ---
class BankAccountBase(BaseSchema):
    bank_name: str = Field(..., min_length=1, max_length=255)
    account_name: str = Field(..., min_length=1, max_length=255)
    account_number: str = Field(..., min_length=1, max_length=64)
    routing_number: Optional[str] = Field(None, max_length=64)


class BankAccountCreate(BankAccountBase):
    is_active: bool = True


class BankAccountUpdate(BaseSchema):
    bank_name: Optional[str] = Field(None, min_length=1, max_length=255)
    account_name: Optional[str] = Field(None, min_length=1, max_length=255)
    account_number: Optional[str] = Field(None, min_length=1, max_length=64)
    routing_number: Optional[str] = Field(None, max_length=64)
    is_active: Optional[bool] = None


class BankAccountResponse(BankAccountBase):
    id: str
    is_active: bool
    created_at: datetime


# --- Consultation Schemas ---
class ConsultationCreate(BaseSchema):
    doctor_name: str = Field(..., min_length=1)
    consultation_type: ConsultationType
    preferred_date: date
    preferred_time: time
    symptoms: str = Field(..., min_length=1)
    # Left empty, the fee configured for the consultation type applies
    amount: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)


class ConsultationResponse(BaseSchema):
    id: str
    user_id: str
    doctor_name: str
    consultation_type: ConsultationType
    preferred_date: date
    preferred_time: time
    symptoms: str
    status: ConsultationStatus
    payment_status: PaymentStatus
    amount: Decimal
    bank_account_id: Optional[str] = None
    admin_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class AdminConsultationResponse(ConsultationResponse):
    owner_name: Optional[str] = None


class PaymentConfirmation(BaseModel):
    bank_account_id: str = Field(..., min_length=1)


class StatusUpdate(BaseModel):
    """Body of the admin status endpoint."""
    status: ConsultationStatus
    admin_notes: Optional[str] = None
    # Optimistic precondition: the update only applies while the record is still in this status
    expected_status: Optional[ConsultationStatus] = None


# --- Notification Schemas ---
class NotificationResponse(BaseSchema):
    id: str
    user_id: str
    consultation_id: Optional[str] = None
    title: str
    message: str
    is_read: bool
    created_at: datetime


class UnreadCountResponse(BaseModel):
    unread: int


class MarkAllReadResponse(BaseModel):
    updated: int


# --- Dashboard Schemas ---
class UserDashboardResponse(BaseSchema):
    profile: Optional[ProfileResponse] = None
    total_consultations: int
    active_consultations: int
    unread_notifications: int
    latest_unpaid: Optional[ConsultationResponse] = None
    consultations: List[ConsultationResponse] = []


class AdminDashboardResponse(BaseSchema):
    total_consultations: int
    pending_consultations: int
    approved_consultations: int
    total_revenue: Decimal
    consultations: List[AdminConsultationResponse] = []


# --- Hospital Directory Schemas ---
class HospitalResponse(BaseSchema):
    id: int
    name: str
    address: str
    city: str
    state: str
    zip_code: Optional[str] = None
    phone: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    hospital_type: Optional[str] = None
    emergency_services: Optional[bool] = None
    rating: Optional[float] = None
    bed_capacity: Optional[int] = None
    website: Optional[str] = None
    # Miles from the searched coordinate, only set by the nearby search
    distance: Optional[float] = None


# --- Health ---
class HealthResponse(BaseModel):
    status: str
    app: str
    version: str
    checked_at: datetime

"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, EmailStr, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import Any, Dict, List, Optional

from domain.enums import (
    AuditAction, AuditEntity, RoomStatus, UserRole,
)
from application.reporting_service import EntityCounts, RoomTypeRevenue


# ============================================================================
# ROOM SCHEMAS
# ============================================================================

class CreateRoomRequest(BaseModel):
    """Create room request DTO"""
    room_number: str = Field(min_length=1)
    type: str = Field(min_length=1)
    price: Decimal = Field(ge=0)
    status: RoomStatus = RoomStatus.AVAILABLE
    features: List[str] = []
    images: List[str] = []


class UpdateRoomRequest(BaseModel):
    """Update room request DTO; omitted fields are left unchanged"""
    room_number: Optional[str] = Field(None, min_length=1)
    type: Optional[str] = Field(None, min_length=1)
    price: Optional[Decimal] = Field(None, ge=0)
    status: Optional[RoomStatus] = None
    features: Optional[List[str]] = None
    images: Optional[List[str]] = None


class RoomResponse(BaseModel):
    """Room response DTO"""
    room_id: UUID
    room_number: str
    type: str
    price: Decimal
    status: str
    features: List[str]
    images: List[str]
    created_at: datetime
    modified_at: datetime


# ============================================================================
# BOOKING SCHEMAS
# ============================================================================

class CreateBookingRequest(BaseModel):
    """Create booking request DTO

    Guest name and e-mail default to the caller's account when omitted.
    """
    guest_name: Optional[str] = None
    guest_email: Optional[EmailStr] = None
    room_number: str
    check_in: date
    check_out: date
    total_amount: Decimal = Field(description="Total the client expects to pay")
    notes: Optional[str] = None


class ModifyBookingRequest(BaseModel):
    """Modify booking request DTO"""
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    room_number: Optional[str] = None


class CancelBookingRequest(BaseModel):
    """Cancel booking request DTO"""
    reason: Optional[str] = None


class BookingResponse(BaseModel):
    """Booking response DTO"""
    booking_id: UUID
    reference: str
    guest_name: str
    guest_email: str
    room_number: str
    check_in: date
    check_out: date
    nights: int
    status: str
    total_amount: Decimal
    payment_status: str
    notes: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: datetime
    modified_at: datetime
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    version: int


# ============================================================================
# HOTEL SERVICE SCHEMAS
# ============================================================================

class CreateHotelServiceRequest(BaseModel):
    """Create hotel service request DTO"""
    name: str = Field(min_length=1)
    price: Decimal = Field(ge=0)
    description: str


class UpdateHotelServiceRequest(BaseModel):
    """Update hotel service request DTO"""
    name: Optional[str] = Field(None, min_length=1)
    price: Optional[Decimal] = Field(None, ge=0)
    description: Optional[str] = None


class HotelServiceResponse(BaseModel):
    """Hotel service response DTO"""
    service_id: UUID
    name: str
    price: Decimal
    description: str


# ============================================================================
# ADMIN SCHEMAS
# ============================================================================

class AuditLogResponse(BaseModel):
    """Audit log entry response DTO"""
    entry_id: UUID
    action: AuditAction
    entity: AuditEntity
    entity_id: UUID
    actor_id: Optional[UUID] = None
    details: Dict[str, Any]
    timestamp: datetime


class StatsResponse(BaseModel):
    """Admin dashboard statistics"""
    counts: EntityCounts
    total_revenue: Decimal
    revenue_by_room_type: List[RoomTypeRevenue]


class MessageResponse(BaseModel):
    message: str


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class RegisterRequest(BaseModel):
    """Customer registration request DTO"""
    username: str = Field(min_length=3)
    password: str = Field(min_length=6)
    email: EmailStr
    full_name: Optional[str] = None
    phone: Optional[str] = None


class UpdateProfileRequest(BaseModel):
    """Profile update request DTO; omitted fields are left unchanged"""
    full_name: Optional[str] = None
    phone: Optional[str] = None
    image: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)


class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str
    role: UserRole


class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None
    role: Optional[UserRole] = None


class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    image: Optional[str] = None
    role: UserRole
    disabled: bool


class EnumValuesResponse(BaseModel):
    values: List[str]
    description: str

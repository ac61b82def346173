"""Domain Entities - Aggregates"""
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID, uuid4
from datetime import datetime, date, time, timezone
from typing import Optional, List, Dict, Any
from decimal import Decimal

from domain.enums import (
    BookingStatus, RoomStatus, PaymentStatus, AuditAction, AuditEntity,
    ACTIVE_BOOKING_STATUSES, CANCELLABLE_BOOKING_STATUSES,
)
from domain.exceptions import ConflictError, ErrorCode
from domain.value_objects import DateRange, nights_between, utc_now


class Room(BaseModel):
    """Room Aggregate Root Entity"""
    model_config = ConfigDict(from_attributes=True)

    # Identity
    room_id: UUID = Field(default_factory=uuid4)
    room_number: str

    # Inventory data
    type: str
    price: Decimal = Field(ge=0)
    status: RoomStatus = RoomStatus.AVAILABLE
    features: List[str] = []
    images: List[str] = []

    # Metadata
    created_at: datetime = Field(default_factory=utc_now)
    modified_at: datetime = Field(default_factory=utc_now)

    @property
    def is_under_maintenance(self) -> bool:
        return self.status == RoomStatus.MAINTENANCE

    def apply_changes(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Apply an administrative edit, returning the previous values"""
        previous = {}
        for key, value in changes.items():
            previous[key] = getattr(self, key)
            setattr(self, key, value)
        self.modified_at = utc_now()
        return previous


class Booking(BaseModel):
    """Booking Aggregate Root Entity"""
    model_config = ConfigDict(from_attributes=True)

    # Identity
    booking_id: UUID = Field(default_factory=uuid4)
    reference: str

    # Guest
    guest_name: str
    guest_email: str

    # Room reference (business key, not a structural link)
    room_number: str

    # Stay
    check_in: date
    check_out: date

    # Status
    status: BookingStatus = BookingStatus.CONFIRMED
    total_amount: Decimal = Field(ge=0)
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    notes: Optional[str] = None

    # Metadata
    created_by: Optional[UUID] = None
    created_at: datetime = Field(default_factory=utc_now)
    modified_at: datetime = Field(default_factory=utc_now)
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    version: int = 1

    # ==================== QUERY METHODS ====================
    @property
    def date_range(self) -> DateRange:
        return DateRange(check_in=self.check_in, check_out=self.check_out)

    @property
    def is_active(self) -> bool:
        """Active bookings block their room for their date range"""
        return self.status in ACTIVE_BOOKING_STATUSES

    def get_nights(self) -> int:
        return nights_between(self.check_in, self.check_out)

    def overlaps(self, check_in: date, check_out: date) -> bool:
        return self.date_range.overlaps(check_in, check_out)

    def is_cancellable(self) -> bool:
        return self.status in CANCELLABLE_BOOKING_STATUSES

    def check_in_instant(self) -> datetime:
        """Start of the check-in day in UTC"""
        return datetime.combine(self.check_in, time.min, tzinfo=timezone.utc)

    def hours_until_check_in(self, now: datetime) -> float:
        return (self.check_in_instant() - now).total_seconds() / 3600

    # ==================== STATE TRANSITION METHODS ====================
    def confirm(self, now: datetime) -> None:
        """Confirm a booking that was held for review"""
        if self.status != BookingStatus.PENDING:
            raise ConflictError(
                f"Cannot confirm booking with status {self.status.value}",
                ErrorCode.INVALID_STATUS_TRANSITION,
            )
        self._transition(BookingStatus.CONFIRMED, now)

    def check_in_guest(self, now: datetime) -> None:
        if self.status != BookingStatus.CONFIRMED:
            raise ConflictError(
                f"Cannot check in with status {self.status.value}",
                ErrorCode.INVALID_STATUS_TRANSITION,
            )
        self.checked_in_at = now
        self._transition(BookingStatus.CHECKED_IN, now)

    def check_out_guest(self, now: datetime) -> None:
        if self.status != BookingStatus.CHECKED_IN:
            raise ConflictError(
                f"Cannot check out with status {self.status.value}",
                ErrorCode.INVALID_STATUS_TRANSITION,
            )
        self.checked_out_at = now
        self._transition(BookingStatus.COMPLETED, now)

    def cancel(self, now: datetime, reason: Optional[str] = None) -> None:
        if not self.is_cancellable():
            raise ConflictError(
                f"Cannot cancel booking with status {self.status.value}",
                ErrorCode.INVALID_STATUS_TRANSITION,
            )
        self.cancelled_at = now
        self.cancellation_reason = reason
        self._transition(BookingStatus.CANCELLED, now)

    def reschedule(self, room_number: str, check_in: date, check_out: date,
                   total_amount: Decimal, now: datetime) -> None:
        if not self.is_cancellable():
            raise ConflictError(
                f"Cannot modify booking with status {self.status.value}",
                ErrorCode.INVALID_STATUS_TRANSITION,
            )
        self.room_number = room_number
        self.check_in = check_in
        self.check_out = check_out
        self.total_amount = total_amount
        self.modified_at = now
        self.version += 1

    def _transition(self, status: BookingStatus, now: datetime) -> None:
        self.status = status
        self.modified_at = now
        self.version += 1


class HotelService(BaseModel):
    """Extra service offered to guests (spa, airport pickup, ...)"""
    model_config = ConfigDict(from_attributes=True)

    service_id: UUID = Field(default_factory=uuid4)
    name: str
    price: Decimal = Field(ge=0)
    description: str

    def apply_changes(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        previous = {}
        for key, value in changes.items():
            previous[key] = getattr(self, key)
            setattr(self, key, value)
        return previous


class AuditLogEntry(BaseModel):
    """Append-only record of an administrative mutation"""
    model_config = ConfigDict(frozen=True)

    entry_id: UUID = Field(default_factory=uuid4)
    action: AuditAction
    entity: AuditEntity
    entity_id: UUID
    actor_id: Optional[UUID] = None
    details: Dict[str, Any] = {}
    timestamp: datetime = Field(default_factory=utc_now)

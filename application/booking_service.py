"""Reservation Orchestrator - the booking write path"""
import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import List, Optional
from uuid import UUID

from application.availability import AvailabilityService
from application.references import ReferenceGenerator
from application.services import AuditService, Clock, RoomService, check_email
from domain.auth import CallerIdentity
from domain.entities import Booking, Room
from domain.enums import AuditAction, AuditEntity, BookingStatus, NotificationKind
from domain.exceptions import (
    AuthorizationError, BookingEngineError, ConflictError, DependencyError,
    DuplicateReferenceError, ErrorCode, NotFoundError, ValidationError,
)
from domain.notifications import NotificationGateway
from domain.repositories import BookingRepository, RoomRepository
from domain.value_objects import nights_between, stay_price, utc_now
from infrastructure.locks import RoomLockRegistry

logger = logging.getLogger(__name__)


async def send_booking_notifications(
    gateway: NotificationGateway, kind: NotificationKind, booking: Booking
) -> None:
    """Notify guest and operator; failures are logged and dropped"""
    try:
        await gateway.notify_guest(booking.guest_email, kind, booking)
    except Exception:
        logger.warning("Guest notification %s failed for %s", kind.value, booking.reference, exc_info=True)
    try:
        await gateway.notify_operator(kind, booking)
    except Exception:
        logger.warning("Operator notification %s failed for %s", kind.value, booking.reference, exc_info=True)


def validate_date_range(check_in: date, check_out: date) -> None:
    if check_in >= check_out:
        raise ValidationError(
            "Check-out must be after check-in",
            field="check_out",
            error_code=ErrorCode.INVALID_DATE_RANGE,
            details={"check_in": str(check_in), "check_out": str(check_out)},
        )


def validate_not_past(check_in: date, today: date) -> None:
    """Check-in may not be before the current UTC calendar date"""
    if check_in < today:
        raise ValidationError(
            "Check-in date must be today or later",
            field="check_in",
            error_code=ErrorCode.CHECK_IN_IN_PAST,
            details={"check_in": str(check_in), "today": str(today)},
        )


class ReservationService:
    """Service for Booking business use cases"""

    def __init__(
        self,
        booking_repo: BookingRepository,
        room_repo: RoomRepository,
        availability: AvailabilityService,
        rooms: RoomService,
        references: ReferenceGenerator,
        locks: RoomLockRegistry,
        notifications: NotificationGateway,
        audit: AuditService,
        clock: Clock = utc_now,
        price_tolerance: Decimal = Decimal("0.01"),
        reference_retry_limit: int = 1,
        requires_review: bool = False,
    ):
        self.booking_repo = booking_repo
        self.room_repo = room_repo
        self.availability = availability
        self.rooms = rooms
        self.references = references
        self.locks = locks
        self.notifications = notifications
        self.audit = audit
        self.clock = clock
        self.price_tolerance = Decimal(price_tolerance)
        self.reference_retry_limit = reference_retry_limit
        self.requires_review = requires_review

    # ==================== CREATE ====================
    async def create_booking(
        self,
        guest_name: Optional[str],
        guest_email: Optional[str],
        room_number: Optional[str],
        check_in: Optional[date],
        check_out: Optional[date],
        declared_total,
        notes: Optional[str] = None,
        created_by: Optional[UUID] = None,
    ) -> Booking:
        """Create a booking; validation failures leave every store untouched"""
        now = self.clock()
        declared = self._validate_required(guest_name, guest_email, room_number, check_in, check_out, declared_total)
        validate_date_range(check_in, check_out)
        validate_not_past(check_in, now.date())
        # unknown room numbers never get a lock
        await self._get_bookable_room(room_number)

        async with self.locks.hold(room_number):
            room = await self._get_bookable_room(room_number)

            nights = nights_between(check_in, check_out)
            expected = stay_price(room.price, nights)
            if abs(expected - declared) > self.price_tolerance:
                raise ValidationError(
                    "Total amount does not match the room rate",
                    field="total_amount",
                    error_code=ErrorCode.AMOUNT_MISMATCH,
                    details={"expected": str(expected), "declared": str(declared), "nights": nights},
                )

            if await self.availability.has_conflict(room_number, check_in, check_out):
                logger.info("Booking rejected: room %s taken for %s..%s", room_number, check_in, check_out)
                raise ConflictError(
                    "Room is not available for the selected dates",
                    ErrorCode.ROOM_UNAVAILABLE,
                    {"room_number": room_number, "check_in": str(check_in), "check_out": str(check_out)},
                )

            booking = await self._insert_with_reference(
                guest_name=guest_name.strip(),
                guest_email=guest_email.strip(),
                room_number=room_number,
                check_in=check_in,
                check_out=check_out,
                status=BookingStatus.PENDING if self.requires_review else BookingStatus.CONFIRMED,
                total_amount=expected,
                notes=notes,
                created_by=created_by,
                created_at=now,
                modified_at=now,
            )

            try:
                await self.rooms.sync_status(room_number)
            except Exception as exc:
                await self.booking_repo.delete(booking.booking_id)
                logger.error("Room status update failed, booking %s rolled back", booking.reference, exc_info=True)
                raise DependencyError("Room inventory is unavailable") from exc

        logger.info(
            "Booking %s created for room %s (%s..%s, %s)",
            booking.reference, room_number, check_in, check_out, booking.total_amount,
        )
        await send_booking_notifications(self.notifications, NotificationKind.BOOKING_CREATED, booking)
        return booking

    def _validate_required(self, guest_name, guest_email, room_number, check_in, check_out, declared_total) -> Decimal:
        required = {
            "guest_name": guest_name,
            "guest_email": guest_email,
            "room_number": room_number,
            "check_in": check_in,
            "check_out": check_out,
            "total_amount": declared_total,
        }
        for field, value in required.items():
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(
                    f"{field} is required", field=field, error_code=ErrorCode.MISSING_REQUIRED_FIELD
                )
        check_email(guest_email.strip(), field="guest_email")
        try:
            declared = Decimal(str(declared_total))
        except InvalidOperation:
            raise ValidationError("total_amount must be a number", field="total_amount")
        if not declared.is_finite() or declared < 0:
            raise ValidationError("total_amount must be zero or more", field="total_amount")
        return declared

    async def _get_bookable_room(self, room_number: str) -> Room:
        room = await self.room_repo.find_by_number(room_number)
        if not room:
            raise NotFoundError("Room not found", details={"room_number": room_number})
        if room.is_under_maintenance:
            raise ConflictError(
                "Room is under maintenance",
                ErrorCode.ROOM_UNAVAILABLE,
                {"room_number": room_number, "status": room.status.value},
            )
        return room

    async def _insert_with_reference(self, **fields) -> Booking:
        """Insert with a fresh reference, regenerating on a duplicate"""
        rejected = None
        for attempt in range(self.reference_retry_limit + 1):
            reference = await self.references.next_reference(fields["created_at"].date(), rejected)
            booking = Booking(reference=reference, **fields)
            try:
                return await self.booking_repo.insert(booking)
            except DuplicateReferenceError as exc:
                logger.warning("Reference %s already taken (attempt %d)", reference, attempt + 1)
                rejected = reference
                last_error = exc
            except BookingEngineError:
                raise
            except Exception as exc:
                raise DependencyError("Booking ledger is unavailable") from exc
        raise last_error

    # ==================== ADMINISTRATIVE TRANSITIONS ====================
    async def confirm_booking(self, booking_id: UUID, actor_id: Optional[UUID] = None) -> Booking:
        """Confirm a pending booking if its range is still free"""
        booking = await self.get_booking(booking_id)
        async with self.locks.hold(booking.room_number):
            booking = await self.get_booking(booking_id)
            now = self.clock()
            booking.confirm(now)
            if await self.availability.has_conflict(
                booking.room_number, booking.check_in, booking.check_out, exclude_booking_id=booking.booking_id
            ):
                raise ConflictError(
                    "Room is not available for the selected dates",
                    ErrorCode.ROOM_UNAVAILABLE,
                    {"room_number": booking.room_number},
                )
            booking = await self._save(booking)
            await self.rooms.sync_status(booking.room_number)

        logger.info("Booking %s confirmed", booking.reference)
        await self.audit.record(AuditAction.CONFIRM, AuditEntity.BOOKING, booking.booking_id, actor_id,
                                {"reference": booking.reference})
        return booking

    async def modify_booking(
        self,
        booking_id: UUID,
        check_in: Optional[date] = None,
        check_out: Optional[date] = None,
        room_number: Optional[str] = None,
        actor_id: Optional[UUID] = None,
    ) -> Booking:
        """Move a pending or confirmed booking to new dates or another room

        The total is recomputed from the target room's rate.
        """
        booking = await self.get_booking(booking_id)
        target_room = room_number or booking.room_number
        await self._get_bookable_room(target_room)

        async with self.locks.hold(booking.room_number, target_room):
            booking = await self.get_booking(booking_id)
            original = booking.model_copy()
            new_in = check_in or booking.check_in
            new_out = check_out or booking.check_out
            validate_date_range(new_in, new_out)
            if new_in != booking.check_in:
                validate_not_past(new_in, self.clock().date())

            room = await self._get_bookable_room(target_room)
            if await self.availability.has_conflict(target_room, new_in, new_out, exclude_booking_id=booking.booking_id):
                raise ConflictError(
                    "Room is not available for the selected dates",
                    ErrorCode.ROOM_UNAVAILABLE,
                    {"room_number": target_room, "check_in": str(new_in), "check_out": str(new_out)},
                )

            total = stay_price(room.price, nights_between(new_in, new_out))
            booking.reschedule(target_room, new_in, new_out, total, self.clock())
            booking = await self._save(booking)
            for number in {original.room_number, target_room}:
                await self.rooms.sync_status(number)

        logger.info("Booking %s moved to room %s (%s..%s)", booking.reference, target_room, new_in, new_out)
        await self.audit.record(
            AuditAction.UPDATE, AuditEntity.BOOKING, booking.booking_id, actor_id,
            {
                "old_values": {
                    "room_number": original.room_number,
                    "check_in": str(original.check_in),
                    "check_out": str(original.check_out),
                    "total_amount": str(original.total_amount),
                },
                "new_values": {
                    "room_number": booking.room_number,
                    "check_in": str(booking.check_in),
                    "check_out": str(booking.check_out),
                    "total_amount": str(booking.total_amount),
                },
            },
        )
        return booking

    async def check_in_booking(self, booking_id: UUID) -> Booking:
        booking = await self.get_booking(booking_id)
        async with self.locks.hold(booking.room_number):
            booking = await self.get_booking(booking_id)
            booking.check_in_guest(self.clock())
            booking = await self._save(booking)
            await self.rooms.sync_status(booking.room_number)
        logger.info("Booking %s checked in", booking.reference)
        return booking

    async def check_out_booking(self, booking_id: UUID) -> Booking:
        booking = await self.get_booking(booking_id)
        async with self.locks.hold(booking.room_number):
            booking = await self.get_booking(booking_id)
            booking.check_out_guest(self.clock())
            booking = await self._save(booking)
            await self.rooms.sync_status(booking.room_number)
        logger.info("Booking %s completed", booking.reference)
        return booking

    async def delete_booking(self, booking_id: UUID, actor_id: Optional[UUID] = None) -> None:
        """Hard delete, outside the normal lifecycle"""
        booking = await self.get_booking(booking_id)
        async with self.locks.hold(booking.room_number):
            await self.booking_repo.delete(booking_id)
            await self.rooms.sync_status(booking.room_number)
        logger.warning("Booking %s deleted", booking.reference)
        await self.audit.record(AuditAction.DELETE, AuditEntity.BOOKING, booking.booking_id, actor_id,
                                {"deleted_values": booking.model_dump(mode="json")})

    async def _save(self, booking: Booking) -> Booking:
        try:
            return await self.booking_repo.update(booking)
        except BookingEngineError:
            raise
        except Exception as exc:
            raise DependencyError("Booking ledger is unavailable") from exc

    # ==================== QUERIES ====================
    async def get_booking(self, booking_id: UUID) -> Booking:
        booking = await self.booking_repo.find_by_id(booking_id)
        if not booking:
            raise NotFoundError("Booking not found", details={"booking_id": str(booking_id)})
        return booking

    async def get_booking_for(self, booking_id: UUID, caller: CallerIdentity) -> Booking:
        """Fetch a booking the caller may view"""
        booking = await self.get_booking(booking_id)
        ensure_can_access(booking, caller)
        return booking

    async def get_booking_by_reference(self, reference: str) -> Booking:
        booking = await self.booking_repo.find_by_reference(reference)
        if not booking:
            raise NotFoundError("Booking not found", details={"reference": reference})
        return booking

    async def get_bookings_by_guest(self, email: str) -> List[Booking]:
        return await self.booking_repo.find_by_guest_email(email)

    async def get_all_bookings(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        return await self.booking_repo.find_all(status)


def ensure_can_access(booking: Booking, caller: CallerIdentity) -> None:
    """Administrators see everything; customers only bookings made in their e-mail"""
    if caller.is_admin:
        return
    if not caller.email or caller.email.lower() != booking.guest_email.lower():
        raise AuthorizationError(
            "Booking belongs to another guest",
            details={"booking_id": str(booking.booking_id)},
        )

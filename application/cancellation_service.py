"""Cancellation Orchestrator - the compensating write path"""
import logging
from typing import Optional
from uuid import UUID

from application.booking_service import ensure_can_access, send_booking_notifications
from application.services import AuditService, Clock, RoomService
from domain.auth import CallerIdentity
from domain.entities import Booking
from domain.enums import AuditAction, AuditEntity, NotificationKind
from domain.exceptions import BookingEngineError, ConflictError, DependencyError, ErrorCode, NotFoundError
from domain.notifications import NotificationGateway
from domain.repositories import BookingRepository
from domain.value_objects import utc_now
from infrastructure.locks import RoomLockRegistry

logger = logging.getLogger(__name__)


class CancellationService:
    """Cancels bookings for their guests or for administrators

    Customers cannot cancel once check-in (00:00 UTC of the check-in date) is
    closer than the cancellation window. Administrators are not bound by the
    window or by ownership.
    """

    def __init__(
        self,
        booking_repo: BookingRepository,
        rooms: RoomService,
        locks: RoomLockRegistry,
        notifications: NotificationGateway,
        audit: AuditService,
        clock: Clock = utc_now,
        window_hours: int = 24,
    ):
        self.booking_repo = booking_repo
        self.rooms = rooms
        self.locks = locks
        self.notifications = notifications
        self.audit = audit
        self.clock = clock
        self.window_hours = window_hours

    async def cancel_booking(
        self,
        booking_id: UUID,
        caller: CallerIdentity,
        reason: Optional[str] = None,
    ) -> Booking:
        booking = await self._get(booking_id)
        ensure_can_access(booking, caller)

        async with self.locks.hold(booking.room_number):
            booking = await self._get(booking_id)
            original = booking.model_copy()
            now = self.clock()

            if not booking.is_cancellable():
                raise ConflictError(
                    f"Cannot cancel booking with status {booking.status.value}",
                    ErrorCode.INVALID_STATUS_TRANSITION,
                    {"status": booking.status.value},
                )
            if not caller.is_admin:
                hours_left = booking.hours_until_check_in(now)
                if hours_left < self.window_hours:
                    raise ConflictError(
                        f"Bookings cannot be cancelled less than {self.window_hours} hours before check-in",
                        ErrorCode.CANCELLATION_WINDOW_CLOSED,
                        {"hours_until_check_in": round(hours_left, 2)},
                    )

            booking.cancel(now, reason)
            booking = await self._save(booking)
            try:
                await self.rooms.sync_status(booking.room_number)
            except Exception as exc:
                await self.booking_repo.update(original)
                logger.error("Room status update failed, cancellation of %s reverted", booking.reference,
                             exc_info=True)
                raise DependencyError("Room inventory is unavailable") from exc

        logger.info("Booking %s cancelled by %s", booking.reference, caller.role.value)
        if caller.is_admin:
            await self.audit.record(
                AuditAction.CANCEL, AuditEntity.BOOKING, booking.booking_id, caller.user_id,
                {"reference": booking.reference, "reason": reason},
            )
        await send_booking_notifications(self.notifications, NotificationKind.BOOKING_CANCELLED, booking)
        return booking

    async def _get(self, booking_id: UUID) -> Booking:
        booking = await self.booking_repo.find_by_id(booking_id)
        if not booking:
            raise NotFoundError("Booking not found", details={"booking_id": str(booking_id)})
        return booking

    async def _save(self, booking: Booking) -> Booking:
        try:
            return await self.booking_repo.update(booking)
        except BookingEngineError:
            raise
        except Exception as exc:
            raise DependencyError("Booking ledger is unavailable") from exc

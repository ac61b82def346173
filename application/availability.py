"""Availability Resolver

Decides whether a room is free for a date range by looking at the Booking
Ledger. The coarse room status flag plays no part in the decision.
"""
from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from domain.entities import Room
from domain.enums import RoomStatus, ACTIVE_BOOKING_STATUSES
from domain.exceptions import ErrorCode, ValidationError
from domain.repositories import BookingRepository, RoomRepository


class AvailabilityService:
    """Read-only availability queries"""

    def __init__(self, booking_repo: BookingRepository, room_repo: RoomRepository):
        self.booking_repo = booking_repo
        self.room_repo = room_repo

    async def has_conflict(
        self,
        room_number: str,
        check_in: date,
        check_out: date,
        exclude_booking_id: Optional[UUID] = None,
    ) -> bool:
        """True when an active booking on the room overlaps [check_in, check_out)

        Callers must have rejected empty or inverted ranges already.
        """
        active = await self.booking_repo.find_by_room(room_number, ACTIVE_BOOKING_STATUSES)
        return any(
            booking.overlaps(check_in, check_out)
            for booking in active
            if booking.booking_id != exclude_booking_id
        )

    async def conflicting_room_numbers(self, check_in: date, check_out: date) -> set:
        """Room numbers with an active booking overlapping the range"""
        numbers = set()
        for status in ACTIVE_BOOKING_STATUSES:
            for booking in await self.booking_repo.find_all(status):
                if booking.overlaps(check_in, check_out):
                    numbers.add(booking.room_number)
        return numbers

    async def search_rooms(
        self,
        room_type: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        check_in: Optional[date] = None,
        check_out: Optional[date] = None,
    ) -> List[Room]:
        """Rooms matching type and price filters, free for the range when one is given"""
        rooms = await self.room_repo.find_all(room_type=room_type, min_price=min_price, max_price=max_price)
        if check_in is None or check_out is None:
            return rooms

        if check_in >= check_out:
            raise ValidationError(
                "Check-out must be after check-in",
                field="check_out",
                error_code=ErrorCode.INVALID_DATE_RANGE,
            )
        booked = await self.conflicting_room_numbers(check_in, check_out)
        return [
            room for room in rooms
            if room.status != RoomStatus.MAINTENANCE and room.room_number not in booked
        ]

    async def list_available_rooms(self) -> List[Room]:
        """Rooms whose coarse status is available"""
        return [r for r in await self.room_repo.find_all() if r.status == RoomStatus.AVAILABLE]

"""In-Memory Repository Implementations

Stored aggregates are copied on the way in and out, so a caller mutating an
entity it fetched changes nothing until it calls ``update``.
"""
from typing import Optional, List, Dict
from uuid import UUID
from datetime import date, timezone
from decimal import Decimal

from domain.repositories import (
    RoomRepository, BookingRepository, HotelServiceRepository, UserRepository, AuditLogRepository,
)
from domain.auth import UserInDB
from domain.entities import Room, Booking, HotelService, AuditLogEntry
from domain.enums import BookingStatus
from domain.exceptions import ConflictError, DuplicateReferenceError, NotFoundError, ErrorCode
from domain.value_objects import parse_sequence


def _copy(entity):
    return entity.model_copy(deep=True)


class InMemoryRoomRepository(RoomRepository):
    """In-memory implementation of RoomRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Room] = {}

    async def save(self, room: Room) -> Room:
        """Save room to memory"""
        for existing in self._storage.values():
            if existing.room_number == room.room_number and existing.room_id != room.room_id:
                raise ConflictError(
                    f"Room {room.room_number} already exists",
                    ErrorCode.DUPLICATE_ENTRY,
                    {"room_number": room.room_number},
                )
        self._storage[room.room_id] = _copy(room)
        return room

    async def find_by_id(self, room_id: UUID) -> Optional[Room]:
        room = self._storage.get(room_id)
        return _copy(room) if room else None

    async def find_by_number(self, room_number: str) -> Optional[Room]:
        for room in self._storage.values():
            if room.room_number == room_number:
                return _copy(room)
        return None

    async def find_all(
        self,
        room_type: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
    ) -> List[Room]:
        results = []
        for room in self._storage.values():
            if room_type is not None and room.type != room_type:
                continue
            if min_price is not None and room.price < min_price:
                continue
            if max_price is not None and room.price > max_price:
                continue
            results.append(_copy(room))
        return sorted(results, key=lambda r: r.room_number)

    async def update(self, room: Room) -> Room:
        if room.room_id not in self._storage:
            raise NotFoundError("Room not found", details={"room_id": str(room.room_id)})
        return await self.save(room)

    async def delete(self, room_id: UUID) -> bool:
        if room_id in self._storage:
            del self._storage[room_id]
            return True
        return False

    async def count(self) -> int:
        return len(self._storage)


class InMemoryBookingRepository(BookingRepository):
    """In-memory Booking Ledger

    ``insert`` and ``update`` check their constraints and write without
    yielding to the event loop, so each call is atomic with respect to other
    coroutines.
    """

    def __init__(self):
        self._storage: Dict[UUID, Booking] = {}
        # highest reference sequence issued per creation day; never decremented
        self._sequences: Dict[date, int] = {}

    def _check_constraints(self, booking: Booking) -> None:
        for existing in self._storage.values():
            if existing.booking_id == booking.booking_id:
                continue
            if existing.reference == booking.reference:
                raise DuplicateReferenceError(
                    f"Booking reference {booking.reference} already exists",
                    details={"reference": booking.reference},
                )
            if (
                booking.is_active
                and existing.is_active
                and existing.room_number == booking.room_number
                and existing.overlaps(booking.check_in, booking.check_out)
            ):
                raise ConflictError(
                    "Room is no longer available for the selected dates",
                    ErrorCode.ROOM_UNAVAILABLE,
                    {"room_number": booking.room_number, "conflicting_reference": existing.reference},
                )

    async def insert(self, booking: Booking) -> Booking:
        """Insert booking into memory"""
        if booking.booking_id in self._storage:
            raise ConflictError("Booking already exists", ErrorCode.DUPLICATE_ENTRY)
        self._check_constraints(booking)
        self._storage[booking.booking_id] = _copy(booking)
        self._record_sequence(booking)
        return booking

    def _record_sequence(self, booking: Booking) -> None:
        sequence = parse_sequence(booking.reference)
        if sequence is None:
            return
        day = booking.created_at.astimezone(timezone.utc).date()
        self._sequences[day] = max(self._sequences.get(day, 0), sequence)

    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        booking = self._storage.get(booking_id)
        return _copy(booking) if booking else None

    async def find_by_reference(self, reference: str) -> Optional[Booking]:
        for booking in self._storage.values():
            if booking.reference == reference:
                return _copy(booking)
        return None

    async def find_by_guest_email(self, email: str) -> List[Booking]:
        email = email.lower()
        bookings = [_copy(b) for b in self._storage.values() if b.guest_email.lower() == email]
        return sorted(bookings, key=lambda b: b.check_in, reverse=True)

    async def find_by_room(self, room_number: str, statuses: Optional[frozenset] = None) -> List[Booking]:
        return [
            _copy(b) for b in self._storage.values()
            if b.room_number == room_number and (statuses is None or b.status in statuses)
        ]

    async def find_all(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        bookings = [_copy(b) for b in self._storage.values() if status is None or b.status == status]
        return sorted(bookings, key=lambda b: b.created_at)

    async def last_sequence_on(self, day: date) -> int:
        return self._sequences.get(day, 0)

    async def update(self, booking: Booking) -> Booking:
        if booking.booking_id not in self._storage:
            raise NotFoundError("Booking not found", details={"booking_id": str(booking.booking_id)})
        self._check_constraints(booking)
        self._storage[booking.booking_id] = _copy(booking)
        return booking

    async def delete(self, booking_id: UUID) -> bool:
        if booking_id in self._storage:
            del self._storage[booking_id]
            return True
        return False

    async def count(self) -> int:
        return len(self._storage)


class InMemoryHotelServiceRepository(HotelServiceRepository):
    """In-memory implementation of HotelServiceRepository"""

    def __init__(self):
        self._storage: Dict[UUID, HotelService] = {}

    async def save(self, service: HotelService) -> HotelService:
        self._storage[service.service_id] = _copy(service)
        return service

    async def find_by_id(self, service_id: UUID) -> Optional[HotelService]:
        service = self._storage.get(service_id)
        return _copy(service) if service else None

    async def find_all(self) -> List[HotelService]:
        return sorted((_copy(s) for s in self._storage.values()), key=lambda s: s.name)

    async def update(self, service: HotelService) -> HotelService:
        if service.service_id not in self._storage:
            raise NotFoundError("Service not found")
        return await self.save(service)

    async def delete(self, service_id: UUID) -> bool:
        if service_id in self._storage:
            del self._storage[service_id]
            return True
        return False

    async def count(self) -> int:
        return len(self._storage)


class InMemoryUserRepository(UserRepository):
    """In-memory implementation of UserRepository"""

    def __init__(self):
        self._storage: Dict[UUID, UserInDB] = {}

    async def save(self, user: UserInDB) -> UserInDB:
        for existing in self._storage.values():
            if existing.user_id == user.user_id:
                continue
            if existing.username == user.username or existing.email.lower() == user.email.lower():
                raise ConflictError("User already exists", ErrorCode.DUPLICATE_ENTRY)
        self._storage[user.user_id] = _copy(user)
        return user

    async def find_by_id(self, user_id: UUID) -> Optional[UserInDB]:
        user = self._storage.get(user_id)
        return _copy(user) if user else None

    async def find_by_username(self, username: str) -> Optional[UserInDB]:
        for user in self._storage.values():
            if user.username == username:
                return _copy(user)
        return None

    async def find_by_email(self, email: str) -> Optional[UserInDB]:
        email = email.lower()
        for user in self._storage.values():
            if user.email.lower() == email:
                return _copy(user)
        return None

    async def find_all(self) -> List[UserInDB]:
        return sorted((_copy(u) for u in self._storage.values()), key=lambda u: u.username)

    async def update(self, user: UserInDB) -> UserInDB:
        if user.user_id not in self._storage:
            raise NotFoundError("User not found")
        return await self.save(user)

    async def count(self) -> int:
        return len(self._storage)


class InMemoryAuditLogRepository(AuditLogRepository):
    """In-memory implementation of AuditLogRepository"""

    def __init__(self):
        self._entries: List[AuditLogEntry] = []

    async def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        self._entries.append(entry)
        return entry

    async def find_recent(self, limit: int = 100) -> List[AuditLogEntry]:
        return sorted(self._entries, key=lambda e: e.timestamp, reverse=True)[:limit]

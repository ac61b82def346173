"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List
from uuid import UUID
from datetime import date
from decimal import Decimal

from domain.auth import UserInDB
from domain.entities import Room, Booking, HotelService, AuditLogEntry
from domain.enums import BookingStatus


class RoomRepository(ABC):
    """Repository interface for the Room Inventory Store"""

    @abstractmethod
    async def save(self, room: Room) -> Room:
        """Save new room; room numbers are unique"""
        pass

    @abstractmethod
    async def find_by_id(self, room_id: UUID) -> Optional[Room]:
        pass

    @abstractmethod
    async def find_by_number(self, room_number: str) -> Optional[Room]:
        pass

    @abstractmethod
    async def find_all(
        self,
        room_type: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
    ) -> List[Room]:
        """Find rooms, optionally filtered by type and nightly rate"""
        pass

    @abstractmethod
    async def update(self, room: Room) -> Room:
        pass

    @abstractmethod
    async def delete(self, room_id: UUID) -> bool:
        pass

    @abstractmethod
    async def count(self) -> int:
        pass


class BookingRepository(ABC):
    """Repository interface for the Booking Ledger"""

    @abstractmethod
    async def insert(self, booking: Booking) -> Booking:
        """Insert booking; rejects duplicate references and overlapping active bookings"""
        pass

    @abstractmethod
    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        pass

    @abstractmethod
    async def find_by_reference(self, reference: str) -> Optional[Booking]:
        pass

    @abstractmethod
    async def find_by_guest_email(self, email: str) -> List[Booking]:
        pass

    @abstractmethod
    async def find_by_room(self, room_number: str, statuses: Optional[frozenset] = None) -> List[Booking]:
        pass

    @abstractmethod
    async def find_all(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        pass

    @abstractmethod
    async def last_sequence_on(self, day: date) -> int:
        """Highest reference sequence ever issued for bookings created on a UTC day

        Never decreases, even when bookings are deleted.
        """
        pass

    @abstractmethod
    async def update(self, booking: Booking) -> Booking:
        """Replace stored booking; enforces the same constraints as insert"""
        pass

    @abstractmethod
    async def delete(self, booking_id: UUID) -> bool:
        pass

    @abstractmethod
    async def count(self) -> int:
        pass


class HotelServiceRepository(ABC):
    """Repository interface for extra hotel services"""

    @abstractmethod
    async def save(self, service: HotelService) -> HotelService:
        pass

    @abstractmethod
    async def find_by_id(self, service_id: UUID) -> Optional[HotelService]:
        pass

    @abstractmethod
    async def find_all(self) -> List[HotelService]:
        pass

    @abstractmethod
    async def update(self, service: HotelService) -> HotelService:
        pass

    @abstractmethod
    async def delete(self, service_id: UUID) -> bool:
        pass

    @abstractmethod
    async def count(self) -> int:
        pass


class UserRepository(ABC):
    """Repository interface for user accounts"""

    @abstractmethod
    async def save(self, user: UserInDB) -> UserInDB:
        """Save user; usernames and e-mails are unique"""
        pass

    @abstractmethod
    async def find_by_id(self, user_id: UUID) -> Optional[UserInDB]:
        pass

    @abstractmethod
    async def find_by_username(self, username: str) -> Optional[UserInDB]:
        pass

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[UserInDB]:
        pass

    @abstractmethod
    async def find_all(self) -> List[UserInDB]:
        pass

    @abstractmethod
    async def update(self, user: UserInDB) -> UserInDB:
        pass

    @abstractmethod
    async def count(self) -> int:
        pass


class AuditLogRepository(ABC):
    """Append-only store for audit entries"""

    @abstractmethod
    async def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        pass

    @abstractmethod
    async def find_recent(self, limit: int = 100) -> List[AuditLogEntry]:
        """Newest entries first"""
        pass

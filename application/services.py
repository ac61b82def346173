"""Application Services - inventory, catalogue, users and audit"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

from email_validator import EmailNotValidError, validate_email

from domain.auth import UserInDB
from domain.entities import Room, HotelService, AuditLogEntry
from domain.enums import (
    AuditAction, AuditEntity, BookingStatus, RoomStatus, UserRole, ACTIVE_BOOKING_STATUSES,
)
from domain.exceptions import (
    AuthorizationError, ConflictError, ErrorCode, NotFoundError, ValidationError,
)
from domain.repositories import (
    AuditLogRepository, BookingRepository, HotelServiceRepository, RoomRepository, UserRepository,
)
from domain.value_objects import utc_now
from infrastructure.security import get_password_hash, verify_password

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

ROOM_EDITABLE_FIELDS = {"room_number", "type", "price", "status", "features", "images"}
SERVICE_EDITABLE_FIELDS = {"name", "price", "description"}


def check_email(value: str, field: str = "email") -> str:
    """Reject malformed addresses; deliverability is not checked"""
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValidationError(
            f"{field} must be a valid e-mail address", field=field, details={"reason": str(exc)}
        ) from exc
    return value


def _jsonable(values: Dict[str, Any]) -> Dict[str, Any]:
    result = {}
    for key, value in values.items():
        if isinstance(value, Decimal):
            value = str(value)
        elif isinstance(value, (date, datetime, UUID)):
            value = str(value)
        elif hasattr(value, "value"):
            value = value.value
        result[key] = value
    return result


class AuditService:
    """Append-only audit trail for administrative mutations"""

    def __init__(self, repository: AuditLogRepository):
        self.repository = repository

    async def record(
        self,
        action: AuditAction,
        entity: AuditEntity,
        entity_id: UUID,
        actor_id: Optional[UUID],
        details: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLogEntry]:
        """Append an entry; an audit failure never fails the mutation it describes"""
        entry = AuditLogEntry(
            action=action,
            entity=entity,
            entity_id=entity_id,
            actor_id=actor_id,
            details=details or {},
        )
        try:
            return await self.repository.append(entry)
        except Exception:
            logger.exception("Failed to write audit entry %s %s %s", action.value, entity.value, entity_id)
            return None

    async def recent(self, limit: int = 100) -> List[AuditLogEntry]:
        return await self.repository.find_recent(limit)


class RoomService:
    """Room Inventory Store use cases"""

    def __init__(
        self,
        repository: RoomRepository,
        booking_repo: BookingRepository,
        audit: AuditService,
        clock: Clock = utc_now,
    ):
        self.repository = repository
        self.booking_repo = booking_repo
        self.audit = audit
        self.clock = clock

    async def create_room(
        self,
        room_number: str,
        room_type: str,
        price: Decimal,
        actor_id: Optional[UUID] = None,
        status: RoomStatus = RoomStatus.AVAILABLE,
        features: Optional[List[str]] = None,
        images: Optional[List[str]] = None,
    ) -> Room:
        """Create a room; room numbers are unique"""
        if not room_number or not room_number.strip():
            raise ValidationError("Room number is required", field="room_number",
                                  error_code=ErrorCode.MISSING_REQUIRED_FIELD)
        if price is None or Decimal(price) < 0:
            raise ValidationError("Price must be zero or more", field="price")

        room = Room(
            room_number=room_number.strip(),
            type=room_type,
            price=Decimal(price),
            status=status,
            features=features or [],
            images=images or [],
        )
        room = await self.repository.save(room)
        logger.info("Room %s created", room.room_number)
        await self.audit.record(
            AuditAction.CREATE, AuditEntity.ROOM, room.room_id, actor_id,
            {"new_values": room.model_dump(mode="json")},
        )
        return room

    async def get_room(self, room_id: UUID) -> Room:
        room = await self.repository.find_by_id(room_id)
        if not room:
            raise NotFoundError("Room not found", details={"room_id": str(room_id)})
        return room

    async def get_room_by_number(self, room_number: str) -> Optional[Room]:
        return await self.repository.find_by_number(room_number)

    async def list_rooms(self) -> List[Room]:
        return await self.repository.find_all()

    async def update_room(self, room_id: UUID, changes: Dict[str, Any], actor_id: Optional[UUID] = None) -> Room:
        """Administrative edit of any room field"""
        unknown = set(changes) - ROOM_EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown room fields: {', '.join(sorted(unknown))}")
        if "price" in changes and Decimal(changes["price"]) < 0:
            raise ValidationError("Price must be zero or more", field="price")

        room = await self.get_room(room_id)
        if "room_number" in changes and changes["room_number"] != room.room_number:
            referenced = await self.booking_repo.find_by_room(room.room_number)
            if referenced:
                raise ConflictError(
                    "Cannot renumber a room referenced by bookings",
                    details={"room_number": room.room_number},
                )
        previous = room.apply_changes(changes)
        room = await self.repository.update(room)
        if "status" in changes and not room.is_under_maintenance:
            # only maintenance is set by hand; the other statuses follow the ledger
            room = await self.sync_status(room.room_number)
        logger.info("Room %s updated: %s", room.room_number, sorted(changes))
        await self.audit.record(
            AuditAction.UPDATE, AuditEntity.ROOM, room.room_id, actor_id,
            {"old_values": _jsonable(previous), "new_values": _jsonable(changes)},
        )
        return room

    async def delete_room(self, room_id: UUID, actor_id: Optional[UUID] = None) -> None:
        """Delete a room that no booking references"""
        room = await self.get_room(room_id)
        referenced = await self.booking_repo.find_by_room(room.room_number)
        if referenced:
            raise ConflictError(
                "Room is referenced by bookings and cannot be deleted",
                details={"room_number": room.room_number, "bookings": len(referenced)},
            )
        await self.repository.delete(room_id)
        logger.info("Room %s deleted", room.room_number)
        await self.audit.record(
            AuditAction.DELETE, AuditEntity.ROOM, room.room_id, actor_id,
            {"deleted_values": room.model_dump(mode="json")},
        )

    async def sync_status(self, room_number: str) -> Optional[Room]:
        """Recompute the coarse status flag from the ledger

        A room is occupied while it has a checked-in booking or a confirmed
        booking that has not ended yet. Rooms under maintenance keep their
        status.
        """
        room = await self.repository.find_by_number(room_number)
        if not room or room.is_under_maintenance:
            return room

        today = self.clock().date()
        active = await self.booking_repo.find_by_room(room_number, ACTIVE_BOOKING_STATUSES)
        occupied = any(
            b.status == BookingStatus.CHECKED_IN or b.check_out > today
            for b in active
        )
        desired = RoomStatus.OCCUPIED if occupied else RoomStatus.AVAILABLE
        if room.status != desired:
            room.status = desired
            room.modified_at = self.clock()
            room = await self.repository.update(room)
            logger.debug("Room %s status set to %s", room_number, desired.value)
        return room


class HotelServiceCatalog:
    """Extra services offered to guests"""

    def __init__(self, repository: HotelServiceRepository, audit: AuditService):
        self.repository = repository
        self.audit = audit

    async def create_service(self, name: str, price: Decimal, description: str,
                             actor_id: Optional[UUID] = None) -> HotelService:
        if not name or not name.strip():
            raise ValidationError("Service name is required", field="name",
                                  error_code=ErrorCode.MISSING_REQUIRED_FIELD)
        service = await self.repository.save(
            HotelService(name=name.strip(), price=Decimal(price), description=description)
        )
        await self.audit.record(
            AuditAction.CREATE, AuditEntity.SERVICE, service.service_id, actor_id,
            {"new_values": service.model_dump(mode="json")},
        )
        return service

    async def get_service(self, service_id: UUID) -> HotelService:
        service = await self.repository.find_by_id(service_id)
        if not service:
            raise NotFoundError("Service not found", details={"service_id": str(service_id)})
        return service

    async def list_services(self) -> List[HotelService]:
        return await self.repository.find_all()

    async def update_service(self, service_id: UUID, changes: Dict[str, Any],
                             actor_id: Optional[UUID] = None) -> HotelService:
        unknown = set(changes) - SERVICE_EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown service fields: {', '.join(sorted(unknown))}")
        service = await self.get_service(service_id)
        previous = service.apply_changes(changes)
        service = await self.repository.update(service)
        await self.audit.record(
            AuditAction.UPDATE, AuditEntity.SERVICE, service.service_id, actor_id,
            {"old_values": _jsonable(previous), "new_values": _jsonable(changes)},
        )
        return service

    async def delete_service(self, service_id: UUID, actor_id: Optional[UUID] = None) -> None:
        service = await self.get_service(service_id)
        await self.repository.delete(service_id)
        await self.audit.record(
            AuditAction.DELETE, AuditEntity.SERVICE, service.service_id, actor_id,
            {"deleted_values": service.model_dump(mode="json")},
        )


class UserService:
    """Registration and credential checks"""

    def __init__(self, repository: UserRepository):
        self.repository = repository

    async def register(
        self,
        username: str,
        password: str,
        email: str,
        full_name: Optional[str] = None,
        phone: Optional[str] = None,
        role: UserRole = UserRole.CUSTOMER,
        image: Optional[str] = None,
    ) -> UserInDB:
        if len(username or "") < 3:
            raise ValidationError("Username must be at least 3 characters", field="username")
        if len(password or "") < 6:
            raise ValidationError("Password must be at least 6 characters", field="password")
        check_email(email)
        if await self.repository.find_by_username(username) or await self.repository.find_by_email(email):
            logger.warning("Registration rejected: user already exists (%s)", username)
            raise ConflictError("User already exists", ErrorCode.DUPLICATE_ENTRY)

        user = UserInDB(
            username=username,
            email=email,
            full_name=full_name,
            phone=phone,
            role=role,
            image=image,
            hashed_password=get_password_hash(password),
        )
        user = await self.repository.save(user)
        logger.info("User %s registered with role %s", username, role.value)
        return user

    async def authenticate(self, username: str, password: str) -> Optional[UserInDB]:
        user = await self.repository.find_by_username(username)
        if not user or not verify_password(password, user.hashed_password):
            return None
        return user

    async def get_user(self, user_id: UUID) -> UserInDB:
        user = await self.repository.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def get_by_username(self, username: str) -> Optional[UserInDB]:
        return await self.repository.find_by_username(username)

    async def list_users(self) -> List[UserInDB]:
        return await self.repository.find_all()

    async def update_profile(
        self,
        user_id: UUID,
        full_name: Optional[str] = None,
        phone: Optional[str] = None,
        image: Optional[str] = None,
    ) -> UserInDB:
        """Update contact details; fields left as None are unchanged"""
        user = await self.get_user(user_id)
        changes = {"full_name": full_name, "phone": phone, "image": image}
        for field, value in changes.items():
            if value is not None:
                setattr(user, field, value)
        user = await self.repository.update(user)
        logger.info("Profile of %s updated", user.username)
        return user

    async def change_password(self, user_id: UUID, current_password: str, new_password: str) -> UserInDB:
        user = await self.get_user(user_id)
        if not verify_password(current_password, user.hashed_password):
            raise ValidationError("Current password is incorrect", field="current_password")
        if len(new_password or "") < 6:
            raise ValidationError("Password must be at least 6 characters", field="new_password")
        user.hashed_password = get_password_hash(new_password)
        user = await self.repository.update(user)
        logger.info("Password of %s changed", user.username)
        return user

    async def ensure_admin(self, username: str, password: str, email: str) -> UserInDB:
        """Seed the administrator account if it does not exist yet"""
        existing = await self.repository.find_by_username(username)
        if existing:
            if existing.role != UserRole.ADMIN:
                raise AuthorizationError(f"User {username} exists but is not an administrator")
            return existing
        return await self.register(username, password, email, full_name="Administrator", role=UserRole.ADMIN)

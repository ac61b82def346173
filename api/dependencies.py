"""API Dependencies - storage wiring, services and authentication"""
import asyncio

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from application.availability import AvailabilityService
from application.booking_service import ReservationService
from application.cancellation_service import CancellationService
from application.references import ReferenceGenerator
from application.reporting_service import ReportingService
from application.services import AuditService, HotelServiceCatalog, RoomService, UserService
from domain.auth import CallerIdentity, User
from infrastructure.config import get_settings
from infrastructure.locks import RoomLockRegistry
from infrastructure.notifications import LoggingNotificationGateway
from infrastructure.repositories.in_memory_repositories import (
    InMemoryAuditLogRepository, InMemoryBookingRepository, InMemoryHotelServiceRepository,
    InMemoryRoomRepository, InMemoryUserRepository,
)
from infrastructure.security import decode_access_token
from api.schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

settings = get_settings()

# Initialize repositories
room_repo = InMemoryRoomRepository()
booking_repo = InMemoryBookingRepository()
service_repo = InMemoryHotelServiceRepository()
user_repo = InMemoryUserRepository()
audit_repo = InMemoryAuditLogRepository()

# Process-wide collaborators
room_locks = RoomLockRegistry()
notification_gateway = LoggingNotificationGateway(settings.OPERATOR_EMAIL)

# The administrator account is created on first use
_admin_seed_lock = asyncio.Lock()
_admin_seeded = False


def get_audit_service() -> AuditService:
    return AuditService(audit_repo)


def get_room_service() -> RoomService:
    return RoomService(room_repo, booking_repo, get_audit_service())


def get_availability_service() -> AvailabilityService:
    return AvailabilityService(booking_repo, room_repo)


def get_reservation_service() -> ReservationService:
    return ReservationService(
        booking_repo=booking_repo,
        room_repo=room_repo,
        availability=get_availability_service(),
        rooms=get_room_service(),
        references=ReferenceGenerator(booking_repo, settings.REFERENCE_PREFIX),
        locks=room_locks,
        notifications=notification_gateway,
        audit=get_audit_service(),
        price_tolerance=settings.PRICE_TOLERANCE,
        reference_retry_limit=settings.REFERENCE_RETRY_LIMIT,
        requires_review=settings.BOOKING_REQUIRES_REVIEW,
    )


def get_cancellation_service() -> CancellationService:
    return CancellationService(
        booking_repo=booking_repo,
        rooms=get_room_service(),
        locks=room_locks,
        notifications=notification_gateway,
        audit=get_audit_service(),
        window_hours=settings.CANCELLATION_WINDOW_HOURS,
    )


def get_reporting_service() -> ReportingService:
    return ReportingService(booking_repo, room_repo, service_repo, user_repo)


def get_catalog_service() -> HotelServiceCatalog:
    return HotelServiceCatalog(service_repo, get_audit_service())


async def get_user_service() -> UserService:
    global _admin_seeded
    service = UserService(user_repo)
    if not _admin_seeded:
        async with _admin_seed_lock:
            if not _admin_seeded:
                await service.ensure_admin(settings.ADMIN_USERNAME, settings.ADMIN_PASSWORD, settings.ADMIN_EMAIL)
                _admin_seeded = True
    return service


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    users: UserService = Depends(get_user_service),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        username: str = payload.get("sub")
        if username is None:
            raise credentials_exception
        token_data = TokenData(username=username, role=payload.get("role"))
    except JWTError:
        raise credentials_exception

    user = await users.get_by_username(token_data.username)
    if user is None:
        raise credentials_exception
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


async def get_current_admin(current_user: User = Depends(get_current_active_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


async def get_caller(current_user: User = Depends(get_current_active_user)) -> CallerIdentity:
    """Identity handed to the booking services"""
    return current_user.identity()

"""Domain Enums"""
from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked-in"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that block a room for their date range
ACTIVE_BOOKING_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN})

# Statuses a booking may be cancelled from
CANCELLABLE_BOOKING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})


class RoomStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    REFUNDED = "refunded"


class UserRole(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class AuditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    CANCEL = "cancel"
    CONFIRM = "confirm"


class AuditEntity(str, Enum):
    ROOM = "room"
    BOOKING = "booking"
    SERVICE = "service"
    USER = "user"


class NotificationKind(str, Enum):
    BOOKING_CREATED = "booking_created"
    BOOKING_CANCELLED = "booking_cancelled"


class RevenueBucket(str, Enum):
    DAY = "day"
    MONTH = "month"
    YEAR = "year"

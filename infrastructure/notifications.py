"""Notification gateway that writes rendered messages to the log"""
import logging
from typing import Dict, Optional, Tuple

from domain.entities import Booking
from domain.enums import NotificationKind
from domain.notifications import NotificationGateway

logger = logging.getLogger(__name__)

_GUEST_SUBJECTS: Dict[NotificationKind, str] = {
    NotificationKind.BOOKING_CREATED: "Booking Confirmation",
    NotificationKind.BOOKING_CANCELLED: "Booking Cancellation Confirmation",
}

_OPERATOR_SUBJECTS: Dict[NotificationKind, str] = {
    NotificationKind.BOOKING_CREATED: "New Booking Alert",
    NotificationKind.BOOKING_CANCELLED: "Booking Cancelled Alert",
}


def render_guest_message(kind: NotificationKind, booking: Booking) -> Tuple[str, str]:
    """Return (subject, body) for a guest notification"""
    verb = "confirmed" if kind == NotificationKind.BOOKING_CREATED else "cancelled"
    body = (
        f"Dear {booking.guest_name},\n\n"
        f"Your booking has been {verb}.\n\n"
        f"Details:\n"
        f"Reference: {booking.reference}\n"
        f"Room: {booking.room_number}\n"
        f"Check-in: {booking.check_in.isoformat()}\n"
        f"Check-out: {booking.check_out.isoformat()}\n"
        f"Total Amount: ${booking.total_amount}\n\n"
        f"Thank you for choosing our hotel!"
    )
    return _GUEST_SUBJECTS[kind], body


def render_operator_message(kind: NotificationKind, booking: Booking) -> Tuple[str, str]:
    """Return (subject, body) for an operator alert"""
    body = (
        f"Reference: {booking.reference}\n"
        f"Customer: {booking.guest_name}\n"
        f"Email: {booking.guest_email}\n"
        f"Room: {booking.room_number}\n"
        f"Check-in: {booking.check_in.isoformat()}\n"
        f"Check-out: {booking.check_out.isoformat()}\n"
        f"Total Amount: ${booking.total_amount}"
    )
    return _OPERATOR_SUBJECTS[kind], body


class LoggingNotificationGateway(NotificationGateway):
    """Renders notifications and logs them instead of sending e-mail"""

    def __init__(self, operator_email: Optional[str] = None):
        self.operator_email = operator_email

    async def notify_guest(self, email: str, kind: NotificationKind, booking: Booking) -> None:
        subject, body = render_guest_message(kind, booking)
        logger.info("Guest notification to %s: %s", email, subject, extra={"body": body})

    async def notify_operator(self, kind: NotificationKind, booking: Booking) -> None:
        subject, body = render_operator_message(kind, booking)
        logger.info(
            "Operator notification to %s: %s",
            self.operator_email or "operators",
            subject,
            extra={"body": body},
        )

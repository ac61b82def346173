"""Domain Notification Interface"""
from abc import ABC, abstractmethod

from domain.entities import Booking
from domain.enums import NotificationKind


class NotificationGateway(ABC):
    """Outbound guest and operator notifications

    Delivery is best-effort: callers log failures and never roll back a
    booking because a notification could not be sent.
    """

    @abstractmethod
    async def notify_guest(self, email: str, kind: NotificationKind, booking: Booking) -> None:
        pass

    @abstractmethod
    async def notify_operator(self, kind: NotificationKind, booking: Booking) -> None:
        pass

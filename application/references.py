"""Booking reference generation"""
from datetime import date
from typing import Optional

from domain.repositories import BookingRepository
from domain.value_objects import format_reference, parse_sequence


class ReferenceGenerator:
    """Builds references of the form BK20240601-001

    The sequence follows the highest one the ledger has issued that day, so
    deleting bookings never makes a live reference come round again. Two
    concurrent creations can still compute the same value; the ledger
    rejects the second insert and the caller regenerates, passing the
    rejected reference so the new sequence moves past it.
    """

    def __init__(self, booking_repo: BookingRepository, prefix: str = "BK"):
        self.booking_repo = booking_repo
        self.prefix = prefix

    async def next_reference(self, on_date: date, rejected: Optional[str] = None) -> str:
        sequence = await self.booking_repo.last_sequence_on(on_date) + 1
        if rejected:
            taken = parse_sequence(rejected)
            if taken is not None and taken >= sequence:
                sequence = taken + 1
        return format_reference(self.prefix, on_date, sequence)

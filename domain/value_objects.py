"""Domain Value Objects"""
import math
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

ONE_DAY = timedelta(days=1)
CENT = Decimal("0.01")


class DateRange(BaseModel):
    """Half-open stay interval [check_in, check_out)"""
    model_config = ConfigDict(frozen=True)

    check_in: date
    check_out: date

    @model_validator(mode="after")
    def check_out_after_check_in(self):
        if self.check_out <= self.check_in:
            raise ValueError("Check-out must be after check-in")
        return self

    def nights(self) -> int:
        """Calculate number of nights, partial days rounding up"""
        return nights_between(self.check_in, self.check_out)

    def overlaps(self, check_in: date, check_out: date) -> bool:
        """Standard half-open overlap test; touching ranges do not overlap"""
        return self.check_in < check_out and self.check_out > check_in


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def nights_between(check_in: date, check_out: date) -> int:
    return math.ceil((check_out - check_in) / ONE_DAY)


def stay_price(nightly_rate: Decimal, nights: int) -> Decimal:
    """Price of a stay, quantized to cents"""
    return (Decimal(nightly_rate) * nights).quantize(CENT, rounding=ROUND_HALF_UP)


def format_reference(prefix: str, on_date: date, sequence: int) -> str:
    return f"{prefix}{on_date:%Y%m%d}-{sequence:03d}"


def parse_sequence(reference: str) -> Optional[int]:
    """Trailing sequence number of a booking reference"""
    _, _, tail = reference.rpartition("-")
    return int(tail) if tail.isdigit() else None

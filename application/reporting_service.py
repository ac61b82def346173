"""Reporting Aggregator - read-only rollups over the Booking Ledger"""
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel

from application.services import Clock
from domain.enums import BookingStatus, RevenueBucket, RoomStatus, ACTIVE_BOOKING_STATUSES
from domain.repositories import (
    BookingRepository, HotelServiceRepository, RoomRepository, UserRepository,
)
from domain.value_objects import ONE_DAY, utc_now

BUCKET_FORMATS = {
    RevenueBucket.DAY: "%Y-%m-%d",
    RevenueBucket.MONTH: "%Y-%m",
    RevenueBucket.YEAR: "%Y",
}


class EntityCounts(BaseModel):
    rooms: int
    bookings: int
    services: int
    users: int


class RevenueRow(BaseModel):
    period: str
    revenue: Decimal
    bookings: int


class RoomTypeRevenue(BaseModel):
    room_type: str
    revenue: Decimal


class OccupancyPoint(BaseModel):
    day: date
    occupied_days: float


class OccupancyReport(BaseModel):
    total_rooms: int
    occupied_rooms: int
    current_occupancy_rate: float
    average_occupancy: float
    trend: List[OccupancyPoint]


class ChartPoint(BaseModel):
    day: date
    bookings: int
    revenue: Decimal


class CustomerDashboard(BaseModel):
    active_bookings: int
    upcoming_bookings: int
    total_spent: Decimal


class ReportingService:
    """Revenue and occupancy reports; never mutates state"""

    def __init__(
        self,
        booking_repo: BookingRepository,
        room_repo: RoomRepository,
        service_repo: HotelServiceRepository,
        user_repo: UserRepository,
        clock: Clock = utc_now,
    ):
        self.booking_repo = booking_repo
        self.room_repo = room_repo
        self.service_repo = service_repo
        self.user_repo = user_repo
        self.clock = clock

    async def entity_counts(self) -> EntityCounts:
        return EntityCounts(
            rooms=await self.room_repo.count(),
            bookings=await self.booking_repo.count(),
            services=await self.service_repo.count(),
            users=await self.user_repo.count(),
        )

    async def total_revenue(
        self,
        status: Optional[BookingStatus] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Decimal:
        """Sum of booking totals; start/end bound the check-in date as [start, end)"""
        bookings = await self.booking_repo.find_all(status)
        return sum(
            (b.total_amount for b in bookings if _in_window(b.check_in, start, end)),
            Decimal("0"),
        )

    async def revenue_by_period(
        self, bucket: RevenueBucket, status: Optional[BookingStatus] = None
    ) -> List[RevenueRow]:
        """Revenue and booking count grouped by check-in day, month or year"""
        fmt = BUCKET_FORMATS[bucket]
        revenue: Dict[str, Decimal] = defaultdict(Decimal)
        counts: Dict[str, int] = defaultdict(int)
        for booking in await self.booking_repo.find_all(status):
            key = booking.check_in.strftime(fmt)
            revenue[key] += booking.total_amount
            counts[key] += 1
        return [RevenueRow(period=key, revenue=revenue[key], bookings=counts[key]) for key in sorted(revenue)]

    async def revenue_by_room_type(self) -> List[RoomTypeRevenue]:
        """Revenue per room type; bookings whose room no longer exists are skipped"""
        room_types = {room.room_number: room.type for room in await self.room_repo.find_all()}
        revenue: Dict[str, Decimal] = defaultdict(Decimal)
        for booking in await self.booking_repo.find_all():
            room_type = room_types.get(booking.room_number)
            if room_type is not None:
                revenue[room_type] += booking.total_amount
        rows = [RoomTypeRevenue(room_type=k, revenue=v) for k, v in revenue.items()]
        return sorted(rows, key=lambda r: r.revenue, reverse=True)

    async def occupancy_report(self, lookback_days: int = 30) -> OccupancyReport:
        rooms = await self.room_repo.find_all()
        total_rooms = len(rooms)
        occupied_rooms = sum(1 for r in rooms if r.status == RoomStatus.OCCUPIED)
        current_rate = (occupied_rooms / total_rooms * 100) if total_rooms else 0.0

        since = self.clock().date() - timedelta(days=lookback_days)
        per_day: Dict[date, float] = defaultdict(float)
        for booking in await self.booking_repo.find_all():
            if booking.check_in >= since:
                per_day[booking.check_in] += (booking.check_out - booking.check_in) / ONE_DAY
        trend = [OccupancyPoint(day=day, occupied_days=per_day[day]) for day in sorted(per_day)]

        if trend and total_rooms:
            average = sum(p.occupied_days for p in trend) / (len(trend) * total_rooms) * 100
        else:
            average = 0.0

        return OccupancyReport(
            total_rooms=total_rooms,
            occupied_rooms=occupied_rooms,
            current_occupancy_rate=current_rate,
            average_occupancy=average,
            trend=trend,
        )

    async def booking_chart(self, lookback_days: int = 30) -> List[ChartPoint]:
        """Bookings and revenue per check-in day over the lookback window"""
        since = self.clock().date() - timedelta(days=lookback_days)
        counts: Dict[date, int] = defaultdict(int)
        revenue: Dict[date, Decimal] = defaultdict(Decimal)
        for booking in await self.booking_repo.find_all():
            if booking.check_in >= since:
                counts[booking.check_in] += 1
                revenue[booking.check_in] += booking.total_amount
        return [ChartPoint(day=day, bookings=counts[day], revenue=revenue[day]) for day in sorted(counts)]

    async def customer_dashboard(self, email: str) -> CustomerDashboard:
        today = self.clock().date()
        bookings = await self.booking_repo.find_by_guest_email(email)
        return CustomerDashboard(
            active_bookings=sum(1 for b in bookings if b.status in ACTIVE_BOOKING_STATUSES),
            upcoming_bookings=sum(
                1 for b in bookings if b.status == BookingStatus.CONFIRMED and b.check_in >= today
            ),
            total_spent=_total(b for b in bookings if b.status == BookingStatus.COMPLETED),
        )


def _in_window(day: date, start: Optional[date], end: Optional[date]) -> bool:
    if start is not None and day < start:
        return False
    if end is not None and day >= end:
        return False
    return True


def _total(bookings) -> Decimal:
    return sum((b.total_amount for b in bookings), Decimal("0"))

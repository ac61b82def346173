import logging
from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.responses import JSONResponse
from uuid import UUID
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Rooms
    CreateRoomRequest, UpdateRoomRequest, RoomResponse,
    # Bookings
    CreateBookingRequest, ModifyBookingRequest, CancelBookingRequest, BookingResponse,
    # Hotel services
    CreateHotelServiceRequest, UpdateHotelServiceRequest, HotelServiceResponse,
    # Admin
    AuditLogResponse, StatsResponse, MessageResponse,
    # Auth
    RegisterRequest, UpdateProfileRequest, ChangePasswordRequest, Token, UserResponse, EnumValuesResponse,
)
from api.dependencies import (
    get_audit_service, get_availability_service, get_cancellation_service, get_caller,
    get_catalog_service, get_current_active_user, get_current_admin, get_reporting_service,
    get_reservation_service, get_room_service, get_user_service, settings,
)
from application.availability import AvailabilityService
from application.booking_service import ReservationService
from application.cancellation_service import CancellationService
from application.reporting_service import (
    ChartPoint, CustomerDashboard, OccupancyReport, ReportingService, RevenueRow, RoomTypeRevenue,
)
from application.services import AuditService, HotelServiceCatalog, RoomService, UserService
from domain.auth import CallerIdentity, User
from domain.entities import Booking, HotelService, Room
from domain.enums import BookingStatus, PaymentStatus, RevenueBucket, RoomStatus
from domain.exceptions import BookingEngineError
from infrastructure.logging_config import setup_logging
from infrastructure.security import create_access_token

setup_logging(settings)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Hotel booking API: rooms, bookings, services, reports and audit log",
    version=settings.APP_VERSION,
)


@app.exception_handler(BookingEngineError)
async def booking_engine_error_handler(request: Request, exc: BookingEngineError):
    """Render domain errors as structured JSON"""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %r", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected: %r", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.to_dict()},
    )

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@app.get("/api/enums/booking-status", response_model=EnumValuesResponse, tags=["Enum Reference"])
async def get_booking_statuses():
    """Get all BookingStatus values"""
    return {
        "values": [item.value for item in BookingStatus],
        "description": "Booking status values: pending, confirmed, checked-in, completed, cancelled"
    }

@app.get("/api/enums/room-status", response_model=EnumValuesResponse, tags=["Enum Reference"])
async def get_room_statuses():
    """Get all RoomStatus values"""
    return {
        "values": [item.value for item in RoomStatus],
        "description": "Room status values: available, occupied, maintenance"
    }

@app.get("/api/enums/payment-status", response_model=EnumValuesResponse, tags=["Enum Reference"])
async def get_payment_statuses():
    """Get all PaymentStatus values"""
    return {
        "values": [item.value for item in PaymentStatus],
        "description": "Payment status values: unpaid, paid, refunded"
    }

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    users: UserService = Depends(get_user_service)
):
    user = await users.authenticate(form_data.username, form_data.password)
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(
        data={"sub": user.username, "role": user.role.value},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return {"access_token": access_token, "token_type": "bearer", "role": user.role}

@app.post("/auth/register", response_model=UserResponse, status_code=201, tags=["Auth"])
async def register(request: RegisterRequest, users: UserService = Depends(get_user_service)):
    """Register a customer account"""
    user = await users.register(
        username=request.username,
        password=request.password,
        email=request.email,
        full_name=request.full_name,
        phone=request.phone,
    )
    return _user_to_response(user)

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return _user_to_response(current_user)

@app.put("/users/me", response_model=UserResponse, tags=["Auth"])
async def update_profile(
    request: UpdateProfileRequest,
    users: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_active_user)
):
    """Update name, phone or profile image"""
    user = await users.update_profile(
        current_user.user_id,
        full_name=request.full_name,
        phone=request.phone,
        image=request.image,
    )
    return _user_to_response(user)

@app.put("/users/me/password", response_model=MessageResponse, tags=["Auth"])
async def change_password(
    request: ChangePasswordRequest,
    users: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_active_user)
):
    """Change password after checking the current one"""
    await users.change_password(current_user.user_id, request.current_password, request.new_password)
    return {"message": "Password changed successfully"}

# ============================================================================
# PUBLIC ROOM & SERVICE ENDPOINTS
# ============================================================================

@app.get("/api/rooms", response_model=List[RoomResponse], tags=["Rooms"])
async def search_rooms(
    type: Optional[str] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    check_in: Optional[date] = None,
    check_out: Optional[date] = None,
    service: AvailabilityService = Depends(get_availability_service)
):
    """List rooms; with both dates, only rooms free for that stay"""
    rooms = await service.search_rooms(
        room_type=type,
        min_price=min_price,
        max_price=max_price,
        check_in=check_in,
        check_out=check_out,
    )
    return [_room_to_response(r) for r in rooms]

@app.get("/api/rooms/available", response_model=List[RoomResponse], tags=["Rooms"])
async def get_available_rooms(service: AvailabilityService = Depends(get_availability_service)):
    """Rooms whose current status is available"""
    return [_room_to_response(r) for r in await service.list_available_rooms()]

@app.get("/api/services", response_model=List[HotelServiceResponse], tags=["Services"])
async def get_services(catalog: HotelServiceCatalog = Depends(get_catalog_service)):
    """List extra hotel services"""
    return [_service_to_response(s) for s in await catalog.list_services()]

# ============================================================================
# BOOKING ENDPOINTS
# ============================================================================

@app.post("/api/bookings", response_model=BookingResponse, status_code=201, tags=["Bookings"])
async def create_booking(
    request: CreateBookingRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Create a booking"""
    booking = await service.create_booking(
        guest_name=request.guest_name or current_user.full_name or current_user.username,
        guest_email=request.guest_email or current_user.email,
        room_number=request.room_number,
        check_in=request.check_in,
        check_out=request.check_out,
        declared_total=request.total_amount,
        notes=request.notes,
        created_by=current_user.user_id,
    )
    return _booking_to_response(booking)

@app.get("/api/bookings/mine", response_model=List[BookingResponse], tags=["Bookings"])
async def get_my_bookings(
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Bookings made in the caller's e-mail, latest check-in first"""
    bookings = await service.get_bookings_by_guest(current_user.email)
    return [_booking_to_response(b) for b in bookings]

@app.get("/api/bookings/reference/{reference}", response_model=BookingResponse, tags=["Bookings"])
async def get_booking_by_reference(
    reference: str,
    service: ReservationService = Depends(get_reservation_service),
    caller: CallerIdentity = Depends(get_caller)
):
    """Get booking by reference"""
    booking = await service.get_booking_by_reference(reference)
    booking = await service.get_booking_for(booking.booking_id, caller)
    return _booking_to_response(booking)

@app.get("/api/bookings/{booking_id}", response_model=BookingResponse, tags=["Bookings"])
async def get_booking(
    booking_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    caller: CallerIdentity = Depends(get_caller)
):
    """Get booking by ID"""
    return _booking_to_response(await service.get_booking_for(booking_id, caller))

@app.post("/api/bookings/{booking_id}/cancel", response_model=BookingResponse, tags=["Bookings"])
async def cancel_booking(
    booking_id: UUID,
    request: Optional[CancelBookingRequest] = None,
    service: CancellationService = Depends(get_cancellation_service),
    caller: CallerIdentity = Depends(get_caller)
):
    """Cancel a booking; customers only their own and not within the cancellation window"""
    booking = await service.cancel_booking(
        booking_id=booking_id,
        caller=caller,
        reason=request.reason if request else None,
    )
    return _booking_to_response(booking)

@app.get("/api/dashboard", response_model=CustomerDashboard, tags=["Bookings"])
async def get_customer_dashboard(
    service: ReportingService = Depends(get_reporting_service),
    current_user: User = Depends(get_current_active_user)
):
    """Summary of the caller's bookings"""
    return await service.customer_dashboard(current_user.email)

# ============================================================================
# ADMIN ROOM ENDPOINTS
# ============================================================================

@app.get("/api/admin/rooms", response_model=List[RoomResponse], tags=["Admin"])
async def admin_list_rooms(
    service: RoomService = Depends(get_room_service),
    admin: User = Depends(get_current_admin)
):
    return [_room_to_response(r) for r in await service.list_rooms()]

@app.post("/api/admin/rooms", response_model=RoomResponse, status_code=201, tags=["Admin"])
async def admin_create_room(
    request: CreateRoomRequest,
    service: RoomService = Depends(get_room_service),
    admin: User = Depends(get_current_admin)
):
    """Create a room"""
    room = await service.create_room(
        room_number=request.room_number,
        room_type=request.type,
        price=request.price,
        status=request.status,
        features=request.features,
        images=request.images,
        actor_id=admin.user_id,
    )
    return _room_to_response(room)

@app.put("/api/admin/rooms/{room_id}", response_model=RoomResponse, tags=["Admin"])
async def admin_update_room(
    room_id: UUID,
    request: UpdateRoomRequest,
    service: RoomService = Depends(get_room_service),
    admin: User = Depends(get_current_admin)
):
    """Update room details"""
    changes = request.model_dump(exclude_unset=True, exclude_none=True)
    room = await service.update_room(room_id, changes, actor_id=admin.user_id)
    return _room_to_response(room)

@app.delete("/api/admin/rooms/{room_id}", response_model=MessageResponse, tags=["Admin"])
async def admin_delete_room(
    room_id: UUID,
    service: RoomService = Depends(get_room_service),
    admin: User = Depends(get_current_admin)
):
    """Delete a room no booking references"""
    await service.delete_room(room_id, actor_id=admin.user_id)
    return {"message": "Room deleted"}

# ============================================================================
# ADMIN BOOKING ENDPOINTS
# ============================================================================

@app.get("/api/admin/bookings", response_model=List[BookingResponse], tags=["Admin"])
async def admin_list_bookings(
    status: Optional[BookingStatus] = None,
    service: ReservationService = Depends(get_reservation_service),
    admin: User = Depends(get_current_admin)
):
    """List all bookings, optionally by status"""
    return [_booking_to_response(b) for b in await service.get_all_bookings(status)]

@app.put("/api/admin/bookings/{booking_id}", response_model=BookingResponse, tags=["Admin"])
async def admin_modify_booking(
    booking_id: UUID,
    request: ModifyBookingRequest,
    service: ReservationService = Depends(get_reservation_service),
    admin: User = Depends(get_current_admin)
):
    """Move a booking to new dates or another room"""
    booking = await service.modify_booking(
        booking_id=booking_id,
        check_in=request.check_in,
        check_out=request.check_out,
        room_number=request.room_number,
        actor_id=admin.user_id,
    )
    return _booking_to_response(booking)

@app.post("/api/admin/bookings/{booking_id}/confirm", response_model=BookingResponse, tags=["Admin"])
async def admin_confirm_booking(
    booking_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    admin: User = Depends(get_current_admin)
):
    """Confirm a booking held for review"""
    return _booking_to_response(await service.confirm_booking(booking_id, actor_id=admin.user_id))

@app.post("/api/admin/bookings/{booking_id}/check-in", response_model=BookingResponse, tags=["Admin"])
async def admin_check_in(
    booking_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    admin: User = Depends(get_current_admin)
):
    """Check in guest"""
    return _booking_to_response(await service.check_in_booking(booking_id))

@app.post("/api/admin/bookings/{booking_id}/check-out", response_model=BookingResponse, tags=["Admin"])
async def admin_check_out(
    booking_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    admin: User = Depends(get_current_admin)
):
    """Check out guest and complete the booking"""
    return _booking_to_response(await service.check_out_booking(booking_id))

@app.post("/api/admin/bookings/{booking_id}/cancel", response_model=BookingResponse, tags=["Admin"])
async def admin_cancel_booking(
    booking_id: UUID,
    request: Optional[CancelBookingRequest] = None,
    service: CancellationService = Depends(get_cancellation_service),
    admin: User = Depends(get_current_admin)
):
    """Cancel any booking regardless of the cancellation window"""
    booking = await service.cancel_booking(
        booking_id=booking_id,
        caller=admin.identity(),
        reason=request.reason if request else None,
    )
    return _booking_to_response(booking)

@app.delete("/api/admin/bookings/{booking_id}", response_model=MessageResponse, tags=["Admin"])
async def admin_delete_booking(
    booking_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    admin: User = Depends(get_current_admin)
):
    """Hard delete a booking"""
    await service.delete_booking(booking_id, actor_id=admin.user_id)
    return {"message": "Booking deleted"}

# ============================================================================
# ADMIN SERVICE ENDPOINTS
# ============================================================================

@app.post("/api/admin/services", response_model=HotelServiceResponse, status_code=201, tags=["Admin"])
async def admin_create_service(
    request: CreateHotelServiceRequest,
    catalog: HotelServiceCatalog = Depends(get_catalog_service),
    admin: User = Depends(get_current_admin)
):
    service = await catalog.create_service(
        name=request.name, price=request.price, description=request.description, actor_id=admin.user_id
    )
    return _service_to_response(service)

@app.put("/api/admin/services/{service_id}", response_model=HotelServiceResponse, tags=["Admin"])
async def admin_update_service(
    service_id: UUID,
    request: UpdateHotelServiceRequest,
    catalog: HotelServiceCatalog = Depends(get_catalog_service),
    admin: User = Depends(get_current_admin)
):
    changes = request.model_dump(exclude_unset=True, exclude_none=True)
    service = await catalog.update_service(service_id, changes, actor_id=admin.user_id)
    return _service_to_response(service)

@app.delete("/api/admin/services/{service_id}", response_model=MessageResponse, tags=["Admin"])
async def admin_delete_service(
    service_id: UUID,
    catalog: HotelServiceCatalog = Depends(get_catalog_service),
    admin: User = Depends(get_current_admin)
):
    await catalog.delete_service(service_id, actor_id=admin.user_id)
    return {"message": "Service deleted"}

# ============================================================================
# ADMIN REPORT ENDPOINTS
# ============================================================================

@app.get("/api/admin/stats", response_model=StatsResponse, tags=["Reports"])
async def admin_stats(
    service: ReportingService = Depends(get_reporting_service),
    admin: User = Depends(get_current_admin)
):
    """Entity counts and revenue totals"""
    return StatsResponse(
        counts=await service.entity_counts(),
        total_revenue=await service.total_revenue(),
        revenue_by_room_type=await service.revenue_by_room_type(),
    )

@app.get("/api/admin/reports/revenue", response_model=List[RevenueRow], tags=["Reports"])
async def admin_revenue_report(
    bucket: RevenueBucket = RevenueBucket.MONTH,
    status: Optional[BookingStatus] = None,
    service: ReportingService = Depends(get_reporting_service),
    admin: User = Depends(get_current_admin)
):
    """Revenue grouped by check-in day, month or year"""
    return await service.revenue_by_period(bucket, status)

@app.get("/api/admin/reports/revenue/room-type", response_model=List[RoomTypeRevenue], tags=["Reports"])
async def admin_revenue_by_room_type(
    service: ReportingService = Depends(get_reporting_service),
    admin: User = Depends(get_current_admin)
):
    return await service.revenue_by_room_type()

@app.get("/api/admin/reports/occupancy", response_model=OccupancyReport, tags=["Reports"])
async def admin_occupancy_report(
    service: ReportingService = Depends(get_reporting_service),
    admin: User = Depends(get_current_admin)
):
    """Current occupancy and the trend over the lookback window"""
    return await service.occupancy_report(settings.OCCUPANCY_LOOKBACK_DAYS)

@app.get("/api/admin/chart-data", response_model=List[ChartPoint], tags=["Reports"])
async def admin_chart_data(
    service: ReportingService = Depends(get_reporting_service),
    admin: User = Depends(get_current_admin)
):
    return await service.booking_chart(settings.OCCUPANCY_LOOKBACK_DAYS)

# ============================================================================
# ADMIN AUDIT & USER ENDPOINTS
# ============================================================================

@app.get("/api/admin/audit-logs", response_model=List[AuditLogResponse], tags=["Admin"])
async def admin_audit_logs(
    audit: AuditService = Depends(get_audit_service),
    admin: User = Depends(get_current_admin)
):
    """Most recent audit entries, newest first"""
    entries = await audit.recent(settings.AUDIT_LOG_LIMIT)
    return [AuditLogResponse(**entry.model_dump()) for entry in entries]

@app.get("/api/admin/users", response_model=List[UserResponse], tags=["Admin"])
async def admin_list_users(
    users: UserService = Depends(get_user_service),
    admin: User = Depends(get_current_admin)
):
    return [_user_to_response(u) for u in await users.list_users()]

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _booking_to_response(booking: Booking) -> BookingResponse:
    """Convert Booking entity to BookingResponse"""
    return BookingResponse(
        booking_id=booking.booking_id,
        reference=booking.reference,
        guest_name=booking.guest_name,
        guest_email=booking.guest_email,
        room_number=booking.room_number,
        check_in=booking.check_in,
        check_out=booking.check_out,
        nights=booking.get_nights(),
        status=booking.status.value,
        total_amount=booking.total_amount,
        payment_status=booking.payment_status.value,
        notes=booking.notes,
        created_by=booking.created_by,
        created_at=booking.created_at,
        modified_at=booking.modified_at,
        checked_in_at=booking.checked_in_at,
        checked_out_at=booking.checked_out_at,
        cancelled_at=booking.cancelled_at,
        cancellation_reason=booking.cancellation_reason,
        version=booking.version
    )

def _room_to_response(room: Room) -> RoomResponse:
    """Convert Room entity to RoomResponse"""
    return RoomResponse(
        room_id=room.room_id,
        room_number=room.room_number,
        type=room.type,
        price=room.price,
        status=room.status.value,
        features=room.features,
        images=room.images,
        created_at=room.created_at,
        modified_at=room.modified_at
    )

def _service_to_response(service: HotelService) -> HotelServiceResponse:
    return HotelServiceResponse(
        service_id=service.service_id,
        name=service.name,
        price=service.price,
        description=service.description
    )

def _user_to_response(user: User) -> UserResponse:
    return UserResponse(
        user_id=user.user_id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        phone=user.phone,
        image=user.image,
        role=user.role,
        disabled=user.disabled
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

# ============================================================================
# FILE: studio_scheduler/api/v1/dashboard/appointments.py
# Session authenticated endpoints - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional
from uuid import UUID

from studio_scheduler.config.database import get_db
from studio_scheduler.api.dependencies import Principal, get_appointment_service, get_current_principal
from studio_scheduler.models.appointment import AppointmentStatus
from studio_scheduler.schemas.scheduling import (
    AppointmentUpdate,
    BookingRequest,
    CancelRequest,
    RescheduleBody,
    ReschedulingRequest,
    StatusChangeRequest,
)
from studio_scheduler.services.appointment.appointment_query_service import AppointmentQueryService
from studio_scheduler.services.appointment.appointment_service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["dashboard-appointments"])


@router.get("")
async def list_appointments(
        start_date: Optional[date] = Query(None, description="Filter appointments on or after this date"),
        end_date: Optional[date] = Query(None, description="Filter appointments on or before this date"),
        status: Optional[AppointmentStatus] = Query(None, description="Filter by status"),
        team_member_id: Optional[UUID] = Query(None, description="Filter by team member"),
        skip: int = Query(0, ge=0, description="Number of records to skip"),
        limit: int = Query(50, ge=1, le=100, description="Number of records to return"),
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    """
    Get a list of appointments for your studio, by date then start time.
    Requires authenticated session.
    """
    return AppointmentQueryService.list_appointments(
        db=db,
        studio_id=principal.studio_id,
        start_date=start_date,
        end_date=end_date,
        status=status.value if status else None,
        team_member_id=team_member_id,
        skip=skip,
        limit=limit
    )


@router.get("/metrics")
async def get_scheduling_metrics(
        start_date: Optional[date] = Query(None, description="Start date for metrics"),
        end_date: Optional[date] = Query(None, description="End date for metrics"),
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    """
    Appointment statistics: totals, status/source breakdown, peak hours,
    revenue per service and average booking lead time.
    """
    return AppointmentQueryService.get_scheduling_metrics(
        db=db,
        studio_id=principal.studio_id,
        start_date=start_date,
        end_date=end_date
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def book_appointment(
        request: BookingRequest,
        principal: Principal = Depends(get_current_principal),
        service: AppointmentService = Depends(get_appointment_service)
):
    """
    Book an appointment. Responds 409 with code `slot_unavailable` when the
    slot was taken or is outside availability.
    """
    appointment = service.book(principal.studio_id, request, actor_id=principal.user_id)
    return AppointmentQueryService.serialize_appointment(appointment, detailed=True)


@router.get("/{appointment_id}")
async def get_appointment(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    """
    Get detailed information about a specific appointment.
    Requires authenticated session.
    """
    return AppointmentQueryService.get_appointment_by_id(
        db=db,
        studio_id=principal.studio_id,
        appointment_id=appointment_id
    )


@router.get("/{appointment_id}/history")
async def get_appointment_history(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    """Audit trail of the appointment, oldest entry first."""
    return AppointmentQueryService.get_history(
        db=db,
        studio_id=principal.studio_id,
        appointment_id=appointment_id
    )


@router.patch("/{appointment_id}")
async def update_appointment(
        update: AppointmentUpdate,
        appointment_id: UUID = Path(..., description="The appointment ID"),
        principal: Principal = Depends(get_current_principal),
        service: AppointmentService = Depends(get_appointment_service)
):
    """Update notes, client or payment details. Use /reschedule to move it."""
    appointment = service.update_details(
        appointment_id, update, actor_id=principal.user_id, studio_id=principal.studio_id
    )
    return AppointmentQueryService.serialize_appointment(appointment, detailed=True)


@router.post("/{appointment_id}/reschedule")
async def reschedule_appointment(
        body: RescheduleBody,
        appointment_id: UUID = Path(..., description="The appointment ID"),
        principal: Principal = Depends(get_current_principal),
        service: AppointmentService = Depends(get_appointment_service)
):
    """Move the appointment; the new slot is checked like a new booking."""
    request = ReschedulingRequest(appointment_id=appointment_id, **body.model_dump())
    appointment = service.reschedule(request, actor_id=principal.user_id, studio_id=principal.studio_id)
    return AppointmentQueryService.serialize_appointment(appointment, detailed=True)


@router.post("/{appointment_id}/cancel")
async def cancel_appointment(
        body: Optional[CancelRequest] = None,
        appointment_id: UUID = Path(..., description="The appointment ID"),
        principal: Principal = Depends(get_current_principal),
        service: AppointmentService = Depends(get_appointment_service)
):
    """Cancel the appointment. Cancelling twice returns the same result."""
    appointment = service.cancel(
        appointment_id,
        actor_id=principal.user_id,
        reason=body.reason if body else None,
        studio_id=principal.studio_id
    )
    return AppointmentQueryService.serialize_appointment(appointment, detailed=True)


@router.post("/{appointment_id}/status")
async def change_appointment_status(
        body: StatusChangeRequest,
        appointment_id: UUID = Path(..., description="The appointment ID"),
        principal: Principal = Depends(get_current_principal),
        service: AppointmentService = Depends(get_appointment_service)
):
    """Confirm, check in, start, complete or mark no-show."""
    appointment = service.change_status(
        appointment_id,
        body.status,
        actor_id=principal.user_id,
        notes=body.notes,
        studio_id=principal.studio_id
    )
    return AppointmentQueryService.serialize_appointment(appointment, detailed=True)


@router.post("/{appointment_id}/confirmation-sent")
async def mark_confirmation_sent(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        principal: Principal = Depends(get_current_principal),
        service: AppointmentService = Depends(get_appointment_service)
):
    """Record that the confirmation message went out."""
    appointment = service.mark_confirmation_sent(appointment_id, studio_id=principal.studio_id)
    return AppointmentQueryService.serialize_appointment(appointment, detailed=True)


@router.post("/{appointment_id}/reminder-sent")
async def mark_reminder_sent(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        principal: Principal = Depends(get_current_principal),
        service: AppointmentService = Depends(get_appointment_service)
):
    """Record that the reminder message went out."""
    appointment = service.mark_reminder_sent(appointment_id, studio_id=principal.studio_id)
    return AppointmentQueryService.serialize_appointment(appointment, detailed=True)

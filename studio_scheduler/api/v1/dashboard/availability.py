# ============================================================================
# FILE: studio_scheduler/api/v1/dashboard/availability.py
# Slot search and availability lookups
# ============================================================================
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import date, time
from typing import Optional
from uuid import UUID

from studio_scheduler.config.database import get_db
from studio_scheduler.api.dependencies import Principal, get_current_principal, get_slot_generator
from studio_scheduler.core.exceptions import NotFoundError
from studio_scheduler.schemas.scheduling import AvailabilityQuery
from studio_scheduler.services.availability.availability_service import AvailabilityService
from studio_scheduler.services.availability.conflict_detector import ConflictDetector
from studio_scheduler.services.availability.slot_generator import SlotGenerator
from studio_scheduler.services.store.scheduling_store import SqlAlchemySchedulingStore

router = APIRouter(prefix="/availability", tags=["dashboard-availability"])


@router.get("/slots")
async def get_available_slots(
        start_date: date = Query(..., description="First date to search"),
        end_date: date = Query(..., description="Last date to search (inclusive)"),
        service_id: Optional[UUID] = Query(None, description="Service to book"),
        team_member_id: Optional[UUID] = Query(None, description="Restrict to one team member"),
        location_id: Optional[UUID] = Query(None, description="Restrict to one location"),
        duration: Optional[int] = Query(None, gt=0, description="Duration in minutes when no service is given"),
        step_minutes: Optional[int] = Query(None, description="Grid between candidate start times"),
        limit: Optional[int] = Query(None, ge=1, description="Maximum number of slots"),
        principal: Principal = Depends(get_current_principal),
        generator: SlotGenerator = Depends(get_slot_generator)
):
    """
    Bookable slots for the date range.
    Requires authenticated session.
    """
    query = AvailabilityQuery(
        studio_id=principal.studio_id,
        service_id=service_id,
        team_member_id=team_member_id,
        location_id=location_id,
        start_date=start_date,
        end_date=end_date,
        duration=duration,
    )
    slots = generator.generate_slots(query, step_minutes=step_minutes, limit=limit)
    return {
        "studio_id": str(principal.studio_id),
        "total_slots": len(slots),
        "slots": [slot.model_dump(mode="json") for slot in slots]
    }


@router.get("/open-intervals")
async def get_open_intervals(
        team_member_id: UUID = Query(..., description="Team member"),
        location_id: UUID = Query(..., description="Location"),
        target_date: date = Query(..., alias="date", description="Date to evaluate"),
        service_id: Optional[UUID] = Query(None, description="Service, for service-scoped rules"),
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    """Open working intervals after rules and blocked time. Empty means not working."""
    intervals = AvailabilityService(SqlAlchemySchedulingStore(db)).get_open_intervals(
        principal.studio_id, team_member_id, location_id, target_date, service_id
    )
    return {
        "date": target_date.isoformat(),
        "team_member_id": str(team_member_id),
        "location_id": str(location_id),
        "intervals": [interval.to_dict() for interval in intervals]
    }


@router.get("/conflicts")
async def check_conflicts(
        team_member_id: UUID = Query(..., description="Team member"),
        target_date: date = Query(..., alias="date", description="Appointment date"),
        start_time: time = Query(..., description="Start time (HH:MM)"),
        end_time: time = Query(..., description="End time (HH:MM)"),
        service_id: Optional[UUID] = Query(None, description="Service, for its buffers"),
        location_id: Optional[UUID] = Query(None, description="Location, for travel time"),
        exclude_appointment_id: Optional[UUID] = Query(None, description="Appointment being moved"),
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    """Appointments that would overlap the given interval."""
    store = SqlAlchemySchedulingStore(db)
    team_member = store.get_team_member(team_member_id)
    if team_member is None or team_member.studio_id != principal.studio_id:
        raise NotFoundError("Team member", team_member_id)

    conflicts = ConflictDetector(store).find_conflicts(
        team_member_id, target_date, start_time, end_time,
        service_id=service_id,
        location_id=location_id,
        exclude_appointment_id=exclude_appointment_id
    )
    return {
        "has_conflict": bool(conflicts),
        "conflicting_appointment_ids": [str(appointment.id) for appointment in conflicts]
    }

# studio_scheduler/schemas/scheduling.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Dict, Any, List
import datetime
from datetime import date, time
from decimal import Decimal
from uuid import UUID

from studio_scheduler.models.appointment import AppointmentStatus, BookingSource, PaymentStatus
from studio_scheduler.models.availability import RuleType, BlockType


class TimeSlot(BaseModel):
    """Bookable time slot"""
    date: datetime.date = Field(..., description="Slot date")
    start: str = Field(..., description="Slot start time (HH:MM)")
    end: str = Field(..., description="Slot end time (HH:MM)")
    available: bool = Field(True, description="Whether slot is available")
    team_member_id: Optional[UUID] = None
    location_id: Optional[UUID] = None
    service_id: Optional[UUID] = None

    @field_validator("end")
    @classmethod
    def end_after_start(cls, v: str, info) -> str:
        start = info.data.get("start")
        if start and v <= start:
            raise ValueError("End time must be after start time")
        return v


class AvailabilityQuery(BaseModel):
    """Slot search criteria"""
    studio_id: UUID = Field(..., description="Studio identifier")
    service_id: Optional[UUID] = Field(None, description="Service to book; provides duration and buffers")
    team_member_id: Optional[UUID] = Field(None, description="Restrict to one team member")
    location_id: Optional[UUID] = Field(None, description="Restrict to one location")
    start_date: date = Field(..., description="First date to search (inclusive)")
    end_date: date = Field(..., description="Last date to search (inclusive)")
    duration: Optional[int] = Field(None, gt=0, description="Duration in minutes when no service is given")


def whole_minute(v: time) -> time:
    if v.second or v.microsecond:
        raise ValueError("Time must be in HH:MM format")
    return v


class BookingRequest(BaseModel):
    """Appointment booking request"""
    client_id: Optional[UUID] = Field(None, description="Client; omit for walk-ins")
    team_member_id: UUID = Field(..., description="Team member performing the service")
    service_id: UUID = Field(..., description="Requested service")
    location_id: UUID = Field(..., description="Location of the appointment")
    appointment_date: date = Field(..., description="Appointment date")
    start_time: time = Field(..., description="Start time (HH:MM)")
    notes: Optional[str] = Field(None, description="Additional notes")
    booking_source: BookingSource = Field(BookingSource.STAFF)
    payment_amount: Optional[Decimal] = Field(None, ge=0, description="Amount paid at booking")

    @field_validator("start_time")
    @classmethod
    def start_on_minute(cls, v: time) -> time:
        return whole_minute(v)


class ReschedulingRequest(BaseModel):
    """Move an appointment to a new date/time (and optionally team member/location)"""
    appointment_id: UUID
    new_date: date
    new_start_time: time
    new_team_member_id: Optional[UUID] = None
    new_location_id: Optional[UUID] = None
    reason: Optional[str] = None

    @field_validator("new_start_time")
    @classmethod
    def start_on_minute(cls, v: time) -> time:
        return whole_minute(v)


class RescheduleBody(BaseModel):
    """Request body for the reschedule endpoint (appointment id comes from the path)"""
    new_date: date
    new_start_time: time
    new_team_member_id: Optional[UUID] = None
    new_location_id: Optional[UUID] = None
    reason: Optional[str] = None

    @field_validator("new_start_time")
    @classmethod
    def start_on_minute(cls, v: time) -> time:
        return whole_minute(v)


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class StatusChangeRequest(BaseModel):
    status: AppointmentStatus
    notes: Optional[str] = None


class AppointmentUpdate(BaseModel):
    """
    Editable appointment details.
    Date, time, team member and location change only through reschedule.
    """
    model_config = ConfigDict(extra="forbid")

    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    client_id: Optional[UUID] = None
    paid_amount: Optional[Decimal] = Field(None, ge=0)
    payment_status: Optional[PaymentStatus] = None


# ============================================================================
# Schedule settings
# ============================================================================

class AvailabilityRuleCreate(BaseModel):
    team_member_id: Optional[UUID] = None
    location_id: Optional[UUID] = None
    service_id: Optional[UUID] = None
    rule_type: RuleType = RuleType.WORKING_HOURS
    day_of_week: Optional[int] = Field(None, ge=0, le=6, description="0=Sunday, 6=Saturday; omit for every day")
    start_time: time
    end_time: time
    is_available: bool = True
    effective_from: date
    effective_until: Optional[date] = None

    @field_validator("end_time")
    @classmethod
    def end_after_start(cls, v: time, info) -> time:
        start_time = info.data.get("start_time")
        if start_time and v <= start_time:
            raise ValueError("End time must be after start time")
        return v


class RecurringPattern(BaseModel):
    """Repeat pattern for blocked time"""
    model_config = ConfigDict(extra="allow")

    frequency: str = Field(..., pattern="^(daily|weekly)$")
    interval: int = Field(1, ge=1)
    days_of_week: Optional[List[int]] = None
    until: Optional[date] = None

    @field_validator("days_of_week")
    @classmethod
    def validate_days(cls, v):
        if v is None:
            return v
        for day in v:
            if day < 0 or day > 6:
                raise ValueError("days_of_week values must be between 0 (Sunday) and 6 (Saturday)")
        return v


class BlockedTimeCreate(BaseModel):
    team_member_id: Optional[UUID] = None
    location_id: Optional[UUID] = None
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    block_type: BlockType = BlockType.PERSONAL
    start_date: date
    end_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    is_all_day: bool = False
    is_recurring: bool = False
    recurring_pattern: Optional[RecurringPattern] = None

    @field_validator("end_date")
    @classmethod
    def end_not_before_start(cls, v: date, info) -> date:
        start_date = info.data.get("start_date")
        if start_date and v < start_date:
            raise ValueError("End date must not be before start date")
        return v


class ServiceBufferUpdate(BaseModel):
    setup_time: Optional[int] = Field(None, ge=0)
    cleanup_time: Optional[int] = Field(None, ge=0)
    travel_time: Optional[int] = Field(None, ge=0)


# ============================================================================
# Waitlist
# ============================================================================

class WaitlistEntryCreate(BaseModel):
    client_id: UUID
    service_id: UUID
    location_id: Optional[UUID] = None
    preferred_team_member_id: Optional[UUID] = None
    preferred_date_start: Optional[date] = None
    preferred_date_end: Optional[date] = None
    preferred_time_start: Optional[time] = None
    preferred_time_end: Optional[time] = None
    priority_score: int = 0
    notes: Optional[str] = None
    notification_preferences: Dict[str, Any] = Field(default_factory=dict)

# ============================================================================
# studio_scheduler/services/availability/slot_generator.py
# Bookable slots = open intervals x service duration x step, minus conflicts
# ============================================================================
from typing import List, Optional
from uuid import UUID
import logging

from studio_scheduler.config.settings import Settings, get_settings
from studio_scheduler.core.exceptions import NotFoundError, ValidationError
from studio_scheduler.models import Location, Service, TeamMember
from studio_scheduler.schemas.scheduling import AvailabilityQuery, TimeSlot
from studio_scheduler.services.availability.availability_service import AvailabilityService
from studio_scheduler.services.availability.conflict_detector import detect_conflicts
from studio_scheduler.services.store.scheduling_store import SchedulingStore
from studio_scheduler.utils.time_utils import (
    MINUTES_PER_DAY,
    TimeInterval,
    align_up,
    format_minutes,
    iter_dates,
)

logger = logging.getLogger(__name__)


class SlotGenerator:
    """Generates bookable time slots for an availability query"""

    def __init__(self, store: SchedulingStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    def generate_slots(
            self,
            query: AvailabilityQuery,
            step_minutes: Optional[int] = None,
            limit: Optional[int] = None
    ) -> List[TimeSlot]:
        """
        Every non-conflicting start time, on the step grid, whose occupied
        window (setup + duration + cleanup) fits inside one open interval.

        Sorted by date, then start time, then team member and location.
        """
        step = step_minutes if step_minutes is not None else self.settings.SLOT_STEP_MINUTES
        self._validate(query, step)

        service = self._resolve_service(query)
        duration = service.duration if service else query.duration
        if not duration or duration <= 0:
            raise ValidationError("Duration must be a positive number of minutes")

        team_members = self._resolve_team_members(query)
        locations = self._resolve_locations(query)
        if not team_members or not locations:
            logger.info(f"No bookable team members or active locations for studio {query.studio_id}")
            return []

        # Load everything for the range once
        rules = self.store.find_availability_rules(
            query.studio_id, query.start_date, query.end_date, service_id=query.service_id
        )
        blocks = self.store.find_blocked_time(query.studio_id, query.start_date, query.end_date)
        appointments = self.store.find_appointments(query.studio_id, query.start_date, query.end_date)

        service_ids = {appointment.service_id for appointment in appointments}
        if service:
            service_ids.add(service.id)
        buffers = self.store.find_service_buffers(service_ids)
        candidate_buffer = buffers.get(service.id) if service else None
        setup = candidate_buffer.setup_time if candidate_buffer else 0
        cleanup = candidate_buffer.cleanup_time if candidate_buffer else 0

        slots: List[TimeSlot] = []
        for target_date in iter_dates(query.start_date, query.end_date):
            day_appointments = [a for a in appointments if a.appointment_date == target_date]

            for team_member in team_members:
                member_appointments = [a for a in day_appointments if a.team_member_id == team_member.id]

                for location in locations:
                    open_intervals = AvailabilityService.compute_open_intervals(
                        rules, blocks, target_date, team_member.id, location.id, query.service_id
                    )

                    for interval in open_intervals:
                        if interval.length < setup + duration + cleanup:
                            continue

                        start = align_up(interval.start + setup, step)
                        while start + duration + cleanup <= interval.end and start + duration < MINUTES_PER_DAY:
                            candidate = TimeInterval(start, start + duration)
                            conflicts = detect_conflicts(
                                team_member.id,
                                target_date,
                                candidate,
                                member_appointments,
                                buffers,
                                candidate_buffer=candidate_buffer,
                                candidate_location_id=location.id
                            )
                            if not conflicts:
                                slots.append(TimeSlot(
                                    date=target_date,
                                    start=format_minutes(candidate.start),
                                    end=format_minutes(candidate.end),
                                    available=True,
                                    team_member_id=team_member.id,
                                    location_id=location.id,
                                    service_id=service.id if service else None,
                                ))
                            start += step

        slots.sort(key=lambda s: (s.date, s.start, str(s.team_member_id), str(s.location_id)))
        logger.info(
            f"Generated {len(slots)} slots for studio {query.studio_id} "
            f"{query.start_date}..{query.end_date} (duration={duration}, step={step})"
        )
        return slots[:limit] if limit else slots

    def _validate(self, query: AvailabilityQuery, step: int) -> None:
        if step <= 0:
            raise ValidationError("step_minutes must be greater than zero")
        if query.end_date < query.start_date:
            raise ValidationError("end_date must not be before start_date")
        span = (query.end_date - query.start_date).days + 1
        if span > self.settings.MAX_SLOT_RANGE_DAYS:
            raise ValidationError(
                f"Date range too long: {span} days (max {self.settings.MAX_SLOT_RANGE_DAYS})"
            )
        if query.service_id is None and not query.duration:
            raise ValidationError("Either service_id or duration is required")

    def _resolve_service(self, query: AvailabilityQuery) -> Optional[Service]:
        if query.service_id is None:
            return None
        service = self.store.get_service(query.service_id)
        if service is None or service.studio_id != query.studio_id:
            raise NotFoundError("Service", query.service_id)
        if not service.is_active:
            raise ValidationError(f"Service {service.name} is not active")
        return service

    def _resolve_team_members(self, query: AvailabilityQuery) -> List[TeamMember]:
        if query.team_member_id is None:
            return self.store.list_team_members(query.studio_id, bookable_only=True)
        team_member = self.store.get_team_member(query.team_member_id)
        if team_member is None or team_member.studio_id != query.studio_id:
            raise NotFoundError("Team member", query.team_member_id)
        if not team_member.is_bookable or not team_member.is_active:
            return []
        return [team_member]

    def _resolve_locations(self, query: AvailabilityQuery) -> List[Location]:
        if query.location_id is None:
            return self.store.list_locations(query.studio_id, active_only=True)
        location = self.store.get_location(query.location_id)
        if location is None or location.studio_id != query.studio_id:
            raise NotFoundError("Location", query.location_id)
        if not location.is_active:
            return []
        return [location]

# ============================================================================
# studio_scheduler/services/availability/conflict_detector.py
# Overlap checks between a candidate slot and a team member's appointments
# ============================================================================
from datetime import date
from typing import Dict, List, Optional, Sequence
from uuid import UUID
import logging

from studio_scheduler.core.exceptions import NotFoundError
from studio_scheduler.models.appointment import Appointment, RELEASED_STATUSES
from studio_scheduler.models.service import ServiceBuffer
from studio_scheduler.services.store.scheduling_store import SchedulingStore
from studio_scheduler.utils.time_utils import TimeInterval, TimeLike, to_minutes

logger = logging.getLogger(__name__)


def _buffer_minutes(buffer: Optional[ServiceBuffer]):
    if buffer is None:
        return 0, 0, 0
    return buffer.setup_time or 0, buffer.cleanup_time or 0, buffer.travel_time or 0


def occupied_window(
        interval: TimeInterval,
        buffer: Optional[ServiceBuffer],
        extra: int = 0
) -> TimeInterval:
    """setup + service + cleanup, plus any travel padding on both sides"""
    setup, cleanup, _ = _buffer_minutes(buffer)
    return interval.widen(before=setup + extra, after=cleanup + extra)


def detect_conflicts(
        team_member_id: UUID,
        target_date: date,
        candidate: TimeInterval,
        appointments: Sequence[Appointment],
        buffers: Dict[UUID, ServiceBuffer],
        candidate_buffer: Optional[ServiceBuffer] = None,
        candidate_location_id: Optional[UUID] = None,
        exclude_appointment_id: Optional[UUID] = None
) -> List[Appointment]:
    """
    Appointments whose occupied window overlaps the candidate's.

    Cancelled and no-show appointments are ignored. Travel time applies only
    when both locations are known and differ.
    """
    candidate_window = occupied_window(candidate, candidate_buffer)
    _, _, candidate_travel = _buffer_minutes(candidate_buffer)

    conflicts = []
    for appointment in appointments:
        if appointment.id == exclude_appointment_id:
            continue
        if appointment.team_member_id != team_member_id or appointment.appointment_date != target_date:
            continue
        if appointment.status in RELEASED_STATUSES:
            continue

        existing_buffer = buffers.get(appointment.service_id)
        travel = 0
        if (
                candidate_location_id is not None
                and appointment.location_id is not None
                and appointment.location_id != candidate_location_id
        ):
            travel = max(candidate_travel, _buffer_minutes(existing_buffer)[2])

        existing = TimeInterval(to_minutes(appointment.start_time), to_minutes(appointment.end_time))
        if occupied_window(existing, existing_buffer, extra=travel).overlaps(candidate_window):
            conflicts.append(appointment)

    return conflicts


class ConflictDetector:
    """Answers whether a team member is already busy during a candidate interval"""

    def __init__(self, store: SchedulingStore):
        self.store = store

    def has_conflict(
            self,
            team_member_id: UUID,
            target_date: date,
            start: TimeLike,
            end: TimeLike,
            service_id: Optional[UUID] = None,
            location_id: Optional[UUID] = None,
            exclude_appointment_id: Optional[UUID] = None
    ) -> bool:
        return bool(self.find_conflicts(
            team_member_id, target_date, start, end,
            service_id=service_id,
            location_id=location_id,
            exclude_appointment_id=exclude_appointment_id
        ))

    def find_conflicts(
            self,
            team_member_id: UUID,
            target_date: date,
            start: TimeLike,
            end: TimeLike,
            service_id: Optional[UUID] = None,
            location_id: Optional[UUID] = None,
            exclude_appointment_id: Optional[UUID] = None
    ) -> List[Appointment]:
        candidate = TimeInterval.from_times(start, end)

        team_member = self.store.get_team_member(team_member_id)
        if team_member is None:
            raise NotFoundError("Team member", team_member_id)

        appointments = self.store.find_appointments(
            team_member.studio_id, target_date, target_date, team_member_id=team_member_id
        )
        service_ids = {appointment.service_id for appointment in appointments}
        if service_id is not None:
            service_ids.add(service_id)
        buffers = self.store.find_service_buffers(service_ids)

        conflicts = detect_conflicts(
            team_member_id,
            target_date,
            candidate,
            appointments,
            buffers,
            candidate_buffer=buffers.get(service_id) if service_id else None,
            candidate_location_id=location_id,
            exclude_appointment_id=exclude_appointment_id
        )
        if conflicts:
            logger.debug(
                f"{len(conflicts)} conflict(s) for team member {team_member_id} on {target_date} "
                f"{candidate.to_dict()}"
            )
        return conflicts

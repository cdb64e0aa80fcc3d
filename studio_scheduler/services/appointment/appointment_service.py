# ============================================================================
# studio_scheduler/services/appointment/appointment_service.py
# ============================================================================
"""Appointment lifecycle: booking, status transitions, reschedule, cancel"""
from contextlib import contextmanager
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID
import logging

from studio_scheduler.config.settings import Settings, get_settings
from studio_scheduler.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    SlotUnavailableError,
    ValidationError,
)
from studio_scheduler.models import (
    Appointment,
    AppointmentHistory,
    AppointmentStatus,
    ChangeType,
    Location,
    PaymentStatus,
    Service,
    TeamMember,
)
from studio_scheduler.schemas.scheduling import AppointmentUpdate, BookingRequest, ReschedulingRequest
from studio_scheduler.services.availability.availability_service import AvailabilityService
from studio_scheduler.services.availability.conflict_detector import ConflictDetector
from studio_scheduler.services.store.scheduling_store import SchedulingStore
from studio_scheduler.utils.time_utils import TimeInterval, add_minutes, format_time, to_minutes

logger = logging.getLogger(__name__)

S = AppointmentStatus

ALLOWED_TRANSITIONS = {
    S.SCHEDULED: {S.CONFIRMED, S.CANCELLED, S.RESCHEDULED},
    S.CONFIRMED: {S.ARRIVED, S.CANCELLED, S.NO_SHOW, S.RESCHEDULED},
    S.RESCHEDULED: {S.CONFIRMED, S.CANCELLED, S.RESCHEDULED},
    S.ARRIVED: {S.IN_PROGRESS, S.NO_SHOW},
    S.IN_PROGRESS: {S.COMPLETED},
    S.COMPLETED: set(),
    S.CANCELLED: set(),
    S.NO_SHOW: set(),
}

# Visit-progress timestamps stamped on entering a status
STATUS_TIMESTAMPS = {
    S.ARRIVED: "client_arrived_at",
    S.IN_PROGRESS: "service_started_at",
    S.COMPLETED: "service_completed_at",
}


def can_transition(current: str, target: str) -> bool:
    return AppointmentStatus(target) in ALLOWED_TRANSITIONS[AppointmentStatus(current)]


def derive_payment_status(total_price: Decimal, paid_amount: Decimal) -> str:
    if paid_amount <= 0:
        return PaymentStatus.PENDING.value
    if paid_amount >= total_price:
        return PaymentStatus.PAID.value
    return PaymentStatus.PARTIAL.value


def _jsonable(value: Any) -> Any:
    """History snapshots are stored as JSON"""
    if isinstance(value, time):
        return format_time(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if hasattr(value, "value"):
        return value.value
    return value


def _slot_snapshot(appointment_date: date, start_time: time, end_time: time) -> Dict[str, str]:
    return {
        "appointment_date": appointment_date.isoformat(),
        "start_time": format_time(start_time),
        "end_time": format_time(end_time),
    }


class AppointmentService:
    """
    Handles appointment operations.

    Every user-visible change appends exactly one AppointmentHistory row in the
    same transaction as the change itself.
    """

    def __init__(self, store: SchedulingStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()
        self.availability = AvailabilityService(store)
        self.conflicts = ConflictDetector(store)

    # ------------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------------

    def book(self, studio_id: UUID, request: BookingRequest, actor_id: Optional[str] = None) -> Appointment:
        """Create a new appointment after re-checking the slot"""
        service = self._require_service(studio_id, request.service_id)
        team_member = self._require_team_member(studio_id, request.team_member_id)
        location = self._require_location(studio_id, request.location_id)
        if request.client_id is not None:
            self._require_client(studio_id, request.client_id)

        end_time = add_minutes(request.start_time, service.duration)
        total_price = Decimal(service.price or 0)
        paid_amount = Decimal(request.payment_amount or 0)

        with self._transaction():
            self.store.lock_team_member_schedule(team_member.id)
            self._ensure_slot_open(
                studio_id, team_member, location, service,
                request.appointment_date, request.start_time, end_time
            )

            appointment = Appointment(
                studio_id=studio_id,
                client_id=request.client_id,
                team_member_id=team_member.id,
                service_id=service.id,
                location_id=location.id,
                appointment_date=request.appointment_date,
                start_time=request.start_time,
                end_time=end_time,
                notes=request.notes,
                status=AppointmentStatus.SCHEDULED.value,
                booking_source=request.booking_source.value,
                total_price=total_price,
                paid_amount=paid_amount,
                payment_status=derive_payment_status(total_price, paid_amount),
            )
            self.store.insert_appointment(appointment)

            new_values = _slot_snapshot(appointment.appointment_date, appointment.start_time, appointment.end_time)
            new_values.update({
                "status": appointment.status,
                "team_member_id": str(team_member.id),
                "location_id": str(location.id),
                "service_id": str(service.id),
            })
            self._append_history(appointment, ChangeType.CREATED, actor_id, new_values=new_values)

        logger.info(
            f"Booked appointment {appointment.id} for team member {team_member.id} on "
            f"{appointment.appointment_date} {format_time(appointment.start_time)}-{format_time(appointment.end_time)}"
        )
        return appointment

    # ------------------------------------------------------------------------
    # Reschedule / cancel
    # ------------------------------------------------------------------------

    def reschedule(
            self,
            request: ReschedulingRequest,
            actor_id: Optional[str] = None,
            studio_id: Optional[UUID] = None
    ) -> Appointment:
        """Move an appointment; the new slot is validated like a fresh booking"""
        appointment = self._require_appointment(request.appointment_id, studio_id)
        self._check_transition(appointment, AppointmentStatus.RESCHEDULED)

        service = self._require_service(appointment.studio_id, appointment.service_id, require_active=False)
        team_member = self._require_team_member(
            appointment.studio_id, request.new_team_member_id or appointment.team_member_id
        )
        location = self._require_location(appointment.studio_id, request.new_location_id or appointment.location_id)

        new_end_time = add_minutes(request.new_start_time, service.duration)

        old_values = _slot_snapshot(appointment.appointment_date, appointment.start_time, appointment.end_time)
        new_values = _slot_snapshot(request.new_date, request.new_start_time, new_end_time)
        if team_member.id != appointment.team_member_id:
            old_values["team_member_id"] = str(appointment.team_member_id)
            new_values["team_member_id"] = str(team_member.id)
        if location.id != appointment.location_id:
            old_values["location_id"] = str(appointment.location_id)
            new_values["location_id"] = str(location.id)

        with self._transaction():
            self.store.lock_team_member_schedule(team_member.id)
            self._ensure_slot_open(
                appointment.studio_id, team_member, location, service,
                request.new_date, request.new_start_time, new_end_time,
                exclude_appointment_id=appointment.id
            )
            appointment = self.store.update_appointment(appointment.id, {
                "appointment_date": request.new_date,
                "start_time": request.new_start_time,
                "end_time": new_end_time,
                "team_member_id": team_member.id,
                "location_id": location.id,
                "status": AppointmentStatus.RESCHEDULED.value,
            })
            self._append_history(
                appointment, ChangeType.RESCHEDULED, actor_id,
                old_values=old_values, new_values=new_values, notes=request.reason
            )

        logger.info(f"Rescheduled appointment {appointment.id}: {old_values} -> {new_values}")
        return appointment

    def cancel(
            self,
            appointment_id: UUID,
            actor_id: Optional[str] = None,
            reason: Optional[str] = None,
            studio_id: Optional[UUID] = None
    ) -> Appointment:
        """Cancel a live appointment; cancelling twice is a no-op"""
        appointment = self._require_appointment(appointment_id, studio_id)

        if appointment.status == AppointmentStatus.CANCELLED.value:
            logger.info(f"Appointment {appointment_id} already cancelled, nothing to do")
            return appointment

        self._check_transition(appointment, AppointmentStatus.CANCELLED)
        old_status = appointment.status

        with self._transaction():
            appointment = self.store.update_appointment(
                appointment.id, {"status": AppointmentStatus.CANCELLED.value}
            )
            self._append_history(
                appointment, ChangeType.CANCELLED, actor_id,
                old_values={"status": old_status},
                new_values={"status": AppointmentStatus.CANCELLED.value},
                notes=reason
            )

        logger.info(f"Cancelled appointment {appointment_id} (was {old_status})")
        return appointment

    # ------------------------------------------------------------------------
    # Status / details
    # ------------------------------------------------------------------------

    def change_status(
            self,
            appointment_id: UUID,
            new_status: AppointmentStatus,
            actor_id: Optional[str] = None,
            notes: Optional[str] = None,
            studio_id: Optional[UUID] = None
    ) -> Appointment:
        """Forward transitions along the visit (confirm, arrive, start, complete, no-show)"""
        new_status = AppointmentStatus(new_status)
        if new_status == AppointmentStatus.CANCELLED:
            raise ValidationError("Use cancel to cancel an appointment")
        if new_status == AppointmentStatus.RESCHEDULED:
            raise ValidationError("Use reschedule to move an appointment")

        appointment = self._require_appointment(appointment_id, studio_id)
        if appointment.status == new_status.value:
            return appointment

        self._check_transition(appointment, new_status)
        old_status = appointment.status

        changes: Dict[str, Any] = {"status": new_status.value}
        timestamp_field = STATUS_TIMESTAMPS.get(new_status)
        if timestamp_field:
            changes[timestamp_field] = datetime.now(timezone.utc)

        with self._transaction():
            appointment = self.store.update_appointment(appointment.id, changes)
            self._append_history(
                appointment, ChangeType.STATUS_CHANGED, actor_id,
                old_values={"status": old_status},
                new_values={"status": new_status.value},
                notes=notes
            )

        logger.info(f"Appointment {appointment_id}: {old_status} -> {new_status.value}")
        return appointment

    def update_details(
            self,
            appointment_id: UUID,
            update: AppointmentUpdate,
            actor_id: Optional[str] = None,
            studio_id: Optional[UUID] = None
    ) -> Appointment:
        """Notes, client and payment changes; time fields go through reschedule"""
        appointment = self._require_appointment(appointment_id, studio_id)
        requested = update.model_dump(exclude_unset=True)

        if requested.get("client_id") is not None:
            self._require_client(appointment.studio_id, requested["client_id"])

        if "paid_amount" in requested and requested["paid_amount"] is not None and "payment_status" not in requested:
            requested["payment_status"] = derive_payment_status(
                Decimal(appointment.total_price or 0), Decimal(requested["paid_amount"])
            )
        if requested.get("payment_status") is not None:
            requested["payment_status"] = PaymentStatus(requested["payment_status"]).value

        changes = {}
        for field, value in requested.items():
            current = getattr(appointment, field)
            if field == "paid_amount" and value is not None and current is not None:
                if Decimal(current) == Decimal(value):
                    continue
            elif current == value:
                continue
            changes[field] = value

        if not changes:
            return appointment

        old_values = {field: _jsonable(getattr(appointment, field)) for field in changes}
        new_values = {field: _jsonable(value) for field, value in changes.items()}

        with self._transaction():
            appointment = self.store.update_appointment(appointment.id, changes)
            self._append_history(
                appointment, ChangeType.UPDATED, actor_id,
                old_values=old_values, new_values=new_values
            )

        logger.info(f"Updated appointment {appointment_id}: {sorted(changes)}")
        return appointment

    def mark_confirmation_sent(self, appointment_id: UUID, studio_id: Optional[UUID] = None) -> Appointment:
        return self._stamp(appointment_id, "confirmation_sent_at", studio_id)

    def mark_reminder_sent(self, appointment_id: UUID, studio_id: Optional[UUID] = None) -> Appointment:
        return self._stamp(appointment_id, "reminder_sent_at", studio_id)

    # ------------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------------

    @contextmanager
    def _transaction(self):
        try:
            yield
            self.store.commit()
        except Exception:
            self.store.rollback()
            raise

    def _stamp(self, appointment_id: UUID, field: str, studio_id: Optional[UUID]) -> Appointment:
        appointment = self._require_appointment(appointment_id, studio_id)
        with self._transaction():
            appointment = self.store.update_appointment(appointment.id, {field: datetime.now(timezone.utc)})
        return appointment

    def _ensure_slot_open(
            self,
            studio_id: UUID,
            team_member: TeamMember,
            location: Location,
            service: Service,
            appointment_date: date,
            start_time: time,
            end_time: time,
            exclude_appointment_id: Optional[UUID] = None
    ) -> None:
        conflicts = self.conflicts.find_conflicts(
            team_member.id, appointment_date, start_time, end_time,
            service_id=service.id,
            location_id=location.id,
            exclude_appointment_id=exclude_appointment_id
        )
        if conflicts:
            raise ConflictError(
                "This time slot is no longer available",
                {
                    "appointment_date": appointment_date.isoformat(),
                    "start_time": format_time(start_time),
                    "team_member_id": str(team_member.id),
                    "conflicting_appointment_ids": [str(a.id) for a in conflicts],
                }
            )

        if not self.settings.ENFORCE_AVAILABILITY_ON_BOOKING:
            return

        buffer = self.store.find_service_buffer(service.id)
        occupied = TimeInterval(to_minutes(start_time), to_minutes(end_time)).widen(
            before=buffer.setup_time if buffer else 0,
            after=buffer.cleanup_time if buffer else 0,
        )
        open_intervals = self.availability.get_open_intervals(
            studio_id, team_member.id, location.id, appointment_date, service.id
        )
        if not any(interval.contains(occupied) for interval in open_intervals):
            raise SlotUnavailableError(
                f"{team_member.full_name} is not available at that time",
                {
                    "appointment_date": appointment_date.isoformat(),
                    "start_time": format_time(start_time),
                    "team_member_id": str(team_member.id),
                    "open_intervals": [interval.to_dict() for interval in open_intervals],
                }
            )

    def _append_history(
            self,
            appointment: Appointment,
            change_type: ChangeType,
            actor_id: Optional[str],
            old_values: Optional[Dict[str, Any]] = None,
            new_values: Optional[Dict[str, Any]] = None,
            notes: Optional[str] = None
    ) -> None:
        self.store.insert_history(AppointmentHistory(
            appointment_id=appointment.id,
            changed_by=actor_id,
            change_type=change_type.value,
            old_values=old_values,
            new_values=new_values,
            notes=notes,
        ))

    def _check_transition(self, appointment: Appointment, target: AppointmentStatus) -> None:
        if not can_transition(appointment.status, target):
            raise InvalidTransitionError(appointment.status, target.value)

    def _require_appointment(self, appointment_id: UUID, studio_id: Optional[UUID] = None) -> Appointment:
        appointment = self.store.get_appointment(appointment_id)
        if appointment is None or (studio_id is not None and appointment.studio_id != studio_id):
            raise NotFoundError("Appointment", appointment_id)
        return appointment

    def _require_service(self, studio_id: UUID, service_id: UUID, require_active: bool = True) -> Service:
        service = self.store.get_service(service_id)
        if service is None or service.studio_id != studio_id:
            raise NotFoundError("Service", service_id)
        if require_active and not service.is_active:
            raise ValidationError(f"Service {service.name} is not active")
        if not service.duration or service.duration <= 0:
            raise ValidationError(f"Service {service.name} has no valid duration")
        return service

    def _require_team_member(self, studio_id: UUID, team_member_id: UUID) -> TeamMember:
        team_member = self.store.get_team_member(team_member_id)
        if team_member is None or team_member.studio_id != studio_id:
            raise NotFoundError("Team member", team_member_id)
        if not team_member.is_active or not team_member.is_bookable:
            raise ValidationError(f"{team_member.full_name} cannot be booked")
        return team_member

    def _require_location(self, studio_id: UUID, location_id: UUID) -> Location:
        location = self.store.get_location(location_id)
        if location is None or location.studio_id != studio_id:
            raise NotFoundError("Location", location_id)
        if not location.is_active:
            raise ValidationError(f"Location {location.name} is not active")
        return location

    def _require_client(self, studio_id: UUID, client_id: UUID) -> None:
        client = self.store.get_client(client_id)
        if client is None or client.studio_id != studio_id:
            raise NotFoundError("Client", client_id)

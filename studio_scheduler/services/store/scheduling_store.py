# ============================================================================
# studio_scheduler/services/store/scheduling_store.py
# Persistence interface consumed by the scheduling core + SQLAlchemy implementation
# ============================================================================
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence
from uuid import UUID
import logging

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studio_scheduler.core.exceptions import NotFoundError, PersistenceError
from studio_scheduler.models import (
    Appointment,
    AppointmentHistory,
    AvailabilityRule,
    BlockedTime,
    Client,
    Location,
    Service,
    ServiceBuffer,
    Studio,
    TeamMember,
)

logger = logging.getLogger(__name__)


@contextmanager
def db_errors(db: Session, action: str):
    """Roll back and re-raise SQLAlchemy failures as PersistenceError"""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Database error while trying to {action}: {e}", exc_info=True)
        db.rollback()
        raise PersistenceError(f"Could not {action}") from e


def commit_or_raise(db: Session, action: str) -> None:
    with db_errors(db, action):
        db.commit()


class SchedulingStore(ABC):
    """
    Durable storage used by the scheduling core.

    Scope arguments (team_member_id, location_id, service_id) narrow results to
    rows that are unscoped or match; None means "do not narrow".
    """

    # ---- lookups -----------------------------------------------------------

    @abstractmethod
    def get_studio(self, studio_id: UUID) -> Optional[Studio]: ...

    @abstractmethod
    def get_service(self, service_id: UUID) -> Optional[Service]: ...

    @abstractmethod
    def get_team_member(self, team_member_id: UUID) -> Optional[TeamMember]: ...

    @abstractmethod
    def get_location(self, location_id: UUID) -> Optional[Location]: ...

    @abstractmethod
    def get_client(self, client_id: UUID) -> Optional[Client]: ...

    @abstractmethod
    def get_appointment(self, appointment_id: UUID) -> Optional[Appointment]: ...

    @abstractmethod
    def list_team_members(self, studio_id: UUID, bookable_only: bool = True) -> List[TeamMember]: ...

    @abstractmethod
    def list_locations(self, studio_id: UUID, active_only: bool = True) -> List[Location]: ...

    # ---- range queries -----------------------------------------------------

    @abstractmethod
    def find_appointments(
            self,
            studio_id: UUID,
            start_date: date,
            end_date: date,
            statuses: Optional[Sequence[str]] = None,
            team_member_id: Optional[UUID] = None
    ) -> List[Appointment]: ...

    @abstractmethod
    def find_availability_rules(
            self,
            studio_id: UUID,
            start_date: date,
            end_date: date,
            team_member_id: Optional[UUID] = None,
            location_id: Optional[UUID] = None,
            service_id: Optional[UUID] = None
    ) -> List[AvailabilityRule]: ...

    @abstractmethod
    def find_blocked_time(
            self,
            studio_id: UUID,
            start_date: date,
            end_date: date,
            team_member_id: Optional[UUID] = None,
            location_id: Optional[UUID] = None
    ) -> List[BlockedTime]: ...

    @abstractmethod
    def find_service_buffer(self, service_id: UUID) -> Optional[ServiceBuffer]: ...

    def find_service_buffers(self, service_ids: Iterable[UUID]) -> Dict[UUID, ServiceBuffer]:
        buffers = {}
        for service_id in set(service_ids):
            buffer = self.find_service_buffer(service_id)
            if buffer is not None:
                buffers[service_id] = buffer
        return buffers

    # ---- writes ------------------------------------------------------------

    @abstractmethod
    def lock_team_member_schedule(self, team_member_id: UUID) -> None:
        """Serialize writers for one team member until commit/rollback"""

    @abstractmethod
    def insert_appointment(self, appointment: Appointment) -> Appointment: ...

    @abstractmethod
    def update_appointment(self, appointment_id: UUID, changes: Dict) -> Appointment: ...

    @abstractmethod
    def insert_history(self, entry: AppointmentHistory) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...


class SqlAlchemySchedulingStore(SchedulingStore):
    """SchedulingStore backed by a SQLAlchemy session"""

    def __init__(self, db: Session):
        self.db = db

    def get_studio(self, studio_id: UUID) -> Optional[Studio]:
        with db_errors(self.db, "load studio"):
            return self.db.get(Studio, studio_id)

    def get_service(self, service_id: UUID) -> Optional[Service]:
        with db_errors(self.db, "load service"):
            return self.db.get(Service, service_id)

    def get_team_member(self, team_member_id: UUID) -> Optional[TeamMember]:
        with db_errors(self.db, "load team member"):
            return self.db.get(TeamMember, team_member_id)

    def get_location(self, location_id: UUID) -> Optional[Location]:
        with db_errors(self.db, "load location"):
            return self.db.get(Location, location_id)

    def get_client(self, client_id: UUID) -> Optional[Client]:
        with db_errors(self.db, "load client"):
            return self.db.get(Client, client_id)

    def get_appointment(self, appointment_id: UUID) -> Optional[Appointment]:
        with db_errors(self.db, "load appointment"):
            return self.db.get(Appointment, appointment_id)

    def list_team_members(self, studio_id: UUID, bookable_only: bool = True) -> List[TeamMember]:
        with db_errors(self.db, "list team members"):
            query = self.db.query(TeamMember).filter(
                TeamMember.studio_id == studio_id,
                TeamMember.is_active == True
            )
            if bookable_only:
                query = query.filter(TeamMember.is_bookable == True)
            return query.order_by(TeamMember.first_name, TeamMember.id).all()

    def list_locations(self, studio_id: UUID, active_only: bool = True) -> List[Location]:
        with db_errors(self.db, "list locations"):
            query = self.db.query(Location).filter(Location.studio_id == studio_id)
            if active_only:
                query = query.filter(Location.is_active == True)
            return query.order_by(Location.is_primary.desc(), Location.name, Location.id).all()

    def find_appointments(
            self,
            studio_id: UUID,
            start_date: date,
            end_date: date,
            statuses: Optional[Sequence[str]] = None,
            team_member_id: Optional[UUID] = None
    ) -> List[Appointment]:
        with db_errors(self.db, "load appointments"):
            query = self.db.query(Appointment).filter(
                Appointment.studio_id == studio_id,
                Appointment.appointment_date.between(start_date, end_date)
            )
            if statuses:
                query = query.filter(Appointment.status.in_(list(statuses)))
            if team_member_id:
                query = query.filter(Appointment.team_member_id == team_member_id)
            return query.order_by(Appointment.appointment_date, Appointment.start_time).all()

    def find_availability_rules(
            self,
            studio_id: UUID,
            start_date: date,
            end_date: date,
            team_member_id: Optional[UUID] = None,
            location_id: Optional[UUID] = None,
            service_id: Optional[UUID] = None
    ) -> List[AvailabilityRule]:
        with db_errors(self.db, "load availability rules"):
            query = self.db.query(AvailabilityRule).filter(
                AvailabilityRule.studio_id == studio_id,
                AvailabilityRule.effective_from <= end_date,
                or_(
                    AvailabilityRule.effective_until.is_(None),
                    AvailabilityRule.effective_until >= start_date
                )
            )
            if team_member_id:
                query = query.filter(or_(
                    AvailabilityRule.team_member_id.is_(None),
                    AvailabilityRule.team_member_id == team_member_id
                ))
            if location_id:
                query = query.filter(or_(
                    AvailabilityRule.location_id.is_(None),
                    AvailabilityRule.location_id == location_id
                ))
            if service_id:
                query = query.filter(or_(
                    AvailabilityRule.service_id.is_(None),
                    AvailabilityRule.service_id == service_id
                ))
            return query.all()

    def find_blocked_time(
            self,
            studio_id: UUID,
            start_date: date,
            end_date: date,
            team_member_id: Optional[UUID] = None,
            location_id: Optional[UUID] = None
    ) -> List[BlockedTime]:
        with db_errors(self.db, "load blocked time"):
            # Recurring blocks can repeat past their end_date; their pattern is checked per date
            query = self.db.query(BlockedTime).filter(
                BlockedTime.studio_id == studio_id,
                BlockedTime.start_date <= end_date,
                or_(BlockedTime.end_date >= start_date, BlockedTime.is_recurring == True)
            )
            if team_member_id:
                query = query.filter(or_(
                    BlockedTime.team_member_id.is_(None),
                    BlockedTime.team_member_id == team_member_id
                ))
            if location_id:
                query = query.filter(or_(
                    BlockedTime.location_id.is_(None),
                    BlockedTime.location_id == location_id
                ))
            return query.order_by(BlockedTime.start_date, BlockedTime.start_time).all()

    def find_service_buffer(self, service_id: UUID) -> Optional[ServiceBuffer]:
        with db_errors(self.db, "load service buffer"):
            return self.db.query(ServiceBuffer).filter(ServiceBuffer.service_id == service_id).first()

    def find_service_buffers(self, service_ids: Iterable[UUID]) -> Dict[UUID, ServiceBuffer]:
        ids = [service_id for service_id in set(service_ids) if service_id is not None]
        if not ids:
            return {}
        with db_errors(self.db, "load service buffers"):
            buffers = self.db.query(ServiceBuffer).filter(ServiceBuffer.service_id.in_(ids)).all()
            return {buffer.service_id: buffer for buffer in buffers}

    def lock_team_member_schedule(self, team_member_id: UUID) -> None:
        # Row lock on the team member; concurrent bookings for the same person queue here
        # and re-run the overlap check after the first one commits.
        with db_errors(self.db, "lock team member schedule"):
            self.db.query(TeamMember.id).filter(
                TeamMember.id == team_member_id
            ).with_for_update().first()

    def insert_appointment(self, appointment: Appointment) -> Appointment:
        with db_errors(self.db, "create appointment"):
            self.db.add(appointment)
            self.db.flush()
            return appointment

    def update_appointment(self, appointment_id: UUID, changes: Dict) -> Appointment:
        with db_errors(self.db, "update appointment"):
            appointment = self.db.get(Appointment, appointment_id)
            if appointment is None:
                # Deleted underneath us
                raise NotFoundError("Appointment", appointment_id)
            for field, value in changes.items():
                setattr(appointment, field, value)
            self.db.flush()
            return appointment

    def insert_history(self, entry: AppointmentHistory) -> None:
        with db_errors(self.db, "record appointment history"):
            self.db.add(entry)
            self.db.flush()

    def commit(self) -> None:
        commit_or_raise(self.db, "save changes")

    def rollback(self) -> None:
        self.db.rollback()

# studio_scheduler/services/waitlist/waitlist_service.py
"""Waitlist of clients waiting for an opening"""
from typing import Any, Dict, List
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from studio_scheduler.core.exceptions import NotFoundError, ValidationError
from studio_scheduler.models.client import Client
from studio_scheduler.models.service import Service
from studio_scheduler.models.waitlist import WaitlistEntry
from studio_scheduler.schemas.scheduling import TimeSlot, WaitlistEntryCreate
from studio_scheduler.services.store.scheduling_store import commit_or_raise, db_errors
from studio_scheduler.utils.time_utils import format_time, parse_time

logger = logging.getLogger(__name__)


def entry_matches_slot(entry: WaitlistEntry, slot: TimeSlot) -> bool:
    """Whether a freed slot satisfies every preference the entry states"""
    if slot.service_id is not None and entry.service_id != slot.service_id:
        return False
    if entry.location_id is not None and entry.location_id != slot.location_id:
        return False
    if entry.preferred_team_member_id is not None and entry.preferred_team_member_id != slot.team_member_id:
        return False

    if entry.preferred_date_start and slot.date < entry.preferred_date_start:
        return False
    if entry.preferred_date_end and slot.date > entry.preferred_date_end:
        return False

    if entry.preferred_time_start and parse_time(slot.start) < entry.preferred_time_start:
        return False
    if entry.preferred_time_end and parse_time(slot.end) > entry.preferred_time_end:
        return False
    return True


def serialize_entry(entry: WaitlistEntry) -> Dict[str, Any]:
    return {
        "id": str(entry.id),
        "client_id": str(entry.client_id),
        "service_id": str(entry.service_id),
        "location_id": str(entry.location_id) if entry.location_id else None,
        "preferred_team_member_id": str(entry.preferred_team_member_id) if entry.preferred_team_member_id else None,
        "preferred_date_start": entry.preferred_date_start.isoformat() if entry.preferred_date_start else None,
        "preferred_date_end": entry.preferred_date_end.isoformat() if entry.preferred_date_end else None,
        "preferred_time_start": format_time(entry.preferred_time_start) if entry.preferred_time_start else None,
        "preferred_time_end": format_time(entry.preferred_time_end) if entry.preferred_time_end else None,
        "priority_score": entry.priority_score,
        "notes": entry.notes,
        "is_active": entry.is_active,
        "notification_preferences": entry.notification_preferences or {},
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }


class WaitlistService:
    """Handles waitlist operations"""

    @staticmethod
    def add_entry(db: Session, studio_id: UUID, data: WaitlistEntryCreate) -> WaitlistEntry:
        if (
                data.preferred_date_start and data.preferred_date_end
                and data.preferred_date_end < data.preferred_date_start
        ):
            raise ValidationError("preferred_date_end must not be before preferred_date_start")
        if (
                data.preferred_time_start and data.preferred_time_end
                and data.preferred_time_end <= data.preferred_time_start
        ):
            raise ValidationError("preferred_time_end must be after preferred_time_start")

        with db_errors(db, "check waitlist references"):
            client = db.query(Client).filter(Client.id == data.client_id, Client.studio_id == studio_id).first()
            service = db.query(Service).filter(Service.id == data.service_id, Service.studio_id == studio_id).first()
        if not client:
            raise NotFoundError("Client", data.client_id)
        if not service:
            raise NotFoundError("Service", data.service_id)

        entry = WaitlistEntry(studio_id=studio_id, **data.model_dump())
        with db_errors(db, "add waitlist entry"):
            db.add(entry)
        commit_or_raise(db, "add waitlist entry")
        db.refresh(entry)

        logger.info(f"Client {data.client_id} added to waitlist for service {data.service_id}")
        return entry

    @staticmethod
    def list_active(db: Session, studio_id: UUID) -> List[WaitlistEntry]:
        """Active entries in fulfillment order"""
        with db_errors(db, "list waitlist"):
            return db.query(WaitlistEntry).filter(
                WaitlistEntry.studio_id == studio_id,
                WaitlistEntry.is_active == True
            ).order_by(
                WaitlistEntry.priority_score.desc(),
                WaitlistEntry.created_at.asc(),
                WaitlistEntry.id.asc()
            ).all()

    @staticmethod
    def deactivate(db: Session, studio_id: UUID, entry_id: UUID) -> WaitlistEntry:
        with db_errors(db, "load waitlist entry"):
            entry = db.query(WaitlistEntry).filter(
                WaitlistEntry.id == entry_id,
                WaitlistEntry.studio_id == studio_id
            ).first()
        if not entry:
            raise NotFoundError("Waitlist entry", entry_id)

        if entry.is_active:
            entry.is_active = False
            commit_or_raise(db, "deactivate waitlist entry")
            db.refresh(entry)
            logger.info(f"Deactivated waitlist entry {entry_id}")
        return entry

    @staticmethod
    def find_matches(db: Session, studio_id: UUID, slot: TimeSlot) -> List[WaitlistEntry]:
        """Active entries a freed slot could be offered to, best candidate first"""
        matches = [
            entry for entry in WaitlistService.list_active(db, studio_id)
            if entry_matches_slot(entry, slot)
        ]
        logger.debug(f"{len(matches)} waitlist match(es) for slot {slot.date} {slot.start}-{slot.end}")
        return matches

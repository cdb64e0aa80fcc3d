# ============================================================================
# FILE: studio_scheduler/api/v1/dashboard/waitlist.py
# ============================================================================
from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session
from uuid import UUID

from studio_scheduler.config.database import get_db
from studio_scheduler.api.dependencies import Principal, get_current_principal
from studio_scheduler.schemas.scheduling import TimeSlot, WaitlistEntryCreate
from studio_scheduler.services.waitlist.waitlist_service import WaitlistService, serialize_entry

router = APIRouter(prefix="/waitlist", tags=["dashboard-waitlist"])


@router.get("")
async def list_waitlist(
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    """Active waitlist entries, highest priority first."""
    entries = WaitlistService.list_active(db, principal.studio_id)
    return {
        "total_entries": len(entries),
        "entries": [serialize_entry(entry) for entry in entries]
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_to_waitlist(
        data: WaitlistEntryCreate,
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    entry = WaitlistService.add_entry(db, principal.studio_id, data)
    return serialize_entry(entry)


@router.post("/matches")
async def find_waitlist_matches(
        slot: TimeSlot,
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    """Entries a freed slot could be offered to, in fulfillment order."""
    matches = WaitlistService.find_matches(db, principal.studio_id, slot)
    return {
        "total_matches": len(matches),
        "entries": [serialize_entry(entry) for entry in matches]
    }


@router.post("/{entry_id}/deactivate")
async def deactivate_waitlist_entry(
        entry_id: UUID = Path(..., description="The waitlist entry ID"),
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    entry = WaitlistService.deactivate(db, principal.studio_id, entry_id)
    return serialize_entry(entry)

# ============================================================================
# FILE: studio_scheduler/api/v1/dashboard/schedule.py
# Availability rules, blocked time and service buffers
# ============================================================================
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional
from uuid import UUID

from studio_scheduler.config.database import get_db
from studio_scheduler.api.dependencies import Principal, get_current_principal
from studio_scheduler.schemas.scheduling import AvailabilityRuleCreate, BlockedTimeCreate, ServiceBufferUpdate
from studio_scheduler.services.availability.schedule_settings_service import (
    ScheduleSettingsService,
    serialize_block,
    serialize_rule,
)

router = APIRouter(prefix="/schedule", tags=["dashboard-schedule"])


# ============================================================================
# Availability rules
# ============================================================================

@router.get("/rules")
async def list_availability_rules(
        team_member_id: Optional[UUID] = Query(None, description="Only rules for this team member"),
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    rules = ScheduleSettingsService.list_rules(db, principal.studio_id, team_member_id=team_member_id)
    return {"rules": [serialize_rule(rule) for rule in rules]}


@router.post("/rules", status_code=status.HTTP_201_CREATED)
async def create_availability_rule(
        data: AvailabilityRuleCreate,
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    rule = ScheduleSettingsService.create_rule(db, principal.studio_id, data)
    return serialize_rule(rule)


@router.delete("/rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_availability_rule(
        rule_id: UUID = Path(..., description="The rule ID"),
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    ScheduleSettingsService.delete_rule(db, principal.studio_id, rule_id)


# ============================================================================
# Blocked time
# ============================================================================

@router.get("/blocked-time")
async def list_blocked_time(
        start_date: Optional[date] = Query(None, description="Blocks ending on or after this date"),
        end_date: Optional[date] = Query(None, description="Blocks starting on or before this date"),
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    blocks = ScheduleSettingsService.list_blocked_time(db, principal.studio_id, start_date, end_date)
    return {"blocked_time": [serialize_block(block) for block in blocks]}


@router.post("/blocked-time", status_code=status.HTTP_201_CREATED)
async def create_blocked_time(
        data: BlockedTimeCreate,
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    block = ScheduleSettingsService.create_blocked_time(db, principal.studio_id, data, created_by=principal.user_id)
    return serialize_block(block)


@router.delete("/blocked-time/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_blocked_time(
        block_id: UUID = Path(..., description="The blocked time ID"),
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    ScheduleSettingsService.delete_blocked_time(db, principal.studio_id, block_id)


# ============================================================================
# Service buffers
# ============================================================================

@router.get("/buffers")
async def list_service_buffers(
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    buffers = ScheduleSettingsService.list_buffers(db, principal.studio_id)
    return {"buffers": [buffer.to_dict() for buffer in buffers]}


@router.put("/buffers/{service_id}")
async def update_service_buffer(
        data: ServiceBufferUpdate,
        service_id: UUID = Path(..., description="The service ID"),
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    """Set setup, cleanup and travel minutes for a service."""
    return ScheduleSettingsService.upsert_buffer(db, principal.studio_id, service_id, data).to_dict()

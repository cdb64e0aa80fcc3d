# studio_scheduler/services/availability/schedule_settings_service.py
"""Service for managing availability rules, blocked time and service buffers"""
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from studio_scheduler.core.exceptions import NotFoundError, ValidationError
from studio_scheduler.models import (
    AvailabilityRule,
    BlockedTime,
    Location,
    Service,
    ServiceBuffer,
    TeamMember,
)
from studio_scheduler.schemas.scheduling import AvailabilityRuleCreate, BlockedTimeCreate, ServiceBufferUpdate
from studio_scheduler.services.store.scheduling_store import commit_or_raise, db_errors
from studio_scheduler.utils.time_utils import format_time

logger = logging.getLogger(__name__)


def serialize_rule(rule: AvailabilityRule) -> Dict[str, Any]:
    return {
        "id": str(rule.id),
        "team_member_id": str(rule.team_member_id) if rule.team_member_id else None,
        "location_id": str(rule.location_id) if rule.location_id else None,
        "service_id": str(rule.service_id) if rule.service_id else None,
        "rule_type": rule.rule_type,
        "day_of_week": rule.day_of_week,
        "start_time": format_time(rule.start_time),
        "end_time": format_time(rule.end_time),
        "is_available": rule.is_available,
        "effective_from": rule.effective_from.isoformat(),
        "effective_until": rule.effective_until.isoformat() if rule.effective_until else None,
    }


def serialize_block(block: BlockedTime) -> Dict[str, Any]:
    return {
        "id": str(block.id),
        "team_member_id": str(block.team_member_id) if block.team_member_id else None,
        "location_id": str(block.location_id) if block.location_id else None,
        "title": block.title,
        "description": block.description,
        "block_type": block.block_type,
        "start_date": block.start_date.isoformat(),
        "end_date": block.end_date.isoformat(),
        "start_time": format_time(block.start_time) if block.start_time else None,
        "end_time": format_time(block.end_time) if block.end_time else None,
        "is_all_day": block.is_all_day,
        "is_recurring": block.is_recurring,
        "recurring_pattern": block.recurring_pattern,
        "created_by": block.created_by,
    }


class ScheduleSettingsService:
    """Handles availability configuration for a studio"""

    # ------------------------------------------------------------------------
    # Availability rules
    # ------------------------------------------------------------------------

    @staticmethod
    def list_rules(db: Session, studio_id: UUID, team_member_id: Optional[UUID] = None) -> List[AvailabilityRule]:
        with db_errors(db, "list availability rules"):
            query = db.query(AvailabilityRule).filter(AvailabilityRule.studio_id == studio_id)
            if team_member_id:
                query = query.filter(AvailabilityRule.team_member_id == team_member_id)
            return query.order_by(
                AvailabilityRule.day_of_week.asc(),
                AvailabilityRule.start_time.asc()
            ).all()

    @staticmethod
    def create_rule(db: Session, studio_id: UUID, data: AvailabilityRuleCreate) -> AvailabilityRule:
        if data.effective_until and data.effective_until < data.effective_from:
            raise ValidationError("effective_until must not be before effective_from")
        ScheduleSettingsService._check_scope(db, studio_id, data.team_member_id, data.location_id, data.service_id)

        payload = data.model_dump()
        payload["rule_type"] = data.rule_type.value
        rule = AvailabilityRule(studio_id=studio_id, **payload)
        with db_errors(db, "create availability rule"):
            db.add(rule)
        commit_or_raise(db, "create availability rule")
        db.refresh(rule)

        logger.info(f"Created availability rule {rule.id} for studio {studio_id}")
        return rule

    @staticmethod
    def delete_rule(db: Session, studio_id: UUID, rule_id: UUID) -> None:
        with db_errors(db, "load availability rule"):
            rule = db.query(AvailabilityRule).filter(
                AvailabilityRule.id == rule_id,
                AvailabilityRule.studio_id == studio_id
            ).first()
        if not rule:
            raise NotFoundError("Availability rule", rule_id)

        with db_errors(db, "delete availability rule"):
            db.delete(rule)
        commit_or_raise(db, "delete availability rule")
        logger.info(f"Deleted availability rule {rule_id}")

    # ------------------------------------------------------------------------
    # Blocked time
    # ------------------------------------------------------------------------

    @staticmethod
    def list_blocked_time(
            db: Session,
            studio_id: UUID,
            start_date: Optional[date] = None,
            end_date: Optional[date] = None
    ) -> List[BlockedTime]:
        """Blocks overlapping [start_date, end_date]; recurring blocks are always included"""
        with db_errors(db, "list blocked time"):
            query = db.query(BlockedTime).filter(BlockedTime.studio_id == studio_id)
            if end_date:
                query = query.filter(BlockedTime.start_date <= end_date)
            if start_date:
                query = query.filter(or_(BlockedTime.end_date >= start_date, BlockedTime.is_recurring == True))
            return query.order_by(BlockedTime.start_date.asc(), BlockedTime.start_time.asc()).all()

    @staticmethod
    def create_blocked_time(
            db: Session,
            studio_id: UUID,
            data: BlockedTimeCreate,
            created_by: Optional[str] = None
    ) -> BlockedTime:
        if not data.is_all_day:
            if data.start_time is None or data.end_time is None:
                raise ValidationError("start_time and end_time are required unless the block is all day")
            if data.end_time <= data.start_time:
                raise ValidationError("End time must be after start time")
        if data.is_recurring and data.recurring_pattern is None:
            raise ValidationError("recurring_pattern is required for recurring blocked time")
        ScheduleSettingsService._check_scope(db, studio_id, data.team_member_id, data.location_id)

        block = BlockedTime(
            studio_id=studio_id,
            team_member_id=data.team_member_id,
            location_id=data.location_id,
            title=data.title,
            description=data.description,
            block_type=data.block_type.value,
            start_date=data.start_date,
            end_date=data.end_date,
            start_time=None if data.is_all_day else data.start_time,
            end_time=None if data.is_all_day else data.end_time,
            is_all_day=data.is_all_day,
            is_recurring=data.is_recurring,
            recurring_pattern=(
                data.recurring_pattern.model_dump(mode="json", exclude_none=True)
                if data.is_recurring and data.recurring_pattern else None
            ),
            created_by=created_by,
        )
        with db_errors(db, "create blocked time"):
            db.add(block)
        commit_or_raise(db, "create blocked time")
        db.refresh(block)

        logger.info(f"Created blocked time {block.id} ({block.start_date}..{block.end_date}) for studio {studio_id}")
        return block

    @staticmethod
    def delete_blocked_time(db: Session, studio_id: UUID, block_id: UUID) -> None:
        with db_errors(db, "load blocked time"):
            block = db.query(BlockedTime).filter(
                BlockedTime.id == block_id,
                BlockedTime.studio_id == studio_id
            ).first()
        if not block:
            raise NotFoundError("Blocked time", block_id)

        with db_errors(db, "delete blocked time"):
            db.delete(block)
        commit_or_raise(db, "delete blocked time")
        logger.info(f"Deleted blocked time {block_id}")

    # ------------------------------------------------------------------------
    # Service buffers
    # ------------------------------------------------------------------------

    @staticmethod
    def list_buffers(db: Session, studio_id: UUID) -> List[ServiceBuffer]:
        with db_errors(db, "list service buffers"):
            return db.query(ServiceBuffer).join(Service, Service.id == ServiceBuffer.service_id).filter(
                Service.studio_id == studio_id
            ).all()

    @staticmethod
    def upsert_buffer(db: Session, studio_id: UUID, service_id: UUID, data: ServiceBufferUpdate) -> ServiceBuffer:
        with db_errors(db, "load service"):
            service = db.query(Service).filter(Service.id == service_id, Service.studio_id == studio_id).first()
        if not service:
            raise NotFoundError("Service", service_id)

        with db_errors(db, "load service buffer"):
            buffer = db.query(ServiceBuffer).filter(ServiceBuffer.service_id == service_id).first()
            if buffer is None:
                buffer = ServiceBuffer(service_id=service_id, setup_time=0, cleanup_time=0, travel_time=0)
                db.add(buffer)

        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(buffer, field, value)

        commit_or_raise(db, "save service buffer")
        db.refresh(buffer)

        logger.info(
            f"Buffer for service {service_id}: setup={buffer.setup_time} "
            f"cleanup={buffer.cleanup_time} travel={buffer.travel_time}"
        )
        return buffer

    @staticmethod
    def _check_scope(
            db: Session,
            studio_id: UUID,
            team_member_id: Optional[UUID] = None,
            location_id: Optional[UUID] = None,
            service_id: Optional[UUID] = None
    ) -> None:
        """Scoped ids must exist and belong to the studio"""
        checks = (
            (TeamMember, team_member_id, "Team member"),
            (Location, location_id, "Location"),
            (Service, service_id, "Service"),
        )
        with db_errors(db, "check schedule scope"):
            for model, entity_id, label in checks:
                if entity_id is None:
                    continue
                found = db.query(model.id).filter(model.id == entity_id, model.studio_id == studio_id).first()
                if not found:
                    raise NotFoundError(label, entity_id)

from typing import List, Optional, Sequence
from datetime import date, datetime
from enum import IntEnum
from uuid import UUID
import logging

from studio_scheduler.core.exceptions import InvalidRangeError
from studio_scheduler.models.availability import AvailabilityRule, BlockedTime, RuleType
from studio_scheduler.services.store.scheduling_store import SchedulingStore
from studio_scheduler.utils.time_utils import (
    TimeInterval,
    day_of_week,
    merge_intervals,
    subtract_intervals,
)

logger = logging.getLogger(__name__)


class RulePrecedence(IntEnum):
    """Higher value wins when rules cover the same time of day"""
    STUDIO = 0
    TEAM_MEMBER = 1
    LOCATION = 2
    SERVICE = 3


def rule_precedence(rule: AvailabilityRule) -> RulePrecedence:
    if rule.service_id is not None:
        return RulePrecedence.SERVICE
    if rule.location_id is not None:
        return RulePrecedence.LOCATION
    if rule.team_member_id is not None:
        return RulePrecedence.TEAM_MEMBER
    return RulePrecedence.STUDIO


def rule_applies(
        rule: AvailabilityRule,
        target_date: date,
        team_member_id: Optional[UUID],
        location_id: Optional[UUID],
        service_id: Optional[UUID]
) -> bool:
    """Every scope the rule names must match, and the date must be inside its effective range"""
    if rule.team_member_id is not None and rule.team_member_id != team_member_id:
        return False
    if rule.location_id is not None and rule.location_id != location_id:
        return False
    if rule.service_id is not None and rule.service_id != service_id:
        return False
    if rule.day_of_week is not None and rule.day_of_week != day_of_week(target_date):
        return False
    if rule.effective_from and target_date < rule.effective_from:
        return False
    if rule.effective_until and target_date > rule.effective_until:
        return False
    return True


def block_occurs_on(block: BlockedTime, target_date: date) -> bool:
    """Whether a (possibly recurring) block covers the target date"""
    if target_date < block.start_date:
        return False

    pattern = block.recurring_pattern or {}
    if not block.is_recurring or not pattern:
        return target_date <= block.end_date

    until = pattern.get("until")
    if isinstance(until, str):
        until = datetime.strptime(until, "%Y-%m-%d").date()
    last_date = until or block.end_date
    if last_date and target_date > last_date:
        return False

    interval = max(int(pattern.get("interval") or 1), 1)
    elapsed_days = (target_date - block.start_date).days
    frequency = pattern.get("frequency")

    if frequency == "daily":
        return elapsed_days % interval == 0

    if frequency == "weekly":
        days = pattern.get("days_of_week") or [day_of_week(block.start_date)]
        if day_of_week(target_date) not in days:
            return False
        # Weeks counted from the Sunday on or before start_date
        week_start = block.start_date.toordinal() - day_of_week(block.start_date)
        weeks_elapsed = (target_date.toordinal() - week_start) // 7
        return weeks_elapsed % interval == 0

    logger.warning(f"Unknown recurrence frequency {frequency!r} on blocked time {block.id}")
    return False


def block_applies(block: BlockedTime, team_member_id: Optional[UUID], location_id: Optional[UUID]) -> bool:
    if block.team_member_id is not None and block.team_member_id != team_member_id:
        return False
    if block.location_id is not None and block.location_id != location_id:
        return False
    return True


def block_interval(block: BlockedTime) -> Optional[TimeInterval]:
    if block.is_all_day or block.start_time is None or block.end_time is None:
        return TimeInterval.whole_day()
    try:
        return TimeInterval.from_times(block.start_time, block.end_time)
    except InvalidRangeError:
        logger.warning(f"Ignoring blocked time {block.id} with invalid range {block.start_time}-{block.end_time}")
        return None


class AvailabilityService:
    """Computes the open intervals of a team member at a location for one day"""

    def __init__(self, store: SchedulingStore):
        self.store = store

    def get_open_intervals(
            self,
            studio_id: UUID,
            team_member_id: UUID,
            location_id: UUID,
            target_date: date,
            service_id: Optional[UUID] = None
    ) -> List[TimeInterval]:
        """
        Open [start, end) intervals for the date, ascending and non-overlapping.
        An empty list means no availability; it is not an error.
        """
        rules = self.store.find_availability_rules(
            studio_id, target_date, target_date,
            team_member_id=team_member_id,
            location_id=location_id,
            service_id=service_id
        )
        blocks = self.store.find_blocked_time(
            studio_id, target_date, target_date,
            team_member_id=team_member_id,
            location_id=location_id
        )
        return self.compute_open_intervals(
            rules, blocks, target_date, team_member_id, location_id, service_id
        )

    @staticmethod
    def compute_open_intervals(
            rules: Sequence[AvailabilityRule],
            blocks: Sequence[BlockedTime],
            target_date: date,
            team_member_id: Optional[UUID],
            location_id: Optional[UUID],
            service_id: Optional[UUID] = None
    ) -> List[TimeInterval]:
        open_intervals = AvailabilityService.evaluate_rules(
            rules, target_date, team_member_id, location_id, service_id
        )
        if not open_intervals:
            return []

        blocked = []
        for block in blocks:
            if not block_applies(block, team_member_id, location_id):
                continue
            if not block_occurs_on(block, target_date):
                continue
            interval = block_interval(block)
            if interval is not None:
                blocked.append(interval)

        return subtract_intervals(open_intervals, blocked)

    @staticmethod
    def evaluate_rules(
            rules: Sequence[AvailabilityRule],
            target_date: date,
            team_member_id: Optional[UUID],
            location_id: Optional[UUID],
            service_id: Optional[UUID] = None
    ) -> List[TimeInterval]:
        """Resolve overlapping rules by precedence into open intervals"""
        applicable = []
        for rule in rules:
            if not rule_applies(rule, target_date, team_member_id, location_id, service_id):
                continue
            try:
                interval = TimeInterval.from_times(rule.start_time, rule.end_time)
            except InvalidRangeError:
                logger.warning(f"Ignoring availability rule {rule.id} with invalid range")
                continue
            is_open = rule.is_available is not False and rule.rule_type != RuleType.BREAK_TIME.value
            applicable.append((rule_precedence(rule), interval, is_open))

        if not applicable:
            return []

        boundaries = sorted({point for _, interval, _ in applicable for point in (interval.start, interval.end)})

        open_segments = []
        for seg_start, seg_end in zip(boundaries, boundaries[1:]):
            segment = TimeInterval(seg_start, seg_end)
            covering = [
                (precedence, is_open)
                for precedence, interval, is_open in applicable
                if interval.contains(segment)
            ]
            if not covering:
                continue
            top = max(precedence for precedence, _ in covering)
            # Open only if nothing in the winning tier closes it
            if all(is_open for precedence, is_open in covering if precedence == top):
                open_segments.append(segment)

        return merge_intervals(open_segments)

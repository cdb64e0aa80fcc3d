"""Tests for availability rule evaluation and blocked time."""

import uuid
from datetime import date, time

import pytest

from studio_scheduler.models import AvailabilityRule, BlockedTime, RuleType
from studio_scheduler.services.availability.availability_service import (
    AvailabilityService,
    RulePrecedence,
    block_occurs_on,
    rule_precedence,
)
from studio_scheduler.utils.time_utils import TimeInterval

MONDAY = date(2025, 9, 1)
TUESDAY = date(2025, 9, 2)

STUDIO = uuid.uuid4()
MEMBER = uuid.uuid4()
OTHER_MEMBER = uuid.uuid4()
LOCATION = uuid.uuid4()
SERVICE = uuid.uuid4()


def rule(start, end, available=True, day=None, rule_type=RuleType.WORKING_HOURS.value, **scope):
    return AvailabilityRule(
        id=uuid.uuid4(),
        studio_id=STUDIO,
        rule_type=rule_type,
        day_of_week=day,
        start_time=time.fromisoformat(start),
        end_time=time.fromisoformat(end),
        is_available=available,
        effective_from=scope.pop("effective_from", date(2025, 1, 1)),
        effective_until=scope.pop("effective_until", None),
        **scope
    )


def block(start_date, end_date=None, start=None, end=None, all_day=False, pattern=None, **scope):
    return BlockedTime(
        id=uuid.uuid4(),
        studio_id=STUDIO,
        title="Blocked",
        start_date=start_date,
        end_date=end_date or start_date,
        start_time=time.fromisoformat(start) if start else None,
        end_time=time.fromisoformat(end) if end else None,
        is_all_day=all_day,
        is_recurring=pattern is not None,
        recurring_pattern=pattern,
        **scope
    )


def hours(intervals):
    return [(i.to_dict()["start"], i.to_dict()["end"]) for i in intervals]


def evaluate(rules, blocks=(), target_date=MONDAY, member=MEMBER, location=LOCATION, service=None):
    return AvailabilityService.compute_open_intervals(rules, list(blocks), target_date, member, location, service)


class TestRulePrecedence:
    """Most specific scope wins."""

    def test_precedence_order(self):
        assert RulePrecedence.STUDIO < RulePrecedence.TEAM_MEMBER < RulePrecedence.LOCATION < RulePrecedence.SERVICE
        assert rule_precedence(rule("09:00", "17:00")) == RulePrecedence.STUDIO
        assert rule_precedence(rule("09:00", "17:00", team_member_id=MEMBER)) == RulePrecedence.TEAM_MEMBER
        assert rule_precedence(rule("09:00", "17:00", location_id=LOCATION)) == RulePrecedence.LOCATION
        assert rule_precedence(rule("09:00", "17:00", service_id=SERVICE, location_id=LOCATION)) == RulePrecedence.SERVICE

    def test_team_member_closure_overrides_studio_hours(self):
        rules = [
            rule("09:00", "18:00"),
            rule("13:00", "15:00", available=False, team_member_id=MEMBER),
        ]
        assert hours(evaluate(rules)) == [("09:00", "13:00"), ("15:00", "18:00")]

    def test_team_member_hours_override_studio_closure(self):
        rules = [
            rule("00:00", "23:59", available=False),
            rule("10:00", "14:00", team_member_id=MEMBER),
        ]
        assert hours(evaluate(rules)) == [("10:00", "14:00")]

    def test_unavailable_rule_wins_inside_same_tier(self):
        rules = [
            rule("09:00", "17:00", team_member_id=MEMBER),
            rule("12:00", "12:30", available=False, team_member_id=MEMBER),
        ]
        assert hours(evaluate(rules)) == [("09:00", "12:00"), ("12:30", "17:00")]

    def test_break_time_is_always_closed(self):
        rules = [
            rule("09:00", "17:00", team_member_id=MEMBER),
            rule("10:00", "10:15", available=True, rule_type=RuleType.BREAK_TIME.value, team_member_id=MEMBER),
        ]
        assert hours(evaluate(rules)) == [("09:00", "10:00"), ("10:15", "17:00")]

    def test_service_rule_only_applies_to_that_service(self):
        rules = [
            rule("09:00", "17:00", team_member_id=MEMBER),
            rule("09:00", "12:00", available=False, service_id=SERVICE),
        ]
        assert hours(evaluate(rules)) == [("09:00", "17:00")]
        assert hours(evaluate(rules, service=SERVICE)) == [("12:00", "17:00")]


class TestRuleApplicability:

    def test_day_of_week_filter(self):
        rules = [rule("09:00", "17:00", day=1, team_member_id=MEMBER)]
        assert hours(evaluate(rules, target_date=MONDAY)) == [("09:00", "17:00")]
        assert evaluate(rules, target_date=TUESDAY) == []

    def test_rules_for_other_members_are_ignored(self):
        rules = [rule("09:00", "17:00", team_member_id=OTHER_MEMBER)]
        assert evaluate(rules) == []

    def test_effective_range_is_inclusive(self):
        rules = [rule("09:00", "17:00", effective_from=MONDAY, effective_until=MONDAY)]
        assert evaluate(rules, target_date=MONDAY) != []
        assert evaluate(rules, target_date=TUESDAY) == []

    def test_no_rules_means_no_availability(self):
        assert evaluate([]) == []


class TestBlockedTime:
    """Blocks are subtracted after rule evaluation."""

    def test_lunch_block_splits_the_day(self):
        rules = [rule("09:00", "17:00", day=1, team_member_id=MEMBER)]
        blocks = [block(MONDAY, start="12:00", end="13:00", team_member_id=MEMBER)]
        assert hours(evaluate(rules, blocks)) == [("09:00", "12:00"), ("13:00", "17:00")]

    def test_all_day_block_removes_everything(self):
        rules = [rule("09:00", "17:00")]
        assert evaluate(rules, [block(MONDAY, all_day=True)]) == []

    def test_multi_day_block_applies_its_window_daily(self):
        rules = [rule("09:00", "17:00")]
        blocks = [block(MONDAY, TUESDAY, start="09:00", end="10:00")]
        assert hours(evaluate(rules, blocks, target_date=TUESDAY)) == [("10:00", "17:00")]

    def test_block_for_other_member_or_location_is_ignored(self):
        rules = [rule("09:00", "17:00")]
        blocks = [
            block(MONDAY, all_day=True, team_member_id=OTHER_MEMBER),
            block(MONDAY, all_day=True, location_id=uuid.uuid4()),
        ]
        assert hours(evaluate(rules, blocks)) == [("09:00", "17:00")]

    def test_weekly_recurring_block(self):
        weekly = block(
            MONDAY, start="16:00", end="17:00",
            pattern={"frequency": "weekly", "days_of_week": [1], "until": "2025-09-30"}
        )
        assert block_occurs_on(weekly, date(2025, 9, 8))
        assert block_occurs_on(weekly, date(2025, 9, 29))
        assert not block_occurs_on(weekly, date(2025, 9, 9))
        assert not block_occurs_on(weekly, date(2025, 10, 6))

        rules = [rule("09:00", "17:00")]
        assert hours(evaluate(rules, [weekly], target_date=date(2025, 9, 15))) == [("09:00", "16:00")]

    def test_every_other_week(self):
        fortnightly = block(
            MONDAY, date(2025, 12, 31), all_day=True,
            pattern={"frequency": "weekly", "interval": 2, "days_of_week": [1]}
        )
        assert block_occurs_on(fortnightly, MONDAY)
        assert not block_occurs_on(fortnightly, date(2025, 9, 8))
        assert block_occurs_on(fortnightly, date(2025, 9, 15))

    def test_daily_recurring_block_with_interval(self):
        every_third_day = block(
            MONDAY, date(2025, 9, 30), start="12:00", end="12:30",
            pattern={"frequency": "daily", "interval": 3}
        )
        assert block_occurs_on(every_third_day, date(2025, 9, 4))
        assert not block_occurs_on(every_third_day, date(2025, 9, 5))
        assert not block_occurs_on(every_third_day, date(2025, 8, 29))

    def test_unknown_frequency_never_matches(self):
        odd = block(MONDAY, date(2025, 12, 31), all_day=True, pattern={"frequency": "lunar"})
        assert not block_occurs_on(odd, MONDAY)


class TestGetOpenIntervals:
    """Store-backed evaluation."""

    def test_scenario_rule_and_block(self, db, store, studio, team_member, location, working_hours):
        db.add(BlockedTime(
            studio_id=studio.id,
            team_member_id=team_member.id,
            title="Lunch",
            start_date=MONDAY,
            end_date=MONDAY,
            start_time=time(12, 0),
            end_time=time(13, 0),
        ))
        db.commit()

        intervals = AvailabilityService(store).get_open_intervals(studio.id, team_member.id, location.id, MONDAY)
        assert intervals == [TimeInterval.from_times("09:00", "12:00"), TimeInterval.from_times("13:00", "17:00")]

    def test_weekend_is_empty(self, store, studio, team_member, location, working_hours):
        saturday = date(2025, 9, 6)
        assert AvailabilityService(store).get_open_intervals(studio.id, team_member.id, location.id, saturday) == []

    @pytest.mark.parametrize("target", [date(2024, 12, 30)])
    def test_before_effective_from(self, store, studio, team_member, location, working_hours, target):
        assert AvailabilityService(store).get_open_intervals(studio.id, team_member.id, location.id, target) == []

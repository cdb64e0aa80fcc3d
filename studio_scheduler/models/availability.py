# studio_scheduler/models/availability.py
from sqlalchemy import Column, String, Integer, Boolean, Time, Date, DateTime, Text, JSON, ForeignKey, Uuid
from sqlalchemy.sql import func
from studio_scheduler.models.base import Base
import enum
import uuid


class RuleType(str, enum.Enum):
    WORKING_HOURS = "working_hours"
    SERVICE_SPECIFIC = "service_specific"
    LOCATION_SPECIFIC = "location_specific"
    BREAK_TIME = "break_time"


class BlockType(str, enum.Enum):
    BREAK = "break"
    LUNCH = "lunch"
    MEETING = "meeting"
    TRAINING = "training"
    HOLIDAY = "holiday"
    SICK = "sick"
    PERSONAL = "personal"
    MAINTENANCE = "maintenance"


class AvailabilityRule(Base):
    """Studio-defined availability rules, optionally scoped to a team member, location or service"""
    __tablename__ = "availability_rules"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    studio_id = Column(Uuid, ForeignKey("studios.id", ondelete="CASCADE"), nullable=False, index=True)

    # Optional scopes; the most specific one decides precedence
    team_member_id = Column(Uuid, ForeignKey("team_members.id", ondelete="CASCADE"), nullable=True)
    location_id = Column(Uuid, ForeignKey("locations.id", ondelete="CASCADE"), nullable=True)
    service_id = Column(Uuid, ForeignKey("services.id", ondelete="CASCADE"), nullable=True)

    rule_type = Column(String(30), nullable=False, default=RuleType.WORKING_HOURS.value)
    day_of_week = Column(Integer, nullable=True)  # 0=Sunday, 6=Saturday; NULL = every day
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, default=True)

    effective_from = Column(Date, nullable=False)
    effective_until = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return (
            f"<AvailabilityRule(id={self.id}, type={self.rule_type}, day={self.day_of_week}, "
            f"{self.start_time}-{self.end_time}, available={self.is_available})>"
        )


class BlockedTime(Base):
    """Unavailability (breaks, holidays, time off) subtracted from availability rules"""
    __tablename__ = "blocked_time"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    studio_id = Column(Uuid, ForeignKey("studios.id", ondelete="CASCADE"), nullable=False, index=True)
    team_member_id = Column(Uuid, ForeignKey("team_members.id", ondelete="CASCADE"), nullable=True)
    location_id = Column(Uuid, ForeignKey("locations.id", ondelete="CASCADE"), nullable=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    block_type = Column(String(30), nullable=False, default=BlockType.PERSONAL.value)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=True)  # ignored when is_all_day
    end_time = Column(Time, nullable=True)
    is_all_day = Column(Boolean, default=False)

    is_recurring = Column(Boolean, default=False)
    recurring_pattern = Column(JSON, nullable=True)  # {"frequency": "weekly", "days_of_week": [1], ...}

    created_by = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<BlockedTime(id={self.id}, {self.start_date}..{self.end_date}, type={self.block_type})>"

# studio_scheduler/models/__init__.py
from .base import Base
from .studio import Studio, Location
from .team_member import TeamMember
from .client import Client, ClientPreferences
from .service import Service, ServiceBuffer
from .availability import AvailabilityRule, BlockedTime, RuleType, BlockType
from .appointment import (
    Appointment,
    AppointmentHistory,
    RecurringAppointment,
    AppointmentStatus,
    PaymentStatus,
    BookingSource,
    ChangeType,
    PatternType,
)
from .waitlist import WaitlistEntry

__all__ = [
    "Base",
    "Studio",
    "Location",
    "TeamMember",
    "Client",
    "ClientPreferences",
    "Service",
    "ServiceBuffer",
    "AvailabilityRule",
    "BlockedTime",
    "RuleType",
    "BlockType",
    "Appointment",
    "AppointmentHistory",
    "RecurringAppointment",
    "AppointmentStatus",
    "PaymentStatus",
    "BookingSource",
    "ChangeType",
    "PatternType",
    "WaitlistEntry",
]

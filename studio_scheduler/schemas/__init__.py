# studio_scheduler/schemas/__init__.py
from .scheduling import (
    TimeSlot,
    AvailabilityQuery,
    BookingRequest,
    ReschedulingRequest,
    RescheduleBody,
    CancelRequest,
    StatusChangeRequest,
    AppointmentUpdate,
    AvailabilityRuleCreate,
    RecurringPattern,
    BlockedTimeCreate,
    ServiceBufferUpdate,
    WaitlistEntryCreate
)

from .preferences import (
    NotificationPreferences,
    PreferredTimes,
    ClientPreferenceBlob,
    ClientCreate,
    ClientUpdate,
    ClientPreferencesUpdate
)

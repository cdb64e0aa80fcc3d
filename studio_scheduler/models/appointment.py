from sqlalchemy import Column, String, Text, Date, Time, DateTime, Numeric, Boolean, JSON, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .base import Base
from datetime import datetime, timezone
import enum
import uuid


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    ARRIVED = "arrived"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    RESCHEDULED = "rescheduled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    REFUNDED = "refunded"


class BookingSource(str, enum.Enum):
    STAFF = "staff"
    ONLINE = "online"
    PHONE = "phone"
    WALK_IN = "walk_in"
    AI_ASSISTANT = "ai_assistant"


class ChangeType(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"
    STATUS_CHANGED = "status_changed"


class PatternType(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


# Appointments in these states no longer occupy their slot
RELEASED_STATUSES = (AppointmentStatus.CANCELLED.value, AppointmentStatus.NO_SHOW.value)


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # References
    studio_id = Column(Uuid, ForeignKey("studios.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(Uuid, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True)  # NULL = walk-in
    team_member_id = Column(Uuid, ForeignKey("team_members.id"), nullable=False, index=True)
    service_id = Column(Uuid, ForeignKey("services.id"), nullable=False)
    location_id = Column(Uuid, ForeignKey("locations.id"), nullable=False)

    # Appointment slot; end_time is derived from the service duration
    appointment_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    notes = Column(Text, nullable=True)
    internal_notes = Column(Text, nullable=True)

    # Status tracking
    status = Column(String(20), nullable=False, default=AppointmentStatus.SCHEDULED.value)
    booking_source = Column(String(20), default=BookingSource.STAFF.value)

    # Payment
    total_price = Column(Numeric(10, 2), nullable=False, default=0)
    paid_amount = Column(Numeric(10, 2), nullable=False, default=0)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)

    # Reminders & notifications (sent by an external dispatcher)
    confirmation_sent_at = Column(DateTime(timezone=True), nullable=True)
    reminder_sent_at = Column(DateTime(timezone=True), nullable=True)

    # Visit progress
    client_arrived_at = Column(DateTime(timezone=True), nullable=True)
    service_started_at = Column(DateTime(timezone=True), nullable=True)
    service_completed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    client = relationship("Client")
    team_member = relationship("TeamMember")
    service = relationship("Service")
    location = relationship("Location")
    history = relationship(
        "AppointmentHistory",
        back_populates="appointment",
        order_by="AppointmentHistory.created_at"
    )

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, {self.appointment_date} {self.start_time}-{self.end_time}, "
            f"status={self.status})>"
        )

    @property
    def occupies_slot(self) -> bool:
        return self.status not in RELEASED_STATUSES


class AppointmentHistory(Base):
    """Append-only audit trail; rows are never updated or deleted"""
    __tablename__ = "appointment_history"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    appointment_id = Column(Uuid, ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True)

    changed_by = Column(String, nullable=True)
    change_type = Column(String(20), nullable=False)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)

    # Sub-second precision; history is ordered by it
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), server_default=func.now())

    appointment = relationship("Appointment", back_populates="history")

    def __repr__(self):
        return f"<AppointmentHistory(appointment_id={self.appointment_id}, type={self.change_type})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "appointment_id": str(self.appointment_id),
            "changed_by": self.changed_by,
            "change_type": self.change_type,
            "old_values": self.old_values,
            "new_values": self.new_values,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class RecurringAppointment(Base):
    """Template for repeating bookings; no generation engine runs against it yet"""
    __tablename__ = "recurring_appointments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    studio_id = Column(Uuid, ForeignKey("studios.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    team_member_id = Column(Uuid, ForeignKey("team_members.id"), nullable=False)
    service_id = Column(Uuid, ForeignKey("services.id"), nullable=False)
    location_id = Column(Uuid, ForeignKey("locations.id"), nullable=False)

    pattern_type = Column(String(20), nullable=False, default=PatternType.WEEKLY.value)
    pattern_config = Column(JSON, default=dict)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    is_active = Column(Boolean, default=True)
    total_price = Column(Numeric(10, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

# studio_scheduler/models/waitlist.py
from sqlalchemy import Column, Integer, Text, Date, Time, DateTime, Boolean, JSON, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from datetime import datetime, timezone
import uuid
from studio_scheduler.models.base import Base


class WaitlistEntry(Base):
    """Client waiting for an opening; served by priority_score desc, then created_at asc"""
    __tablename__ = "waitlist"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    studio_id = Column(Uuid, ForeignKey("studios.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    service_id = Column(Uuid, ForeignKey("services.id"), nullable=False)
    location_id = Column(Uuid, ForeignKey("locations.id"), nullable=True)
    preferred_team_member_id = Column(Uuid, ForeignKey("team_members.id"), nullable=True)

    preferred_date_start = Column(Date, nullable=True)
    preferred_date_end = Column(Date, nullable=True)
    preferred_time_start = Column(Time, nullable=True)
    preferred_time_end = Column(Time, nullable=True)

    priority_score = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, index=True)
    notification_preferences = Column(JSON, default=dict)

    # Sub-second precision; first-come order within a priority depends on it
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    client = relationship("Client")
    service = relationship("Service")

    def __repr__(self):
        return f"<WaitlistEntry(id={self.id}, client_id={self.client_id}, priority={self.priority_score})>"

# studio_scheduler/models/team_member.py
from sqlalchemy import Column, String, Boolean, DateTime, Date, JSON, ForeignKey, Uuid
from sqlalchemy.sql import func
import uuid
from studio_scheduler.models.base import Base


class TeamMember(Base):
    __tablename__ = "team_members"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    studio_id = Column(
        Uuid,
        ForeignKey("studios.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    calendar_color = Column(String(20), nullable=True)  # e.g. "#7c3aed"

    # Only bookable members receive generated slots
    is_bookable = Column(Boolean, default=True)
    is_active = Column(Boolean, default=True)

    # Employment metadata
    job_title = Column(String(100), nullable=True)
    employment_type = Column(String(50), nullable=True)  # employee, contractor, ...
    start_date = Column(Date, nullable=True)
    employment_details = Column(JSON, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return f"<TeamMember(id={self.id}, name={self.full_name})>"

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def to_summary(self):
        return {
            "id": str(self.id),
            "first_name": self.first_name,
            "last_name": self.last_name,
            "calendar_color": self.calendar_color,
        }

# studio_scheduler/models/studio.py
"""
Studio (tenant root) and Location models
"""
from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import uuid
from studio_scheduler.models.base import Base


class Studio(Base):
    __tablename__ = "studios"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)

    # Locale defaults
    timezone = Column(String(50), default="UTC")
    currency = Column(String(3), default="USD")
    locale = Column(String(20), default="en-US")

    locations = relationship("Location", back_populates="studio")

    # Technical fields
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    is_active = Column(Boolean, default=True)

    def __repr__(self):
        return f"<Studio(id={self.id}, name={self.name})>"

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": str(self.id),
            "name": self.name,
            "timezone": self.timezone,
            "currency": self.currency,
            "locale": self.locale,
            "is_active": self.is_active,
        }


class Location(Base):
    __tablename__ = "locations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    studio_id = Column(
        Uuid,
        ForeignKey("studios.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(200), nullable=False)
    address = Column(Text, nullable=True)

    is_active = Column(Boolean, default=True)
    # At most one primary location per studio (not enforced by the schema)
    is_primary = Column(Boolean, default=False)

    studio = relationship("Studio", back_populates="locations")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return f"<Location(id={self.id}, name={self.name}, studio_id={self.studio_id})>"

    def to_summary(self):
        return {"id": str(self.id), "name": self.name, "address": self.address}

"""
Service Model - Structured service definitions
Each service belongs to one studio; its duration is the source of truth for end-time computation.
"""
from sqlalchemy import Column, String, Numeric, Integer, ForeignKey, Boolean, DateTime, Text, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from studio_scheduler.models.base import Base


class Service(Base):
    """
    Stores structured service information (source of truth for price/duration).
    """
    __tablename__ = "services"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    studio_id = Column(
        Uuid,
        ForeignKey("studios.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Core service details
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)

    price = Column(Numeric(10, 2), nullable=False, default=0)  # Stored as decimal for precision

    # Duration in minutes, always > 0
    duration = Column(Integer, nullable=False)

    is_active = Column(Boolean, default=True, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    # Relationships
    buffer = relationship("ServiceBuffer", back_populates="service", uselist=False)

    def __repr__(self):
        return f"<Service(id={self.id}, name={self.name}, studio_id={self.studio_id})>"

    def to_summary(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "duration": self.duration,
            "price": float(self.price) if self.price is not None else None,
        }

    @property
    def formatted_duration(self) -> str:
        """Return human-readable duration string"""
        if not self.duration:
            return "Duration varies"

        hours = self.duration // 60
        minutes = self.duration % 60

        if hours > 0 and minutes > 0:
            return f"{hours}h {minutes}m"
        elif hours > 0:
            return f"{hours}h"
        else:
            return f"{minutes}m"


class ServiceBuffer(Base):
    """Setup/cleanup/travel time around a service (one-to-one with Service)"""
    __tablename__ = "service_buffers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    service_id = Column(
        Uuid,
        ForeignKey("services.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )

    # All in minutes, non-negative
    setup_time = Column(Integer, nullable=False, default=0)
    cleanup_time = Column(Integer, nullable=False, default=0)
    travel_time = Column(Integer, nullable=False, default=0)  # only between different locations

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    service = relationship("Service", back_populates="buffer")

    def __repr__(self):
        return (
            f"<ServiceBuffer(service_id={self.service_id}, setup={self.setup_time}, "
            f"cleanup={self.cleanup_time}, travel={self.travel_time})>"
        )

    def to_dict(self):
        return {
            "id": str(self.id),
            "service_id": str(self.service_id),
            "setup_time": self.setup_time,
            "cleanup_time": self.cleanup_time,
            "travel_time": self.travel_time,
        }

# studio_scheduler/models/client.py
from sqlalchemy import Column, String, Text, Date, DateTime, JSON, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from studio_scheduler.models.base import Base


class Client(Base):
    __tablename__ = "clients"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    studio_id = Column(Uuid, ForeignKey("studios.id", ondelete="CASCADE"), nullable=False, index=True)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(30), nullable=True)
    notes = Column(Text, nullable=True)

    # Free-form blob, validated by schemas.preferences.ClientPreferenceBlob
    preferences = Column(JSON, default=dict)

    emergency_contact_name = Column(String(200), nullable=True)
    emergency_contact_phone = Column(String(30), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    detailed_preferences = relationship("ClientPreferences", back_populates="client", uselist=False)

    def __repr__(self):
        return f"<Client(id={self.id}, name={self.first_name} {self.last_name})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "studio_id": str(self.studio_id),
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "date_of_birth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "gender": self.gender,
            "notes": self.notes,
            "preferences": self.preferences or {},
            "emergency_contact_name": self.emergency_contact_name,
            "emergency_contact_phone": self.emergency_contact_phone,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class ClientPreferences(Base):
    __tablename__ = "client_preferences"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, unique=True)

    preferred_team_members = Column(JSON, default=list)  # list of team member ids
    preferred_locations = Column(JSON, default=list)  # list of location ids
    preferred_times = Column(JSON, default=dict)
    communication_preferences = Column(JSON, default=dict)
    booking_preferences = Column(JSON, default=dict)
    accessibility_needs = Column(Text, nullable=True)
    allergies = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="detailed_preferences")

    def to_dict(self):
        return {
            "id": str(self.id),
            "client_id": str(self.client_id),
            "preferred_team_members": self.preferred_team_members or [],
            "preferred_locations": self.preferred_locations or [],
            "preferred_times": self.preferred_times or {},
            "communication_preferences": self.communication_preferences or {},
            "booking_preferences": self.booking_preferences or {},
            "accessibility_needs": self.accessibility_needs,
            "allergies": self.allergies,
        }

"""
Pydantic schemas for the client preference JSON fields.

Known keys are typed; anything else is kept as-is (extra="allow") so newer
clients can store fields this version does not know about.
"""
from pydantic import BaseModel, ConfigDict, Field, EmailStr
from typing import Optional, List, Dict, Any
from datetime import date
from uuid import UUID


class NotificationPreferences(BaseModel):
    """Schema for notification_preferences JSON fields"""
    model_config = ConfigDict(extra="allow")

    email: bool = True
    sms: bool = False
    phone: Optional[bool] = None


class PreferredTimes(BaseModel):
    """Schema for preferred_times JSON field"""
    model_config = ConfigDict(extra="allow")

    days_of_week: List[int] = Field(default_factory=list, description="0=Sunday, 6=Saturday")
    earliest: Optional[str] = Field(None, description="Earliest start (HH:MM)")
    latest: Optional[str] = Field(None, description="Latest start (HH:MM)")


class ClientPreferenceBlob(BaseModel):
    """Schema for Client.preferences JSON field"""
    model_config = ConfigDict(extra="allow")

    notifications: Optional[NotificationPreferences] = None
    preferred_language: Optional[str] = None
    marketing_opt_in: Optional[bool] = None


class ClientCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    notes: Optional[str] = None
    preferences: ClientPreferenceBlob = Field(default_factory=ClientPreferenceBlob)
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None


class ClientUpdate(BaseModel):
    """All fields are optional - only send what you want to update."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    notes: Optional[str] = None
    preferences: Optional[ClientPreferenceBlob] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None


class ClientPreferencesUpdate(BaseModel):
    preferred_team_members: Optional[List[UUID]] = None
    preferred_locations: Optional[List[UUID]] = None
    preferred_times: Optional[PreferredTimes] = None
    communication_preferences: Optional[NotificationPreferences] = None
    booking_preferences: Optional[Dict[str, Any]] = None
    accessibility_needs: Optional[str] = None
    allergies: Optional[str] = None

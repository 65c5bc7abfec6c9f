# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime, timezone

from app.config import MAX_SESSION_MINUTES
from app.models.enums import VehicleType, ContactRelationship, AlertReason
from app.utils.alert_message import LocationSnapshot


class LocationPayload(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy: Optional[float] = Field(None, ge=0)
    timestamp: Optional[datetime] = None

    def to_snapshot(self) -> LocationSnapshot:
        timestamp = self.timestamp
        if timestamp is not None and timestamp.tzinfo is not None:
            # Stored as naive UTC
            timestamp = timestamp.astimezone(timezone.utc).replace(tzinfo=None)
        return LocationSnapshot(
            latitude=self.latitude,
            longitude=self.longitude,
            accuracy=self.accuracy,
            timestamp=timestamp,
        )


# ---------------------- 🚗 SESSIONS ----------------------
class SessionStartRequest(BaseModel):
    vehicle_type: VehicleType = VehicleType.other
    vehicle_number: Optional[str] = Field(None, max_length=20)
    notes: Optional[str] = Field(None, max_length=500)
    duration_minutes: int = Field(..., gt=0, le=MAX_SESSION_MINUTES)
    location: Optional[LocationPayload] = None


class SessionStopRequest(BaseModel):
    cancelled: bool = False


# ---------------------- 📞 CONTACTS ----------------------
class ContactCreateRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    phone: str = Field(..., pattern=r"^[0-9]{10}$")
    relationship: ContactRelationship = ContactRelationship.family
    email: Optional[str] = Field(None, max_length=254, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    is_primary: bool = False


class ContactUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = Field(None, pattern=r"^[0-9]{10}$")
    relationship: Optional[ContactRelationship] = None
    email: Optional[str] = Field(None, max_length=254, pattern=r"^$|^[^@\s]+@[^@\s]+\.[^@\s]+$")
    is_primary: Optional[bool] = None


# ---------------------- 🚨 ALERTS ----------------------
class AlertTriggerRequest(BaseModel):
    session_id: int
    reason: AlertReason = AlertReason.manual
    location: Optional[LocationPayload] = None

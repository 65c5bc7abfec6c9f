# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

import pytz

from app import config
from app.models.enums import AlertReason, VehicleType

LOCATION_NOT_AVAILABLE = "Location not available"

REASON_LABELS = {
    AlertReason.timer_expired: "Safety timer expired without confirmation",
    AlertReason.voice_keyword: "Emergency keyword detected",
    AlertReason.scream_detected: "Distress sound detected",
    AlertReason.manual: "Manual emergency button pressed",
    AlertReason.panic_button: "Panic button activated",
}


@dataclass(frozen=True)
class LocationSnapshot:
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    timestamp: Optional[datetime] = None

    @classmethod
    def from_session(cls, session) -> Optional["LocationSnapshot"]:
        if session.latitude is None or session.longitude is None:
            return None
        return cls(
            latitude=session.latitude,
            longitude=session.longitude,
            accuracy=session.accuracy,
            timestamp=session.location_timestamp,
        )

    def as_dict(self) -> dict:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy": self.accuracy,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


def format_alert_reason(reason: Union[AlertReason, str]) -> str:
    try:
        return REASON_LABELS[AlertReason(reason)]
    except ValueError:
        # Unknown codes are shown as-is
        return str(reason)


def build_location_link(location: Optional[LocationSnapshot]) -> str:
    if location is None:
        return LOCATION_NOT_AVAILABLE
    lat, lon = location.latitude, location.longitude
    return f"https://www.openstreetmap.org/?mlat={lat}&mlon={lon}#map=15/{lat}/{lon}"


def format_local_time(moment: datetime, tz_name: str = config.APP_TIMEZONE) -> str:
    """Render a naive UTC timestamp in the user's local convention, e.g. '17 Oct 2026, 10:45 PM IST'."""
    local = pytz.utc.localize(moment).astimezone(pytz.timezone(tz_name))
    return local.strftime("%d %b %Y, %I:%M %p %Z")


def describe_vehicle(vehicle_type, vehicle_number: Optional[str]) -> str:
    if isinstance(vehicle_type, VehicleType):
        label = vehicle_type.value
    else:
        label = str(vehicle_type or VehicleType.other.value)
    label = label.upper()
    if vehicle_number:
        return f"{label} ({vehicle_number})"
    return label


def render_alert_message(
    user_name: str,
    reason: Union[AlertReason, str],
    moment: datetime,
    vehicle_type,
    vehicle_number: Optional[str],
    location: Optional[LocationSnapshot],
    tz_name: str = config.APP_TIMEZONE,
) -> str:
    return (
        "🚨 EMERGENCY ALERT from SafeHer\n\n"
        f"{user_name or 'A SafeHer user'} may be in danger!\n\n"
        f"Reason: {format_alert_reason(reason)}\n"
        f"Time: {format_local_time(moment, tz_name)}\n"
        f"Vehicle: {describe_vehicle(vehicle_type, vehicle_number)}\n\n"
        f"📍 Location: {build_location_link(location)}\n\n"
        "Please check on them immediately!\n\n"
        "- SafeHer Safety Team"
    )


def render_alert_subject(user_name: str) -> str:
    return f"🚨 EMERGENCY: {user_name or 'A SafeHer user'} needs help!"

# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import enum


class VehicleType(str, enum.Enum):
    car = "car"
    bike = "bike"
    auto = "auto"
    cab = "cab"
    walk = "walk"
    other = "other"


class SessionStatus(str, enum.Enum):
    active = "active"
    completed = "completed"
    cancelled = "cancelled"
    alert_triggered = "alert_triggered"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.active


class EndReason(str, enum.Enum):
    user_stopped = "user_stopped"
    user_cancelled = "user_cancelled"
    alert_triggered = "alert_triggered"
    system = "system"


class AlertReason(str, enum.Enum):
    timer_expired = "timer_expired"
    voice_keyword = "voice_keyword"
    scream_detected = "scream_detected"
    manual = "manual"
    panic_button = "panic_button"


class AlertStatus(str, enum.Enum):
    sending = "sending"
    sent = "sent"
    failed = "failed"
    partial = "partial"


class DeliveryStatus(str, enum.Enum):
    pending = "pending"
    sent = "sent"
    failed = "failed"


class ContactRelationship(str, enum.Enum):
    family = "family"
    friend = "friend"
    colleague = "colleague"
    other = "other"

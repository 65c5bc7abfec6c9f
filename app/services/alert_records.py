# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

"""
In-memory shapes of an alert while it is being dispatched, and the rule that
reduces per-contact outcomes to one overall status.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from app.models.enums import AlertReason, AlertStatus, DeliveryStatus
from app.utils.alert_message import LocationSnapshot


@dataclass
class DeliveryRecord:
    contact_id: Optional[int]
    name: str
    phone: Optional[str] = None
    sms_status: DeliveryStatus = DeliveryStatus.pending
    email_status: DeliveryStatus = DeliveryStatus.pending
    sms_sent_at: Optional[datetime] = None
    email_sent_at: Optional[datetime] = None
    sms_provider_id: Optional[str] = None
    email_provider_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def any_sent(self) -> bool:
        return DeliveryStatus.sent in (self.sms_status, self.email_status)

    @property
    def all_failed(self) -> bool:
        return self.sms_status == DeliveryStatus.failed and self.email_status == DeliveryStatus.failed

    def add_error(self, text: str) -> None:
        self.error = text if not self.error else f"{self.error}; {text}"


@dataclass
class AlertRecord:
    user_id: int
    session_id: int
    trigger_reason: AlertReason
    message: str
    status: AlertStatus
    created_at: datetime
    location: Optional[LocationSnapshot] = None
    vehicle_type: Optional[str] = None
    vehicle_number: Optional[str] = None
    deliveries: List[DeliveryRecord] = field(default_factory=list)


def fold_alert_status(deliveries: List[DeliveryRecord]) -> AlertStatus:
    """
    sent    - every contact got at least one channel through (also with no contacts)
    failed  - every contact failed on both channels
    partial - anything in between
    """
    if all(d.any_sent for d in deliveries):
        return AlertStatus.sent
    if all(d.all_failed for d in deliveries):
        return AlertStatus.failed
    return AlertStatus.partial

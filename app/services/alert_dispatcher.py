# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

"""
Alert fan-out: turns "session X must alert now, for reason R" into SMS and
e-mail to every active emergency contact, plus one persisted Alert carrying the
per-contact ledger.

Channel and contact failures are recorded in the ledger and never raised.
Only a missing session or a failed write reaches the caller. A failed write
after the sends raises AlertNotRecordedError, which carries the ledger.
"""

import logging
from datetime import datetime
from typing import Optional, Union

from app import config
from app.models.alert import Alert
from app.models.emergency_contact import EmergencyContact
from app.models.enums import AlertReason, DeliveryStatus
from app.services.alert_records import AlertRecord, DeliveryRecord, fold_alert_status
from app.utils import encryption
from app.utils.alert_message import (
    LocationSnapshot,
    render_alert_message,
    render_alert_subject,
)
from app.utils.encryption import mask_phone
from app.utils.exceptions import AlertNotRecordedError, EncryptionError, PersistenceError
from app.utils.firebase import send_fcm_push

logger = logging.getLogger(__name__)


class AlertDispatcher:
    def __init__(
        self,
        sessions,
        contacts,
        alerts,
        sms_sender,
        email_sender,
        cipher=encryption,
        push=send_fcm_push,
        clock=datetime.utcnow,
        tz_name: str = config.APP_TIMEZONE,
    ):
        self.sessions = sessions
        self.contacts = contacts
        self.alerts = alerts
        self.sms_sender = sms_sender
        self.email_sender = email_sender
        self.cipher = cipher
        self.push = push
        self.clock = clock
        self.tz_name = tz_name

    def dispatch(
        self,
        session_id: int,
        reason: Union[AlertReason, str],
        location: Optional[LocationSnapshot] = None,
    ) -> Alert:
        reason = AlertReason(reason)
        session = self.sessions.find_by_id(session_id)  # NotFoundError propagates
        user = session.user
        location = location or LocationSnapshot.from_session(session)
        now = self.clock()

        contacts = self.contacts.list_active(session.user_id)
        if not contacts:
            logger.warning(f"⚠️ No emergency contacts found for user {session.user_id}")

        message = render_alert_message(
            user_name=user.name,
            reason=reason,
            moment=now,
            vehicle_type=session.vehicle_type,
            vehicle_number=session.vehicle_number,
            location=location,
            tz_name=self.tz_name,
        )
        subject = render_alert_subject(user.name)

        deliveries = [self._deliver(contact, user, subject, message) for contact in contacts]
        status = fold_alert_status(deliveries)

        record = AlertRecord(
            user_id=session.user_id,
            session_id=session.id,
            trigger_reason=reason,
            message=message,
            status=status,
            created_at=now,
            location=location,
            vehicle_type=session.vehicle_type.value if session.vehicle_type else None,
            vehicle_number=session.vehicle_number,
            deliveries=deliveries,
        )

        try:
            alert = self.alerts.create(record)
        except PersistenceError as e:
            # Sends already went out
            logger.error(f"🛑 Alert for session {session_id} sent but not recorded: {e}")
            self._notify_owner(user, len(deliveries))
            raise AlertNotRecordedError(record, e) from e

        logger.info(
            f"✅ Alert {alert.id} created for session {session_id} "
            f"({reason.value}, {status.value}, {len(deliveries)} contacts)"
        )

        self._notify_owner(user, len(deliveries))
        return alert

    def _deliver(self, contact: EmergencyContact, user, subject: str, message: str) -> DeliveryRecord:
        record = DeliveryRecord(contact_id=contact.id, name=contact.name)

        # 🔐 Decrypt just in time; a bad token only costs this contact
        try:
            phone = self.cipher.decrypt(contact.encrypted_phone)
        except EncryptionError as e:
            logger.error(f"❌ Could not decrypt phone for contact {contact.id}: {e}")
            record.sms_status = DeliveryStatus.failed
            record.email_status = DeliveryStatus.failed
            record.add_error("phone number could not be decrypted")
            return record

        record.phone = mask_phone(phone)

        # 📱 SMS
        try:
            result = self.sms_sender.send(phone, message)
        except Exception as e:
            logger.warning(f"Failed to send SMS to {contact.name}: {e}")
            record.sms_status = DeliveryStatus.failed
            record.add_error(f"sms: {e}")
        else:
            if result.ok:
                record.sms_status = DeliveryStatus.sent
                record.sms_sent_at = self.clock()
                record.sms_provider_id = result.provider_id
            else:
                record.sms_status = DeliveryStatus.failed
                record.add_error(f"sms: {result.detail}")

        # 📧 Email, to the contact or else a reference copy to the user
        address = contact.email or user.email
        if not address:
            record.email_status = DeliveryStatus.failed
            record.add_error("email: no address")
            return record

        try:
            result = self.email_sender.send(address, subject, message)
        except Exception as e:
            logger.warning(f"Failed to send email for {contact.name}: {e}")
            record.email_status = DeliveryStatus.failed
            record.add_error(f"email: {e}")
        else:
            if result.ok:
                record.email_status = DeliveryStatus.sent
                record.email_sent_at = self.clock()
                record.email_provider_id = result.provider_id
            else:
                record.email_status = DeliveryStatus.failed
                record.add_error(f"email: {result.detail}")

        return record

    def _notify_owner(self, user, contact_count: int) -> None:
        if not user.fcm_token or self.push is None:
            return
        try:
            self.push(
                token=user.fcm_token,
                title="🚨 Emergency Alert Sent",
                body=f"Your emergency contacts were notified ({contact_count}).",
                data={"screen": "alerts", "origin": "session_alert"},
            )
        except Exception as e:
            logger.warning(f"⚠️ FCM push failed for user {user.id}: {e}")

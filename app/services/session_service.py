# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from datetime import datetime
from typing import Optional

from app.models.alert import Alert
from app.models.enums import AlertReason, EndReason, SessionStatus, VehicleType
from app.models.travel_session import TravelSession
from app.services.alert_dispatcher import AlertDispatcher
from app.services.session_store import SessionStore
from app.services.session_watchdog import SessionWatchdog
from app.utils.alert_message import LocationSnapshot
from app.utils.exceptions import AlertNotRecordedError, ConflictError

logger = logging.getLogger(__name__)


class SessionService:
    """What the HTTP layer calls: session lifecycle on top of the store, the watchdog and the dispatcher."""

    def __init__(
        self,
        sessions: SessionStore,
        watchdog: SessionWatchdog,
        dispatcher: AlertDispatcher,
        clock=datetime.utcnow,
    ):
        self.sessions = sessions
        self.watchdog = watchdog
        self.dispatcher = dispatcher
        self.clock = clock

    def start_session(
        self,
        user_id: int,
        vehicle_type: VehicleType,
        duration_minutes: int,
        vehicle_number: Optional[str] = None,
        notes: Optional[str] = None,
        location: Optional[LocationSnapshot] = None,
    ) -> TravelSession:
        if self.sessions.find_active_for_user(user_id) is not None:
            raise ConflictError("You already have an active safety session")

        session = self.sessions.create(
            user_id=user_id,
            vehicle_type=vehicle_type,
            duration_minutes=duration_minutes,
            vehicle_number=vehicle_number,
            notes=notes,
            location=location,
            start_time=self.clock(),
        )
        self.watchdog.schedule_expiry(session.id, session.scheduled_end_time)
        logger.info(f"🚗 Session {session.id} started for user {user_id} ({duration_minutes} min)")
        return session

    def stop_session(self, user_id: int, session_id: int, cancelled: bool = False) -> TravelSession:
        session = self.sessions.find_for_user(user_id, session_id)
        if not session.is_active:
            raise ConflictError("Session already ended")

        # Disarm first so a stale timer cannot fire after the stop
        self.watchdog.cancel_expiry(session_id)

        status = SessionStatus.cancelled if cancelled else SessionStatus.completed
        reason = EndReason.user_cancelled if cancelled else EndReason.user_stopped
        won = self.sessions.update_status(
            session_id,
            status,
            actual_end_time=self.clock(),
            end_reason=reason,
        )
        if not won:
            raise ConflictError("Session already ended")

        logger.info(f"✅ Session {session_id} {status.value} by user {user_id}")
        return self.sessions.find_by_id(session_id)

    def update_location(self, user_id: int, session_id: int, location: LocationSnapshot) -> TravelSession:
        self.sessions.find_for_user(user_id, session_id)  # Ownership check
        return self.sessions.update_location(session_id, location)

    def trigger_alert(
        self,
        user_id: int,
        session_id: int,
        reason: AlertReason,
        location: Optional[LocationSnapshot] = None,
    ) -> Alert:
        session = self.sessions.find_for_user(user_id, session_id)
        if not session.is_active:
            raise ConflictError("Alerts can only be raised for an active session")

        self.watchdog.cancel_expiry(session_id)
        if location is not None:
            self.sessions.update_location(session_id, location)

        try:
            alert = self.dispatcher.dispatch(session_id, reason, location)
        except AlertNotRecordedError:
            # Contacts were notified, so the session still ends
            self._end_with_alert(session_id, reason)
            raise

        self._end_with_alert(session_id, reason)
        logger.warning(f"🚨 {AlertReason(reason).value} alert raised for session {session_id}")
        return alert

    def _end_with_alert(self, session_id: int, reason: AlertReason) -> None:
        if not self.sessions.mark_alert_triggered(session_id, reason, self.clock()):
            logger.info(f"Session {session_id} was stopped while its alert was going out")

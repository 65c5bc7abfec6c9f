# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

"""
Session watchdog: every active session either gets stopped by its owner or,
once its deadline plus the grace period has passed, is expired. Expiring
dispatches a timer_expired alert and moves the session to alert_triggered.

Timers are process-local. reconcile() rebuilds them from the session table at
startup and on an interval, and fires anything that was missed.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

from app import config
from app.models.alert import Alert
from app.models.enums import AlertReason, SessionStatus
from app.utils.exceptions import AlertNotRecordedError, NotFoundError

logger = logging.getLogger(__name__)


class SessionWatchdog:
    def __init__(
        self,
        sessions,
        dispatcher,
        timers,
        grace_period: timedelta = timedelta(seconds=config.ALERT_GRACE_PERIOD_SECONDS),
        clock=datetime.utcnow,
    ):
        self.sessions = sessions
        self.dispatcher = dispatcher
        self.timers = timers
        self.grace_period = grace_period
        self.clock = clock

        # session id -> (token, timer handle, fire time); the token tells a stale fire from a current one
        self._pending: Dict[int, Tuple[object, object, datetime]] = {}
        self._lock = threading.RLock()
        self._expiring = set()

    # ---------------------- ⏱️ TIMERS ----------------------

    def schedule_expiry(self, session_id: int, scheduled_end_time: datetime) -> bool:
        fire_at = scheduled_end_time + self.grace_period
        delay = (fire_at - self.clock()).total_seconds()
        if delay <= 0:
            logger.info(f"Session {session_id} is already past its deadline, leaving it to reconcile")
            return False

        token = object()
        with self._lock:
            current = self._pending.get(session_id)
            if current is not None and current[2] == fire_at:
                return True  # Already armed for this deadline
            self._cancel_locked(session_id)
            handle = self.timers.schedule(session_id, fire_at, lambda: self._on_timer(session_id, token))
            self._pending[session_id] = (token, handle, fire_at)

        logger.info(f"✅ Scheduled alert for session {session_id} in {int(delay)}s")
        return True

    def cancel_expiry(self, session_id: int) -> bool:
        with self._lock:
            cancelled = self._cancel_locked(session_id)
        if cancelled:
            logger.info(f"✅ Cancelled alert for session {session_id}")
        return cancelled

    def has_pending(self, session_id: int) -> bool:
        with self._lock:
            return session_id in self._pending

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def _cancel_locked(self, session_id: int) -> bool:
        entry = self._pending.pop(session_id, None)
        if entry is None:
            return False
        self.timers.cancel(entry[1])
        return True

    def _on_timer(self, session_id: int, token: object) -> None:
        with self._lock:
            entry = self._pending.get(session_id)
            if entry is None or entry[0] is not token:
                return  # Cancelled or superseded
            del self._pending[session_id]
        self.expire(session_id)

    # ---------------------- 🚨 EXPIRY ----------------------

    def expire(self, session_id: int) -> Optional[Alert]:
        """
        Fire the timer_expired alert for a session that is still active.
        Never raises; a no-op when the session already left 'active'.
        """
        with self._lock:
            self._cancel_locked(session_id)
            if session_id in self._expiring:
                logger.info(f"Session {session_id} is already being expired, skipping")
                return None
            self._expiring.add(session_id)

        try:
            return self._expire_active(session_id)
        finally:
            with self._lock:
                self._expiring.discard(session_id)

    def _expire_active(self, session_id: int) -> Optional[Alert]:
        try:
            session = self.sessions.find_by_id(session_id)
        except NotFoundError:
            logger.warning(f"Session {session_id} no longer exists, skipping alert")
            return None
        except Exception as e:
            logger.error(f"🛑 Could not load session {session_id}: {e}", exc_info=True)
            return None

        if session.status != SessionStatus.active:
            logger.info(f"Session {session_id} not active ({session.status.value}), skipping alert")
            return None

        logger.warning(f"⚠️ Timer expired for session {session_id}, sending alert...")
        try:
            alert = self.dispatcher.dispatch(session_id, AlertReason.timer_expired)
        except AlertNotRecordedError as e:
            # Contacts were notified; retry only the ledger write
            alert = self._record_again(session_id, e.record)
        except Exception as e:
            # Session stays active so the next reconcile retries
            logger.error(f"🛑 Failed to dispatch alert for session {session_id}: {e}", exc_info=True)
            return None

        try:
            moved = self.sessions.mark_alert_triggered(session_id, AlertReason.timer_expired, self.clock())
        except Exception as e:
            logger.error(f"🛑 Alert for session {session_id} sent but the session was not updated: {e}", exc_info=True)
            return alert

        if not moved:
            logger.info(f"Session {session_id} was stopped while its alert was going out")
        return alert

    def _record_again(self, session_id: int, record) -> Optional[Alert]:
        try:
            alert = self.dispatcher.alerts.create(record)
        except Exception as e:
            logger.error(f"🛑 Alert ledger for session {session_id} lost: {e}", exc_info=True)
            return None
        logger.info(f"✅ Alert {alert.id} recorded for session {session_id} on retry")
        return alert

    # ---------------------- 🔁 RECONCILE ----------------------

    def reconcile(self) -> dict:
        """
        Fire every active session whose deadline plus grace has passed, then
        re-arm timers for the rest. Safe to run repeatedly.
        """
        now = self.clock()
        cutoff = now - self.grace_period
        summary = {"expired": 0, "scheduled": 0, "dropped": 0}

        try:
            overdue = self.sessions.find_active_with_deadline_before(cutoff)
        except Exception as e:
            logger.error(f"🛑 Reconcile could not list overdue sessions: {e}", exc_info=True)
            overdue = []

        for session in overdue:
            logger.warning(f"⚠️ Found expired session {session.id}, triggering alert")
            if self.expire(session.id) is not None:
                summary["expired"] += 1

        # Only timers armed before the query can be judged stale by it
        with self._lock:
            armed = {sid: entry[0] for sid, entry in self._pending.items()}

        try:
            upcoming = self.sessions.find_active_with_deadline_after(cutoff)
        except Exception as e:
            logger.error(f"🛑 Reconcile could not list active sessions: {e}", exc_info=True)
            return summary

        live_ids = set()
        for session in upcoming:
            live_ids.add(session.id)
            if self.schedule_expiry(session.id, session.scheduled_end_time):
                summary["scheduled"] += 1

        # Timers for sessions that are no longer active
        with self._lock:
            stale = [
                sid for sid, token in armed.items()
                if sid not in live_ids and sid in self._pending and self._pending[sid][0] is token
            ]
            for sid in stale:
                self._cancel_locked(sid)
        summary["dropped"] = len(stale)

        if overdue or stale:
            logger.info(f"🔁 Reconcile finished: {summary}")
        return summary

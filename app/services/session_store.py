# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from datetime import datetime
from typing import List, Optional

from sqlalchemy import update

from app import config
from app.models.enums import SessionStatus, EndReason, AlertReason, VehicleType
from app.models.travel_session import TravelSession
from app.services.store_base import BaseStore
from app.utils.alert_message import LocationSnapshot
from app.utils.exceptions import NotFoundError, ConflictError


class SessionStore(BaseStore):

    def create(
        self,
        user_id: int,
        vehicle_type: VehicleType,
        duration_minutes: int,
        vehicle_number: Optional[str] = None,
        notes: Optional[str] = None,
        location: Optional[LocationSnapshot] = None,
        start_time: Optional[datetime] = None,
    ) -> TravelSession:
        if duration_minutes <= 0:
            raise ValueError("duration_minutes must be positive")

        start_time = start_time or self.clock()
        session = TravelSession(
            user_id=user_id,
            vehicle_type=VehicleType(vehicle_type),
            vehicle_number=vehicle_number or None,
            notes=notes or None,
            duration_minutes=duration_minutes,
            start_time=start_time,
            scheduled_end_time=TravelSession.compute_end_time(start_time, duration_minutes),
            status=SessionStatus.active,
            location_history=[],
        )
        if location is not None:
            _apply_location(session, location, start_time)

        with self._db() as db:
            db.add(session)
            db.commit()
            db.refresh(session)
            return session

    def find_by_id(self, session_id: int) -> TravelSession:
        with self._db() as db:
            session = db.get(TravelSession, session_id)
            if session is None:
                raise NotFoundError(f"Session {session_id} not found")
            return session

    def find_for_user(self, user_id: int, session_id: int) -> TravelSession:
        with self._db() as db:
            session = (
                db.query(TravelSession)
                .filter(TravelSession.id == session_id, TravelSession.user_id == user_id)
                .first()
            )
            if session is None:
                raise NotFoundError(f"Session {session_id} not found")
            return session

    def find_active_for_user(self, user_id: int) -> Optional[TravelSession]:
        with self._db() as db:
            return (
                db.query(TravelSession)
                .filter(TravelSession.user_id == user_id, TravelSession.status == SessionStatus.active)
                .order_by(TravelSession.start_time.desc())
                .first()
            )

    def list_for_user(self, user_id: int, limit: int = 50) -> List[TravelSession]:
        with self._db() as db:
            return (
                db.query(TravelSession)
                .filter(TravelSession.user_id == user_id)
                .order_by(TravelSession.start_time.desc(), TravelSession.id.desc())
                .limit(limit)
                .all()
            )

    def find_active_with_deadline_before(self, cutoff: datetime) -> List[TravelSession]:
        with self._db() as db:
            return (
                db.query(TravelSession)
                .filter(TravelSession.status == SessionStatus.active, TravelSession.scheduled_end_time <= cutoff)
                .all()
            )

    def find_active_with_deadline_after(self, cutoff: datetime) -> List[TravelSession]:
        with self._db() as db:
            return (
                db.query(TravelSession)
                .filter(TravelSession.status == SessionStatus.active, TravelSession.scheduled_end_time > cutoff)
                .all()
            )

    def update_location(
        self,
        session_id: int,
        location: LocationSnapshot,
        history_limit: int = config.LOCATION_HISTORY_LIMIT,
    ) -> TravelSession:
        with self._db() as db:
            session = db.get(TravelSession, session_id)
            if session is None:
                raise NotFoundError(f"Session {session_id} not found")
            if not session.is_active:
                raise ConflictError("Session is no longer active")

            _apply_location(session, location, self.clock(), history_limit)
            db.commit()
            db.refresh(session)
            return session

    def update_status(self, session_id: int, status: SessionStatus, **extra) -> bool:
        """
        Move an active session into a terminal status. Returns False when the
        session already left 'active', so concurrent stop/expire calls have one winner.
        """
        status = SessionStatus(status)
        if not status.is_terminal:
            raise ValueError("Sessions can only transition into a terminal status")

        with self._db() as db:
            result = db.execute(
                update(TravelSession)
                .where(TravelSession.id == session_id, TravelSession.status == SessionStatus.active)
                .values(status=status, updated_at=self.clock(), **extra)
            )
            db.commit()
            return result.rowcount == 1

    def mark_alert_triggered(self, session_id: int, reason: AlertReason, at: datetime) -> bool:
        return self.update_status(
            session_id,
            SessionStatus.alert_triggered,
            alert_triggered=True,
            alert_reason=AlertReason(reason),
            alert_time=at,
            actual_end_time=at,
            end_reason=EndReason.alert_triggered,
        )


def _apply_location(session: TravelSession, location: LocationSnapshot, now: datetime, history_limit: int = config.LOCATION_HISTORY_LIMIT):
    session.latitude = location.latitude
    session.longitude = location.longitude
    session.accuracy = location.accuracy
    session.location_timestamp = location.timestamp or now

    # Reassign so the JSON column is flagged dirty
    history = list(session.location_history or [])
    history.append(LocationSnapshot(
        latitude=location.latitude,
        longitude=location.longitude,
        accuracy=location.accuracy,
        timestamp=session.location_timestamp,
    ).as_dict())
    session.location_history = history[-history_limit:]

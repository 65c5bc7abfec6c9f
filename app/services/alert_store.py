# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app import config
from app.models.alert import Alert, AlertDelivery
from app.services.alert_records import AlertRecord
from app.services.store_base import BaseStore
from app.utils.exceptions import NotFoundError


class AlertStore(BaseStore):
    """
    Alert history. Each alert lives for a fixed retention window: reads skip
    expired rows and purge_expired() deletes them.
    """

    def __init__(self, *args, retention_days: int = config.ALERT_RETENTION_DAYS, **kwargs):
        super().__init__(*args, **kwargs)
        self.retention = timedelta(days=retention_days)

    def create(self, record: AlertRecord) -> Alert:
        location = record.location
        alert = Alert(
            user_id=record.user_id,
            session_id=record.session_id,
            trigger_reason=record.trigger_reason,
            latitude=location.latitude if location else None,
            longitude=location.longitude if location else None,
            accuracy=location.accuracy if location else None,
            location_timestamp=location.timestamp if location else None,
            vehicle_type=record.vehicle_type,
            vehicle_number=record.vehicle_number,
            message=record.message,
            status=record.status,
            created_at=record.created_at,
            expires_at=record.created_at + self.retention,
        )
        for d in record.deliveries:
            alert.deliveries.append(AlertDelivery(
                contact_id=d.contact_id,
                name=d.name,
                phone=d.phone,
                sms_status=d.sms_status,
                email_status=d.email_status,
                sms_sent_at=d.sms_sent_at,
                email_sent_at=d.email_sent_at,
                sms_provider_id=d.sms_provider_id,
                email_provider_id=d.email_provider_id,
                error=d.error,
            ))

        # Alert and its ledger land in one transaction
        with self._db() as db:
            db.add(alert)
            db.commit()
            db.refresh(alert)
            return alert

    def list_for_user(self, user_id: int, page: int = 1, limit: int = 50) -> List[Alert]:
        page = max(page, 1)
        with self._db() as db:
            return (
                self._live_query(db)
                .filter(Alert.user_id == user_id)
                .order_by(Alert.created_at.desc(), Alert.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
                .all()
            )

    def count_for_user(self, user_id: int) -> int:
        with self._db() as db:
            return self._live_query(db).filter(Alert.user_id == user_id).count()

    def count_for_session(self, session_id: int) -> int:
        with self._db() as db:
            return self._live_query(db).filter(Alert.session_id == session_id).count()

    def get(self, user_id: int, alert_id: int) -> Alert:
        with self._db() as db:
            alert = self._live_query(db).filter(Alert.id == alert_id, Alert.user_id == user_id).first()
            if alert is None:
                raise NotFoundError("Alert not found")
            return alert

    def delete(self, user_id: int, alert_id: int) -> None:
        with self._db() as db:
            alert = db.query(Alert).filter(Alert.id == alert_id, Alert.user_id == user_id).first()
            if alert is None:
                raise NotFoundError("Alert not found")
            db.delete(alert)
            db.commit()

    def delete_all(self, user_id: int) -> int:
        with self._db() as db:
            count = _bulk_delete(db, db.query(Alert.id).filter(Alert.user_id == user_id))
            db.commit()
            return count

    def stats_for_user(self, user_id: int) -> dict:
        with self._db() as db:
            base = self._live_query(db).filter(Alert.user_id == user_id)

            by_reason = (
                base.with_entities(Alert.trigger_reason, func.count(Alert.id))
                .group_by(Alert.trigger_reason)
                .all()
            )
            by_status = (
                base.with_entities(Alert.status, func.count(Alert.id))
                .group_by(Alert.status)
                .all()
            )
            recent = base.order_by(Alert.created_at.desc(), Alert.id.desc()).limit(5).all()

            return {
                "total": base.count(),
                "by_reason": {reason.value: count for reason, count in by_reason},
                "by_status": {status.value: count for status, count in by_status},
                "recent": [
                    {
                        "id": a.id,
                        "trigger_reason": a.trigger_reason.value,
                        "status": a.status.value,
                        "created_at": a.created_at.isoformat(),
                    }
                    for a in recent
                ],
            }

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        now = now or self.clock()
        with self._db() as db:
            count = _bulk_delete(db, db.query(Alert.id).filter(Alert.expires_at <= now))
            db.commit()
            return count

    def _live_query(self, db: Session):
        return db.query(Alert).filter(Alert.expires_at > self.clock())


def _bulk_delete(db: Session, id_query) -> int:
    ids = [row[0] for row in id_query.all()]
    if not ids:
        return 0
    db.query(AlertDelivery).filter(AlertDelivery.alert_id.in_(ids)).delete(synchronize_session=False)
    return db.query(Alert).filter(Alert.id.in_(ids)).delete(synchronize_session=False)

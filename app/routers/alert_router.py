# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from fastapi import APIRouter, Depends, Query

from app.models.alert import Alert
from app.routers.deps import get_services
from app.schemas.safety_schemas import AlertTriggerRequest
from app.services.container import Services
from app.utils.auth_utils import current_user_id

router = APIRouter(prefix="/alerts", tags=["Alerts"])


def _iso(value):
    return value.isoformat() if value else None


def serialize_alert(alert: Alert) -> dict:
    location = None
    if alert.latitude is not None and alert.longitude is not None:
        location = {
            "latitude": alert.latitude,
            "longitude": alert.longitude,
            "accuracy": alert.accuracy,
            "timestamp": _iso(alert.location_timestamp),
        }

    return {
        "id": alert.id,
        "session_id": alert.session_id,
        "trigger_reason": alert.trigger_reason.value,
        "status": alert.status.value,
        "location": location,
        "vehicle_type": alert.vehicle_type,
        "vehicle_number": alert.vehicle_number,
        "message": alert.message,
        "created_at": _iso(alert.created_at),
        "expires_at": _iso(alert.expires_at),
        "sent_to": [
            {
                "contact_id": d.contact_id,
                "name": d.name,
                "phone": d.phone,
                "sms_status": d.sms_status.value,
                "email_status": d.email_status.value,
                "sms_sent_at": _iso(d.sms_sent_at),
                "email_sent_at": _iso(d.email_sent_at),
                "error": d.error,
            }
            for d in alert.deliveries
        ],
    }


# ---------------------- 📋 ALERT HISTORY ----------------------
@router.get("")
def list_alerts(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    user_id: int = Depends(current_user_id),
    services: Services = Depends(get_services),
):
    alerts = services.alerts.list_for_user(user_id, page=page, limit=limit)
    total = services.alerts.count_for_user(user_id)
    return {
        "success": True,
        "count": len(alerts),
        "total": total,
        "page": page,
        "pages": (total + limit - 1) // limit,
        "alerts": [serialize_alert(a) for a in alerts],
    }


@router.get("/stats/overview")
def alert_stats(user_id: int = Depends(current_user_id), services: Services = Depends(get_services)):
    return {"success": True, "stats": services.alerts.stats_for_user(user_id)}


@router.get("/{alert_id}")
def get_alert(alert_id: int, user_id: int = Depends(current_user_id), services: Services = Depends(get_services)):
    alert = services.alerts.get(user_id, alert_id)
    return {"success": True, "alert": serialize_alert(alert)}


# ---------------------- 🚨 RAISE ALERT ----------------------
@router.post("/trigger", status_code=201)
def trigger_alert(
    payload: AlertTriggerRequest,
    user_id: int = Depends(current_user_id),
    services: Services = Depends(get_services),
):
    alert = services.session_service.trigger_alert(
        user_id=user_id,
        session_id=payload.session_id,
        reason=payload.reason,
        location=payload.location.to_snapshot() if payload.location else None,
    )
    return {
        "success": True,
        "message": "🚨 Emergency alert sent",
        "alert": serialize_alert(alert),
    }


# ---------------------- ❌ DELETE ALERTS ----------------------
@router.delete("/{alert_id}")
def delete_alert(alert_id: int, user_id: int = Depends(current_user_id), services: Services = Depends(get_services)):
    services.alerts.delete(user_id, alert_id)
    return {"success": True, "message": "Alert deleted successfully"}


@router.delete("")
def clear_alerts(user_id: int = Depends(current_user_id), services: Services = Depends(get_services)):
    count = services.alerts.delete_all(user_id)
    return {
        "success": True,
        "message": f"{count} alert(s) deleted successfully",
        "deleted_count": count,
    }

# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from typing import Optional
from fastapi import APIRouter, Depends, Query

from app.models.travel_session import TravelSession
from app.routers.deps import get_services
from app.schemas.safety_schemas import SessionStartRequest, SessionStopRequest, LocationPayload
from app.services.container import Services
from app.utils.auth_utils import current_user_id

router = APIRouter(prefix="/sessions", tags=["Sessions"])


def _iso(value):
    return value.isoformat() if value else None


def serialize_session(session: TravelSession, include_history: bool = False) -> dict:
    data = {
        "id": session.id,
        "user_id": session.user_id,
        "vehicle_type": session.vehicle_type.value,
        "vehicle_number": session.vehicle_number,
        "notes": session.notes,
        "duration_minutes": session.duration_minutes,
        "start_time": _iso(session.start_time),
        "scheduled_end_time": _iso(session.scheduled_end_time),
        "actual_end_time": _iso(session.actual_end_time),
        "status": session.status.value,
        "end_reason": session.end_reason.value if session.end_reason else None,
        "last_known_location": None,
        "alert_triggered": session.alert_triggered,
        "alert_reason": session.alert_reason.value if session.alert_reason else None,
        "alert_time": _iso(session.alert_time),
    }
    if session.latitude is not None and session.longitude is not None:
        data["last_known_location"] = {
            "latitude": session.latitude,
            "longitude": session.longitude,
            "accuracy": session.accuracy,
            "timestamp": _iso(session.location_timestamp),
        }
    if include_history:
        data["location_history"] = session.location_history or []
    return data


# ---------------------- ▶️ START SESSION ----------------------
@router.post("/start", status_code=201)
def start_session(
    payload: SessionStartRequest,
    user_id: int = Depends(current_user_id),
    services: Services = Depends(get_services),
):
    session = services.session_service.start_session(
        user_id=user_id,
        vehicle_type=payload.vehicle_type,
        duration_minutes=payload.duration_minutes,
        vehicle_number=payload.vehicle_number,
        notes=payload.notes,
        location=payload.location.to_snapshot() if payload.location else None,
    )
    return {
        "success": True,
        "message": "Session started successfully",
        "session": serialize_session(session),
    }


# ---------------------- ⏹️ STOP SESSION ----------------------
@router.post("/{session_id}/stop")
def stop_session(
    session_id: int,
    payload: Optional[SessionStopRequest] = None,
    user_id: int = Depends(current_user_id),
    services: Services = Depends(get_services),
):
    session = services.session_service.stop_session(user_id, session_id, cancelled=bool(payload and payload.cancelled))
    return {
        "success": True,
        "message": "Session ended successfully",
        "session": serialize_session(session),
    }


# ---------------------- 📍 LOCATION UPDATE ----------------------
@router.post("/{session_id}/location")
def update_location(
    session_id: int,
    payload: LocationPayload,
    user_id: int = Depends(current_user_id),
    services: Services = Depends(get_services),
):
    session = services.session_service.update_location(user_id, session_id, payload.to_snapshot())
    return {"success": True, "session": serialize_session(session)}


# ---------------------- 📋 LIST SESSIONS ----------------------
@router.get("")
def list_sessions(
    limit: int = Query(50, ge=1, le=200),
    user_id: int = Depends(current_user_id),
    services: Services = Depends(get_services),
):
    sessions = services.sessions.list_for_user(user_id, limit=limit)
    return {
        "success": True,
        "count": len(sessions),
        "sessions": [serialize_session(s) for s in sessions],
    }


@router.get("/active")
def get_active_session(
    user_id: int = Depends(current_user_id),
    services: Services = Depends(get_services),
):
    session = services.sessions.find_active_for_user(user_id)
    return {"success": True, "session": serialize_session(session) if session else None}


@router.get("/{session_id}")
def get_session(
    session_id: int,
    user_id: int = Depends(current_user_id),
    services: Services = Depends(get_services),
):
    session = services.sessions.find_for_user(user_id, session_id)
    return {"success": True, "session": serialize_session(session, include_history=True)}

# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from datetime import datetime
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.routers.deps import get_db, get_services
from app.services.container import Services

router = APIRouter(tags=["Infra"])


@router.get("/health")
def health_check(db: Session = Depends(get_db), services: Services = Depends(get_services)):
    result = {
        "db_connection": False,
        "pending_timers": services.watchdog.pending_count(),
    }

    try:
        # ✅ Check DB read
        db.execute(text("SELECT 1"))
        result["db_connection"] = True
    except Exception as e:
        return {"status": "error", "error": str(e), "details": result}

    return {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "details": result,
    }

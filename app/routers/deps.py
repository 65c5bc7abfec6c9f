# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from fastapi import Request
from app.models.database import SessionLocal
from app.services.container import Services


# ---------------------- DB SESSION ----------------------
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ---------------------- SERVICES ----------------------
def get_services(request: Request) -> Services:
    return request.app.state.services

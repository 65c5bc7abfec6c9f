# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from datetime import datetime, timedelta
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Float, ForeignKey, JSON, Enum
from sqlalchemy.orm import relationship
from app.models.database import Base
from app.models.enums import VehicleType, SessionStatus, EndReason, AlertReason
from app.utils.encryption import EncryptedTypeHybrid  # 🔐 Encryption wrapper


class TravelSession(Base):
    __tablename__ = "travel_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # 🚗 Vehicle
    vehicle_type = Column(Enum(VehicleType), nullable=False, default=VehicleType.other)
    vehicle_number = Column(String, nullable=True)
    notes = Column(EncryptedTypeHybrid, nullable=True)    # 🔐 Free text about driver/route

    # ⏱️ Timing
    duration_minutes = Column(Integer, nullable=False)
    start_time = Column(DateTime, nullable=False, default=datetime.utcnow)
    scheduled_end_time = Column(DateTime, nullable=False, index=True)
    actual_end_time = Column(DateTime, nullable=True)

    status = Column(Enum(SessionStatus), nullable=False, default=SessionStatus.active, index=True)
    end_reason = Column(Enum(EndReason), nullable=True)

    # 📍 Last known location
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    accuracy = Column(Float, nullable=True)
    location_timestamp = Column(DateTime, nullable=True)
    location_history = Column(JSON, nullable=False, default=list)

    # 🚨 Alert linkage
    alert_triggered = Column(Boolean, nullable=False, default=False)
    alert_reason = Column(Enum(AlertReason), nullable=True)
    alert_time = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", lazy="joined")

    @staticmethod
    def compute_end_time(start_time: datetime, duration_minutes: int) -> datetime:
        return start_time + timedelta(minutes=duration_minutes)

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.active

    def __repr__(self):
        return f"<TravelSession id={self.id} user={self.user_id} status={self.status.value}>"

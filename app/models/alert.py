# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, DateTime, Float, ForeignKey, Text, Enum, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from app.models.database import Base
from app.models.enums import AlertReason, AlertStatus, DeliveryStatus


class Alert(Base):
    __tablename__ = "alerts"
    __table_args__ = (
        Index("ix_alerts_user_created", "user_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    session_id = Column(Integer, ForeignKey("travel_sessions.id"), nullable=False, index=True)

    trigger_reason = Column(Enum(AlertReason), nullable=False)

    # 📍 Location snapshot
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    accuracy = Column(Float, nullable=True)
    location_timestamp = Column(DateTime, nullable=True)

    # 🚗 Vehicle snapshot
    vehicle_type = Column(String, nullable=True)
    vehicle_number = Column(String, nullable=True)

    message = Column(Text, nullable=False)
    status = Column(Enum(AlertStatus), nullable=False, default=AlertStatus.sending)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)   # Retention cutoff

    deliveries = relationship(
        "AlertDelivery",
        back_populates="alert",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="AlertDelivery.id",
    )


class AlertDelivery(Base):
    __tablename__ = "alert_deliveries"

    id = Column(Integer, primary_key=True, index=True)
    alert_id = Column(Integer, ForeignKey("alerts.id", ondelete="CASCADE"), nullable=False, index=True)
    contact_id = Column(Integer, ForeignKey("emergency_contacts.id"), nullable=True)

    name = Column(String, nullable=False)
    phone = Column(String, nullable=True)   # Masked, last 4 digits only

    sms_status = Column(Enum(DeliveryStatus), nullable=False, default=DeliveryStatus.pending)
    email_status = Column(Enum(DeliveryStatus), nullable=False, default=DeliveryStatus.pending)
    sms_sent_at = Column(DateTime, nullable=True)
    email_sent_at = Column(DateTime, nullable=True)
    sms_provider_id = Column(String, nullable=True)
    email_provider_id = Column(String, nullable=True)
    error = Column(String, nullable=True)

    alert = relationship("Alert", back_populates="deliveries")

# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Text, Enum, Index
from datetime import datetime
from app.models.database import Base
from app.models.enums import ContactRelationship


class EmergencyContact(Base):
    __tablename__ = "emergency_contacts"
    __table_args__ = (
        Index("ix_emergency_contacts_user_active", "user_id", "is_active"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    name = Column(String, nullable=False)
    relationship = Column(Enum(ContactRelationship), nullable=False, default=ContactRelationship.family)
    email = Column(String, nullable=True)

    # 🔐 Only the Fernet token is stored; decrypted at alert time
    encrypted_phone = Column(Text, nullable=False)
    phone_fingerprint = Column(String(64), nullable=False, index=True)

    is_primary = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)   # Soft-delete marker

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

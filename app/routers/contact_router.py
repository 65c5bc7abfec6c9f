# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


import logging
from fastapi import APIRouter, Depends

from app.models.emergency_contact import EmergencyContact
from app.routers.deps import get_services
from app.schemas.safety_schemas import ContactCreateRequest, ContactUpdateRequest
from app.services.container import Services
from app.utils.auth_utils import current_user_id
from app.utils.encryption import decrypt
from app.utils.exceptions import EncryptionError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contacts", tags=["Emergency Contacts"])


def serialize_contact(contact: EmergencyContact, phone: str = None) -> dict:
    if phone is None:
        try:
            phone = decrypt(contact.encrypted_phone)
        except EncryptionError as e:
            logger.error(f"Decryption error for contact {contact.id}: {e}")
            phone = "Error decrypting"

    return {
        "id": contact.id,
        "name": contact.name,
        "phone": phone,
        "email": contact.email,
        "relationship": contact.relationship.value,
        "is_primary": contact.is_primary,
        "created_at": contact.created_at.isoformat() if contact.created_at else None,
    }


# ---------------------- 📋 LIST CONTACTS ----------------------
@router.get("")
def list_contacts(user_id: int = Depends(current_user_id), services: Services = Depends(get_services)):
    contacts = services.contacts.list_active(user_id)
    return {
        "success": True,
        "count": len(contacts),
        "contacts": [serialize_contact(c) for c in contacts],
    }


@router.get("/stats/count")
def contact_count(user_id: int = Depends(current_user_id), services: Services = Depends(get_services)):
    count = services.contacts.count_active(user_id)
    max_allowed = services.contacts.max_contacts
    return {
        "success": True,
        "count": count,
        "max_allowed": max_allowed,
        "can_add_more": count < max_allowed,
    }


@router.get("/{contact_id}")
def get_contact(contact_id: int, user_id: int = Depends(current_user_id), services: Services = Depends(get_services)):
    contact = services.contacts.get_active(user_id, contact_id)
    return {"success": True, "contact": serialize_contact(contact)}


# ---------------------- ➕ ADD CONTACT ----------------------
@router.post("", status_code=201)
def add_contact(
    payload: ContactCreateRequest,
    user_id: int = Depends(current_user_id),
    services: Services = Depends(get_services),
):
    contact = services.contacts.create(
        user_id=user_id,
        name=payload.name,
        phone=payload.phone,
        relationship=payload.relationship,
        is_primary=payload.is_primary,
        email=payload.email,
    )
    logger.info(f"✅ New contact added for user {user_id}: {contact.id}")
    return {
        "success": True,
        "message": "Emergency contact added successfully",
        "contact": serialize_contact(contact, phone=payload.phone),
    }


# ---------------------- ✏️ UPDATE CONTACT ----------------------
@router.put("/{contact_id}")
def update_contact(
    contact_id: int,
    payload: ContactUpdateRequest,
    user_id: int = Depends(current_user_id),
    services: Services = Depends(get_services),
):
    contact = services.contacts.update(
        user_id=user_id,
        contact_id=contact_id,
        name=payload.name,
        phone=payload.phone,
        relationship=payload.relationship,
        is_primary=payload.is_primary,
        email=payload.email,
    )
    return {
        "success": True,
        "message": "Contact updated successfully",
        "contact": serialize_contact(contact),
    }


# ---------------------- ❌ DELETE CONTACT ----------------------
@router.delete("/{contact_id}")
def delete_contact(contact_id: int, user_id: int = Depends(current_user_id), services: Services = Depends(get_services)):
    services.contacts.soft_delete(user_id, contact_id)
    return {"success": True, "message": "Contact deleted successfully"}


@router.delete("")
def delete_all_contacts(user_id: int = Depends(current_user_id), services: Services = Depends(get_services)):
    count = services.contacts.soft_delete_all(user_id)
    return {
        "success": True,
        "message": "All contacts deleted successfully",
        "deleted_count": count,
    }

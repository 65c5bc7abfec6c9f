# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from typing import List, Optional

from sqlalchemy.orm import Session

from app import config
from app.models.emergency_contact import EmergencyContact
from app.models.enums import ContactRelationship
from app.services.store_base import BaseStore
from app.utils.encryption import encrypt, phone_fingerprint
from app.utils.exceptions import NotFoundError, ConflictError


class ContactStore(BaseStore):
    """Emergency contacts. Phone numbers go in encrypted and come out encrypted."""

    def __init__(self, *args, max_contacts: int = config.MAX_EMERGENCY_CONTACTS, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_contacts = max_contacts

    def list_active(self, user_id: int) -> List[EmergencyContact]:
        with self._db() as db:
            return _active_query(db, user_id).order_by(
                EmergencyContact.is_primary.desc(),
                EmergencyContact.created_at.asc(),
                EmergencyContact.id.asc(),
            ).all()

    def count_active(self, user_id: int) -> int:
        with self._db() as db:
            return _active_query(db, user_id).count()

    def get_active(self, user_id: int, contact_id: int) -> EmergencyContact:
        with self._db() as db:
            return _get_active(db, user_id, contact_id)

    def create(
        self,
        user_id: int,
        name: str,
        phone: str,
        relationship: ContactRelationship = ContactRelationship.family,
        is_primary: bool = False,
        email: Optional[str] = None,
    ) -> EmergencyContact:
        fingerprint = phone_fingerprint(phone)

        with self._db() as db:
            count = _active_query(db, user_id).count()
            if count >= self.max_contacts:
                raise ConflictError(
                    f"Maximum {self.max_contacts} emergency contacts allowed. "
                    "Please delete an existing contact first."
                )
            if _active_query(db, user_id).filter(EmergencyContact.phone_fingerprint == fingerprint).first():
                raise ConflictError("This phone number is already added as an emergency contact")

            # The first contact is always primary
            make_primary = count == 0 or bool(is_primary)
            if make_primary:
                _clear_primary(db, user_id)

            contact = EmergencyContact(
                user_id=user_id,
                name=name.strip(),
                relationship=ContactRelationship(relationship or ContactRelationship.family),
                email=email or None,
                encrypted_phone=encrypt(phone),
                phone_fingerprint=fingerprint,
                is_primary=make_primary,
                is_active=True,
            )
            db.add(contact)
            db.commit()
            db.refresh(contact)
            return contact

    def update(
        self,
        user_id: int,
        contact_id: int,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        relationship: Optional[ContactRelationship] = None,
        is_primary: Optional[bool] = None,
        email: Optional[str] = None,
    ) -> EmergencyContact:
        with self._db() as db:
            contact = _get_active(db, user_id, contact_id)

            if phone:
                fingerprint = phone_fingerprint(phone)
                if fingerprint != contact.phone_fingerprint:
                    clash = (
                        _active_query(db, user_id)
                        .filter(EmergencyContact.phone_fingerprint == fingerprint, EmergencyContact.id != contact.id)
                        .first()
                    )
                    if clash:
                        raise ConflictError("This phone number is already added as an emergency contact")
                    contact.encrypted_phone = encrypt(phone)
                    contact.phone_fingerprint = fingerprint

            if name:
                contact.name = name.strip()
            if relationship:
                contact.relationship = ContactRelationship(relationship)
            if email is not None:
                contact.email = email or None
            if is_primary is True and not contact.is_primary:
                _clear_primary(db, user_id)
                contact.is_primary = True
            elif is_primary is False:
                contact.is_primary = False

            db.commit()
            db.refresh(contact)
            return contact

    def soft_delete(self, user_id: int, contact_id: int) -> EmergencyContact:
        with self._db() as db:
            contact = _get_active(db, user_id, contact_id)
            contact.is_active = False
            was_primary = contact.is_primary
            contact.is_primary = False
            db.flush()

            if was_primary:
                # Promote the oldest remaining contact
                successor = _active_query(db, user_id).order_by(EmergencyContact.created_at.asc(), EmergencyContact.id.asc()).first()
                if successor:
                    successor.is_primary = True

            db.commit()
            return contact

    def soft_delete_all(self, user_id: int) -> int:
        with self._db() as db:
            count = _active_query(db, user_id).update(
                {EmergencyContact.is_active: False, EmergencyContact.is_primary: False},
                synchronize_session=False,
            )
            db.commit()
            return count


def _active_query(db: Session, user_id: int):
    return db.query(EmergencyContact).filter(
        EmergencyContact.user_id == user_id,
        EmergencyContact.is_active == True,  # noqa: E712
    )


def _get_active(db: Session, user_id: int, contact_id: int) -> EmergencyContact:
    contact = _active_query(db, user_id).filter(EmergencyContact.id == contact_id).first()
    if contact is None:
        raise NotFoundError("Contact not found")
    return contact


def _clear_primary(db: Session, user_id: int) -> None:
    _active_query(db, user_id).filter(EmergencyContact.is_primary == True).update(  # noqa: E712
        {EmergencyContact.is_primary: False},
        synchronize_session=False,
    )

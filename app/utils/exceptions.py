# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


class SafeHerError(Exception):
    """Base class for every error raised by the safety backend."""


class NotFoundError(SafeHerError):
    """A referenced session, contact, alert or user does not exist."""


class ConflictError(SafeHerError):
    """The request is valid but clashes with the current state."""


class EncryptionError(SafeHerError):
    """A value could not be encrypted or decrypted."""


class DeliveryError(SafeHerError):
    """An SMS or email provider rejected or failed a send."""

    def __init__(self, channel: str, message: str):
        super().__init__(f"{channel}: {message}")
        self.channel = channel


class PersistenceError(SafeHerError):
    """The durable store failed to read or write."""


class AlertNotRecordedError(PersistenceError):
    """Contacts were notified but the alert ledger could not be written."""

    def __init__(self, record, cause: Exception):
        super().__init__(f"alert for session {record.session_id} not recorded: {cause}")
        self.record = record

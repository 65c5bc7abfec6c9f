# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import hashlib
import hmac
import re

from cryptography.fernet import Fernet, InvalidToken
from sqlalchemy.types import TypeDecorator, Text

from app.config import FERNET_SECRET
from app.utils.exceptions import EncryptionError

if not FERNET_SECRET:
    raise EnvironmentError("FERNET_SECRET is missing. Please set it in your environment or .env file.")

try:
    fernet = Fernet(FERNET_SECRET)
except Exception as e:
    raise ValueError("FERNET_SECRET is invalid. Make sure it is a valid 32-byte base64 string.") from e


# 🔐 Encrypt/Decrypt helpers
def encrypt(text: str) -> str:
    if not isinstance(text, str):
        raise EncryptionError(f"Cannot encrypt value of type {type(text).__name__}")
    return fernet.encrypt(text.encode()).decode()


def decrypt(token: str) -> str:
    if not isinstance(token, str) or not token:
        raise EncryptionError("Ciphertext is empty or not a string")
    try:
        return fernet.decrypt(token.encode()).decode()
    except (InvalidToken, UnicodeDecodeError) as e:
        raise EncryptionError("Ciphertext is malformed or was encrypted with another key") from e


def normalize_phone(phone: str) -> str:
    return re.sub(r"\D", "", phone or "")


def phone_fingerprint(phone: str) -> str:
    """
    Keyed hash of the phone digits. Fernet tokens are randomised, so this
    is what duplicate checks compare instead of the ciphertext.
    """
    digest = hmac.new(FERNET_SECRET.encode(), normalize_phone(phone).encode(), hashlib.sha256)
    return digest.hexdigest()


def mask_phone(phone: str) -> str:
    digits = normalize_phone(phone)
    if len(digits) <= 4:
        return "*" * len(digits)
    return "*" * (len(digits) - 4) + digits[-4:]


# 🧩 Custom Encrypted DB Field
class EncryptedTypeHybrid(TypeDecorator):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return encrypt(value)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            return decrypt(value)
        return value

# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from typing import Optional

from twilio.rest import Client as TwilioClient
from twilio.http.http_client import TwilioHttpClient

from app import config
from app.utils.delivery import SendResult
from app.utils.encryption import normalize_phone, mask_phone
from app.utils.exceptions import DeliveryError

logger = logging.getLogger(__name__)


def format_phone_number(phone: str, country_code: str = config.DEFAULT_COUNTRY_CODE) -> str:
    """
    Format a stored number as E.164 for Twilio, e.g. '98765 43210' -> '+919876543210'.
    """
    digits = normalize_phone(phone)
    if len(digits) == 10:
        digits = country_code + digits
    elif len(digits) == 11 and digits.startswith("0"):
        digits = country_code + digits[1:]
    return "+" + digits


class TwilioSmsSender:
    def __init__(
        self,
        account_sid: Optional[str] = config.TWILIO_ACCOUNT_SID,
        auth_token: Optional[str] = config.TWILIO_AUTH_TOKEN,
        from_number: Optional[str] = config.TWILIO_PHONE_NUMBER,
        timeout: int = config.NOTIFY_TIMEOUT_SECONDS,
        client=None,
    ):
        self.from_number = from_number
        self.client = client

        # Initialize Twilio only if credentials are provided
        if self.client is None and account_sid and auth_token and from_number:
            try:
                self.client = TwilioClient(
                    account_sid,
                    auth_token,
                    http_client=TwilioHttpClient(timeout=timeout),
                )
                logger.info("✅ Twilio initialized")
            except Exception as e:
                logger.warning(f"⚠️ Twilio initialization failed: {e}")
                self.client = None

    @property
    def is_configured(self) -> bool:
        return self.client is not None and bool(self.from_number)

    def send(self, phone_number: str, message: str) -> SendResult:
        if not self.is_configured:
            logger.warning(f"⚠️ Twilio not configured, SMS to {mask_phone(phone_number)} not sent")
            return SendResult.not_configured("Twilio")

        to = format_phone_number(phone_number)
        try:
            result = self.client.messages.create(body=message, from_=self.from_number, to=to)
        except Exception as e:
            logger.error(f"Twilio SMS error for {mask_phone(to)}: {e}")
            raise DeliveryError("sms", f"Failed to send SMS: {e}") from e

        logger.info(f"✅ SMS sent to {mask_phone(to)}, SID: {result.sid}")
        return SendResult(ok=True, provider_id=result.sid)

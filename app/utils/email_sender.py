# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

"""
Emergency e-mail delivery over SMTP (STARTTLS), plain text with an HTML alternative.
"""

import html
import logging
import smtplib
import uuid
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from app import config
from app.utils.delivery import SendResult
from app.utils.exceptions import DeliveryError

logger = logging.getLogger(__name__)

HTML_TEMPLATE = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; background-color: #fff3f3; border: 2px solid #ef4444; border-radius: 10px;">
  <h2 style="color: #dc2626; margin-top: 0;">🚨 SafeHer Emergency Alert</h2>
  <div style="background-color: white; padding: 20px; border-radius: 5px; margin: 20px 0;">
    <pre style="white-space: pre-wrap; font-family: inherit;">{body}</pre>
  </div>
  <p style="color: #666; font-size: 12px; text-align: center; margin-bottom: 0;">
    This is an automated emergency alert from SafeHer
  </p>
</div>
"""


class SmtpEmailSender:
    def __init__(
        self,
        server: str = config.SMTP_SERVER,
        port: int = config.SMTP_PORT,
        username: Optional[str] = config.SMTP_USERNAME,
        password: Optional[str] = config.SMTP_PASSWORD,
        from_email: Optional[str] = config.FROM_EMAIL,
        timeout: int = config.NOTIFY_TIMEOUT_SECONDS,
        from_name: str = "SafeHer Safety",
    ):
        self.server = server
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email or username
        self.timeout = timeout
        self.from_name = from_name

    @property
    def is_configured(self) -> bool:
        return bool(self.username and self.password and self.from_email)

    def build_message(self, address: str, subject: str, body: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = address
        msg["Message-ID"] = f"<{uuid.uuid4().hex}@safeher>"
        msg.attach(MIMEText(body, "plain", "utf-8"))
        msg.attach(MIMEText(HTML_TEMPLATE.format(body=html.escape(body)), "html", "utf-8"))
        return msg

    def send(self, address: str, subject: str, body: str) -> SendResult:
        if not self.is_configured:
            logger.warning(f"⚠️ Email service not configured, mail to {address} not sent")
            return SendResult.not_configured("Email service")

        msg = self.build_message(address, subject, body)
        try:
            with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.username, self.password)
                server.sendmail(self.from_email, [address], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP error sending email to {address}: {e}")
            raise DeliveryError("email", f"Failed to send email: {e}") from e

        logger.info(f"✅ Email sent to {address}: {subject}")
        return SendResult(ok=True, provider_id=msg["Message-ID"])

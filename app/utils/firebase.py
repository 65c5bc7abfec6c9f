# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import os
import json
import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials, messaging

from app import config

logger = logging.getLogger(__name__)


def init_firebase(raw_json: Optional[str] = config.FIREBASE_ADMIN_JSON) -> bool:
    """
    Initialise the Firebase Admin SDK once. Returns False when no credentials are set,
    in which case pushes are skipped.
    """
    if firebase_admin._apps:
        return True

    if not raw_json:
        logger.info("FIREBASE_ADMIN_JSON not set, push notifications disabled")
        return False

    try:
        if raw_json.strip().startswith("{"):
            # 🧠 Stringified JSON (e.g., hosted secrets)
            cred = credentials.Certificate(json.loads(raw_json))
        elif os.path.exists(raw_json):
            # 🧪 Local path to JSON (for dev)
            cred = credentials.Certificate(raw_json)
        else:
            logger.warning("FIREBASE_ADMIN_JSON is neither JSON nor an existing file")
            return False

        firebase_admin.initialize_app(cred)
        return True
    except Exception as e:
        logger.error(f"❌ Failed to initialize Firebase Admin SDK: {e}")
        return False


def send_fcm_push(token: str, title: str, body: str, data: Optional[dict] = None) -> Optional[str]:
    """
    Send a push notification via FCM.
    """
    if not init_firebase():
        return None

    message = messaging.Message(
        notification=messaging.Notification(title=title, body=body),
        token=token,
        data=data or {}
    )
    return messaging.send(message)

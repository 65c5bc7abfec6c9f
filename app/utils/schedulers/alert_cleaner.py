# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from typing import Optional

from app import config
from app.services.alert_store import AlertStore

logger = logging.getLogger("cleanup")


def clean_expired_alerts(alerts: Optional[AlertStore] = None) -> int:
    alerts = alerts or AlertStore()
    try:
        count = alerts.purge_expired()
        logger.info(
            f"🗑️ Deleted {count} alerts older than {config.ALERT_RETENTION_DAYS} days."
        )
        return count
    except Exception as e:
        logger.error(f"🛑 Alert cleanup failed: {e}", exc_info=True)
        return 0

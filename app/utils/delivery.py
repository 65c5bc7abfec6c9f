# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SendResult:
    """Outcome of one provider call. ok=False never means an exception was raised."""
    ok: bool
    provider_id: Optional[str] = None
    detail: Optional[str] = None

    @classmethod
    def not_configured(cls, provider: str) -> "SendResult":
        return cls(ok=False, detail=f"{provider} not configured")

# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from fastapi import HTTPException, Header

from app.utils.jwt_utils import decode_user_token

BEARER_PREFIX = "Bearer "


def current_user_id(authorization: str = Header(...)) -> int:
    """FastAPI dependency: the id of the user behind the bearer token."""
    if not authorization.startswith(BEARER_PREFIX):
        raise HTTPException(status_code=401, detail="Invalid authorization format")
    return decode_user_token(authorization[len(BEARER_PREFIX):].strip())

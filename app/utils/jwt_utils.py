# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException, status
from jose import ExpiredSignatureError, JWTError, jwt

from app import config

if not config.JWT_SECRET_KEY:
    raise RuntimeError("JWT_SECRET_KEY environment variable is not set.")

ALGORITHM = "HS256"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def issue_user_token(user_id: int, ttl: Optional[timedelta] = None) -> str:
    """Signed access token whose subject is the user id."""
    now = datetime.utcnow()
    claims = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + (ttl or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)),
    }
    return jwt.encode(claims, config.JWT_SECRET_KEY, algorithm=ALGORITHM)


def decode_user_token(token: str) -> int:
    try:
        claims = jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise _unauthorized("Token expired, please sign in again")
    except JWTError:
        raise _unauthorized("Invalid or expired token")

    try:
        return int(claims["sub"])
    except (KeyError, TypeError, ValueError):
        raise _unauthorized("Token has no valid subject")

# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import DATABASE_URL


def build_engine(url: str):
    if url.startswith("sqlite"):
        # SQLite connections are shared with the scheduler's worker threads
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        pool_size=10,          # Keep 10 connections open
        max_overflow=20,       # Allow 20 extra if under load
        pool_recycle=1800,     # Recycle every 30 mins
        pool_pre_ping=True     # Validate before using connection
    )


# ✅ Engine
engine = build_engine(DATABASE_URL)

# ✅ Session factory; stores hand detached rows back to callers
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

# ✅ Base model
Base = declarative_base()

# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from contextlib import contextmanager
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.database import SessionLocal
from app.utils.exceptions import PersistenceError


class BaseStore:
    """Opens one short-lived DB session per call and turns driver errors into PersistenceError."""

    def __init__(self, session_factory=SessionLocal, clock=datetime.utcnow):
        self.session_factory = session_factory
        self.clock = clock

    @contextmanager
    def _db(self):
        db: Session = self.session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"{type(self).__name__}: {e}") from e
        finally:
            db.close()

"""
Shared fixtures for the safety backend tests.

The watchdog runs on a manually advanced clock and timer backend, and the SMS and
e-mail providers are replaced with scriptable fakes, so nothing here waits on
wall-clock time or touches the network.
"""
import os
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from cryptography.fernet import Fernet

# ── Environment must be in place before any app import ──────────────────
_TMP_DIR = Path(tempfile.mkdtemp(prefix="safeher-tests-"))
os.environ["ENV"] = "production"  # skip .env loading
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.db'}"
os.environ["FERNET_SECRET"] = Fernet.generate_key().decode()
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
for _key in ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_PHONE_NUMBER",
             "SMTP_USERNAME", "SMTP_PASSWORD", "FIREBASE_ADMIN_JSON"):
    os.environ.pop(_key, None)

from app.models import database  # noqa: E402
from app.models import *  # noqa: E402,F401,F403
from app.models.user import User  # noqa: E402
from app.services.container import build_services  # noqa: E402
from app.utils.delivery import SendResult  # noqa: E402
from app.utils.exceptions import DeliveryError  # noqa: E402
from app.utils.jwt_utils import issue_user_token  # noqa: E402

database.Base.metadata.create_all(bind=database.engine)

START = datetime(2026, 10, 17, 12, 0, 0)
GRACE = timedelta(minutes=2)


# ── Virtual time ─────────────────────────────────────────────────────────

class FakeClock:
    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class ManualTimer:
    def __init__(self, key, run_at, callback):
        self.key = key
        self.run_at = run_at
        self.callback = callback
        self.cancelled = False
        self.fired = False


class ManualTimers:
    """Timer backend whose callbacks only run when the test calls run_due()."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.timers = []

    def schedule(self, key, run_at, callback):
        timer = ManualTimer(key, run_at, callback)
        self.timers.append(timer)
        return timer

    def cancel(self, handle):
        handle.cancelled = True

    def outstanding(self, key=None):
        return [
            t for t in self.timers
            if not t.cancelled and not t.fired and (key is None or t.key == key)
        ]

    def run_due(self) -> int:
        due = sorted(
            (t for t in self.outstanding() if t.run_at <= self.clock()),
            key=lambda t: t.run_at,
        )
        for timer in due:
            timer.fired = True
            timer.callback()
        return len(due)

    def advance(self, **kwargs) -> int:
        self.clock.advance(**kwargs)
        return self.run_due()


# ── Fake providers ───────────────────────────────────────────────────────

class FakeSender:
    """
    Records every send. Per-destination outcomes: "ok" (default), "fail"
    (ok=False result), or "raise" (DeliveryError).
    """

    channel = "fake"

    def __init__(self):
        self.calls = []
        self.outcomes = {}

    def _result(self, destination):
        outcome = self.outcomes.get(destination, "ok")
        if outcome == "raise":
            raise DeliveryError(self.channel, f"provider rejected {destination}")
        if outcome == "fail":
            return SendResult(ok=False, detail="provider said no")
        return SendResult(ok=True, provider_id=f"{self.channel}-{len(self.calls)}")


class FakeSmsSender(FakeSender):
    channel = "sms"

    def send(self, phone_number, message):
        self.calls.append((phone_number, message))
        return self._result(phone_number)


class FakeEmailSender(FakeSender):
    channel = "email"

    def send(self, address, subject, body):
        self.calls.append((address, subject, body))
        return self._result(address)


class PushRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        return "push-id"


# ── Fixtures ─────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def clean_db():
    with database.engine.begin() as conn:
        for table in reversed(database.Base.metadata.sorted_tables):
            conn.execute(table.delete())
    yield


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timers(clock):
    return ManualTimers(clock)


@pytest.fixture
def sms():
    return FakeSmsSender()


@pytest.fixture
def email():
    return FakeEmailSender()


@pytest.fixture
def push():
    return PushRecorder()


@pytest.fixture
def services(timers, sms, email, push, clock):
    return build_services(
        timers,
        sms_sender=sms,
        email_sender=email,
        push=push,
        clock=clock,
        grace_period=GRACE,
    )


def _create_user(name="Asha Rao", email="asha@example.com", fcm_token=None) -> User:
    db = database.SessionLocal()
    try:
        user = User(name=name, email=email, fcm_token=fcm_token)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    finally:
        db.close()


@pytest.fixture
def user():
    return _create_user()


@pytest.fixture
def make_user():
    return _create_user


@pytest.fixture
def make_contacts(services):
    def _make(user_id, count=3, with_email=True):
        contacts = []
        for i in range(count):
            contacts.append(services.contacts.create(
                user_id=user_id,
                name=f"Contact {i + 1}",
                phone=f"98765{i:05d}",
                email=f"contact{i + 1}@example.com" if with_email else None,
            ))
        return contacts
    return _make


@pytest.fixture
def make_session(services, clock):
    """Persist an active session directly, without arming a timer."""
    def _make(user_id, duration_minutes=10, start_time=None, **kwargs):
        return services.sessions.create(
            user_id=user_id,
            vehicle_type=kwargs.pop("vehicle_type", "cab"),
            duration_minutes=duration_minutes,
            start_time=start_time or clock(),
            **kwargs,
        )
    return _make


@pytest.fixture
def client(services):
    from fastapi.testclient import TestClient
    from app.main import app
    from app.utils.rate_limit_utils import limiter

    limiter.enabled = False
    app.state.services = services
    return TestClient(app)


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {issue_user_token(user.id)}"}
    return _headers

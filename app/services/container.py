# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from dataclasses import dataclass
from datetime import datetime, timedelta

from app import config
from app.models.database import SessionLocal
from app.services.alert_dispatcher import AlertDispatcher
from app.services.alert_store import AlertStore
from app.services.contact_store import ContactStore
from app.services.session_service import SessionService
from app.services.session_store import SessionStore
from app.services.session_watchdog import SessionWatchdog
from app.utils.email_sender import SmtpEmailSender
from app.utils.firebase import send_fcm_push
from app.utils.sms_sender import TwilioSmsSender


@dataclass
class Services:
    sessions: SessionStore
    contacts: ContactStore
    alerts: AlertStore
    dispatcher: AlertDispatcher
    watchdog: SessionWatchdog
    session_service: SessionService


def build_services(
    timers,
    session_factory=SessionLocal,
    sms_sender=None,
    email_sender=None,
    push=send_fcm_push,
    clock=datetime.utcnow,
    grace_period: timedelta = timedelta(seconds=config.ALERT_GRACE_PERIOD_SECONDS),
) -> Services:
    """Wire one instance of every collaborator. Called once per process (and per test)."""
    sessions = SessionStore(session_factory, clock=clock)
    contacts = ContactStore(session_factory, clock=clock)
    alerts = AlertStore(session_factory, clock=clock)

    dispatcher = AlertDispatcher(
        sessions=sessions,
        contacts=contacts,
        alerts=alerts,
        sms_sender=sms_sender or TwilioSmsSender(),
        email_sender=email_sender or SmtpEmailSender(),
        push=push,
        clock=clock,
    )
    watchdog = SessionWatchdog(sessions, dispatcher, timers, grace_period=grace_period, clock=clock)

    return Services(
        sessions=sessions,
        contacts=contacts,
        alerts=alerts,
        dispatcher=dispatcher,
        watchdog=watchdog,
        session_service=SessionService(sessions, watchdog, dispatcher, clock=clock),
    )

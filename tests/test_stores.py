"""Tests for the session, contact and alert stores against a real SQLite database."""
from datetime import timedelta

import pytest

from app.models.enums import AlertReason, AlertStatus, ContactRelationship, SessionStatus
from app.services.alert_records import AlertRecord
from app.utils.alert_message import LocationSnapshot
from app.utils.encryption import decrypt
from app.utils.exceptions import ConflictError, NotFoundError
from app.utils.schedulers.alert_cleaner import clean_expired_alerts

from conftest import START


class TestSessionStore:
    def test_create_computes_deadline(self, services, user):
        session = services.sessions.create(user.id, "bike", duration_minutes=45, start_time=START)
        assert session.scheduled_end_time == START + timedelta(minutes=45)
        assert session.status == SessionStatus.active
        assert session.location_history == []

    def test_rejects_non_positive_duration(self, services, user):
        with pytest.raises(ValueError):
            services.sessions.create(user.id, "bike", duration_minutes=0)

    def test_notes_are_encrypted_at_rest(self, services, user):
        session = services.sessions.create(user.id, "cab", duration_minutes=5, notes="white sedan")
        assert services.sessions.find_by_id(session.id).notes == "white sedan"

    def test_only_one_terminal_transition_wins(self, services, user, make_session):
        session = make_session(user.id)

        assert services.sessions.update_status(session.id, SessionStatus.completed) is True
        assert services.sessions.mark_alert_triggered(session.id, AlertReason.timer_expired, START) is False
        assert services.sessions.find_by_id(session.id).status == SessionStatus.completed

    def test_cannot_transition_back_to_active(self, services, user, make_session):
        session = make_session(user.id)
        with pytest.raises(ValueError):
            services.sessions.update_status(session.id, SessionStatus.active)

    def test_location_updates_build_history(self, services, user, make_session):
        session = make_session(user.id)
        for i in range(3):
            services.sessions.update_location(session.id, LocationSnapshot(latitude=10.0 + i, longitude=20.0))

        updated = services.sessions.find_by_id(session.id)
        assert updated.latitude == 12.0
        assert len(updated.location_history) == 3

    def test_location_history_is_capped(self, services, user, make_session):
        session = make_session(user.id)
        for i in range(5):
            services.sessions.update_location(session.id, LocationSnapshot(latitude=float(i), longitude=0.0), history_limit=3)

        history = services.sessions.find_by_id(session.id).location_history
        assert [point["latitude"] for point in history] == [2.0, 3.0, 4.0]

    def test_location_update_on_ended_session(self, services, user, make_session):
        session = make_session(user.id)
        services.sessions.update_status(session.id, SessionStatus.cancelled)
        with pytest.raises(ConflictError):
            services.sessions.update_location(session.id, LocationSnapshot(latitude=1.0, longitude=1.0))

    def test_deadline_queries_split_on_cutoff(self, services, user, make_user, make_session):
        other = make_user(name="B", email="b@example.com")
        early = make_session(user.id, duration_minutes=5)
        late = make_session(other.id, duration_minutes=60)
        cutoff = START + timedelta(minutes=5)

        assert [s.id for s in services.sessions.find_active_with_deadline_before(cutoff)] == [early.id]
        assert [s.id for s in services.sessions.find_active_with_deadline_after(cutoff)] == [late.id]

    def test_find_for_user_checks_owner(self, services, user, make_user, make_session):
        stranger = make_user(name="C", email="c@example.com")
        session = make_session(user.id)
        with pytest.raises(NotFoundError):
            services.sessions.find_for_user(stranger.id, session.id)


class TestContactStore:
    def test_phone_is_stored_encrypted(self, services, user):
        contact = services.contacts.create(user.id, "Mom", "9876543210", ContactRelationship.family)
        assert contact.encrypted_phone != "9876543210"
        assert decrypt(contact.encrypted_phone) == "9876543210"

    def test_first_contact_becomes_primary(self, services, user, make_contacts):
        first, second = make_contacts(user.id, count=2)
        assert first.is_primary and not second.is_primary

    def test_new_primary_replaces_old(self, services, user, make_contacts):
        first, _ = make_contacts(user.id, count=2)
        third = services.contacts.create(user.id, "Sis", "9000000003", is_primary=True)

        listed = services.contacts.list_active(user.id)
        assert listed[0].id == third.id
        assert [c.is_primary for c in listed].count(True) == 1
        assert services.contacts.get_active(user.id, first.id).is_primary is False

    def test_limit_of_five(self, services, user, make_contacts):
        make_contacts(user.id, count=5)
        with pytest.raises(ConflictError):
            services.contacts.create(user.id, "Sixth", "9000000006")

    def test_duplicate_phone_rejected(self, services, user):
        services.contacts.create(user.id, "Mom", "9876543210")
        with pytest.raises(ConflictError):
            services.contacts.create(user.id, "Also Mom", "98765 43210")

    def test_update_phone_and_name(self, services, user, make_contacts):
        contact, = make_contacts(user.id, count=1)
        updated = services.contacts.update(user.id, contact.id, name="Dad", phone="9111111111")
        assert updated.name == "Dad"
        assert decrypt(updated.encrypted_phone) == "9111111111"

    def test_soft_delete_promotes_next_primary(self, services, user, make_contacts):
        first, second, _ = make_contacts(user.id, count=3)
        services.contacts.soft_delete(user.id, first.id)

        assert services.contacts.count_active(user.id) == 2
        assert services.contacts.get_active(user.id, second.id).is_primary is True
        with pytest.raises(NotFoundError):
            services.contacts.get_active(user.id, first.id)

    def test_deleted_phone_can_be_added_again(self, services, user):
        contact = services.contacts.create(user.id, "Mom", "9876543210")
        services.contacts.soft_delete(user.id, contact.id)
        services.contacts.create(user.id, "Mom", "9876543210")
        assert services.contacts.count_active(user.id) == 1

    def test_soft_delete_all(self, services, user, make_contacts):
        make_contacts(user.id, count=3)
        assert services.contacts.soft_delete_all(user.id) == 3
        assert services.contacts.list_active(user.id) == []


def _record(user_id, session_id, created_at, reason=AlertReason.manual, status=AlertStatus.sent):
    return AlertRecord(
        user_id=user_id,
        session_id=session_id,
        trigger_reason=reason,
        message="help",
        status=status,
        created_at=created_at,
    )


class TestAlertStore:
    def test_expired_alerts_are_hidden_then_purged(self, services, clock, user, make_session):
        session = make_session(user.id)
        old = services.alerts.create(_record(user.id, session.id, START - timedelta(days=31)))
        fresh = services.alerts.create(_record(user.id, session.id, START))

        assert [a.id for a in services.alerts.list_for_user(user.id)] == [fresh.id]
        with pytest.raises(NotFoundError):
            services.alerts.get(user.id, old.id)

        assert clean_expired_alerts(services.alerts) == 1
        assert services.alerts.purge_expired() == 0

    def test_pagination_is_newest_first(self, services, user, make_session):
        session = make_session(user.id)
        ids = [services.alerts.create(_record(user.id, session.id, START - timedelta(minutes=i))).id for i in range(5)]

        page_one = services.alerts.list_for_user(user.id, page=1, limit=2)
        page_three = services.alerts.list_for_user(user.id, page=3, limit=2)

        assert [a.id for a in page_one] == ids[:2]
        assert [a.id for a in page_three] == ids[4:]
        assert services.alerts.count_for_user(user.id) == 5

    def test_stats(self, services, user, make_session):
        session = make_session(user.id)
        services.alerts.create(_record(user.id, session.id, START, AlertReason.manual))
        services.alerts.create(_record(user.id, session.id, START, AlertReason.timer_expired, AlertStatus.partial))
        services.alerts.create(_record(user.id, session.id, START, AlertReason.timer_expired))

        stats = services.alerts.stats_for_user(user.id)

        assert stats["total"] == 3
        assert stats["by_reason"] == {"manual": 1, "timer_expired": 2}
        assert stats["by_status"] == {"sent": 2, "partial": 1}
        assert len(stats["recent"]) == 3

    def test_delete_is_scoped_to_owner(self, services, user, make_user, make_session):
        stranger = make_user(name="D", email="d@example.com")
        session = make_session(user.id)
        alert = services.alerts.create(_record(user.id, session.id, START))

        with pytest.raises(NotFoundError):
            services.alerts.delete(stranger.id, alert.id)
        services.alerts.delete(user.id, alert.id)
        assert services.alerts.count_for_user(user.id) == 0

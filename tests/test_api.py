"""End-to-end tests of the HTTP surface with fake providers and a manual clock."""
from datetime import timedelta

from app.utils.jwt_utils import issue_user_token

from conftest import START


def _start(client, headers, **overrides):
    body = {"vehicle_type": "cab", "vehicle_number": "KA01AB1234", "duration_minutes": 30}
    body.update(overrides)
    return client.post("/sessions/start", json=body, headers=headers)


class TestAuth:
    def test_register_and_me(self, client):
        res = client.post("/auth/register", json={"name": "Asha", "email": "Asha@Example.com"})
        assert res.status_code == 201
        token = res.json()["token"]

        me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["user"]["email"] == "asha@example.com"

    def test_duplicate_email(self, client, user):
        res = client.post("/auth/register", json={"name": "Asha", "email": user.email})
        assert res.status_code == 400

    def test_bad_token(self, client):
        res = client.get("/sessions", headers={"Authorization": "Bearer nope"})
        assert res.status_code == 401

    def test_expired_token(self, client, user):
        token = issue_user_token(user.id, ttl=timedelta(seconds=-1))
        res = client.get("/sessions", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 401
        assert res.json()["detail"] == "Token expired, please sign in again"

    def test_wrong_scheme(self, client):
        res = client.get("/sessions", headers={"Authorization": "Token abc"})
        assert res.status_code == 401


class TestSessionsApi:
    def test_start_stop_flow(self, client, services, user, auth_headers):
        headers = auth_headers(user)

        started = _start(client, headers, location={"latitude": 12.9, "longitude": 77.6})
        assert started.status_code == 201
        session = started.json()["session"]
        assert session["status"] == "active"
        assert session["scheduled_end_time"] == (START + timedelta(minutes=30)).isoformat()
        assert session["last_known_location"]["latitude"] == 12.9
        assert services.watchdog.has_pending(session["id"])

        active = client.get("/sessions/active", headers=headers).json()["session"]
        assert active["id"] == session["id"]

        stopped = client.post(f"/sessions/{session['id']}/stop", headers=headers)
        assert stopped.status_code == 200
        assert stopped.json()["session"]["status"] == "completed"
        assert stopped.json()["session"]["end_reason"] == "user_stopped"
        assert not services.watchdog.has_pending(session["id"])

        again = client.post(f"/sessions/{session['id']}/stop", headers=headers)
        assert again.status_code == 400

    def test_cancel(self, client, user, auth_headers):
        headers = auth_headers(user)
        session_id = _start(client, headers).json()["session"]["id"]

        res = client.post(f"/sessions/{session_id}/stop", json={"cancelled": True}, headers=headers)
        assert res.json()["session"]["status"] == "cancelled"

    def test_one_active_session_per_user(self, client, user, auth_headers):
        headers = auth_headers(user)
        assert _start(client, headers).status_code == 201
        assert _start(client, headers).status_code == 400

    def test_duration_validation(self, client, user, auth_headers):
        headers = auth_headers(user)
        assert _start(client, headers, duration_minutes=0).status_code == 422
        assert _start(client, headers, duration_minutes=24 * 60 + 1).status_code == 422

    def test_location_update_and_history(self, client, user, auth_headers):
        headers = auth_headers(user)
        session_id = _start(client, headers).json()["session"]["id"]

        res = client.post(
            f"/sessions/{session_id}/location",
            json={"latitude": 13.0, "longitude": 77.5, "accuracy": 8.5, "timestamp": "2026-10-17T17:40:00+05:30"},
            headers=headers,
        )
        assert res.status_code == 200
        assert res.json()["session"]["last_known_location"]["timestamp"] == "2026-10-17T12:10:00"

        detail = client.get(f"/sessions/{session_id}", headers=headers).json()["session"]
        assert len(detail["location_history"]) == 1

    def test_other_users_session_is_not_found(self, client, user, make_user, auth_headers):
        session_id = _start(client, auth_headers(user)).json()["session"]["id"]
        stranger = make_user(name="Eve", email="eve@example.com")

        res = client.post(f"/sessions/{session_id}/stop", headers=auth_headers(stranger))
        assert res.status_code == 404

    def test_expired_session_shows_alert(self, client, services, timers, user, make_contacts, auth_headers):
        headers = auth_headers(user)
        make_contacts(user.id, count=2)
        session_id = _start(client, headers, duration_minutes=10).json()["session"]["id"]

        timers.advance(minutes=12)

        session = client.get(f"/sessions/{session_id}", headers=headers).json()["session"]
        assert session["status"] == "alert_triggered"
        assert session["alert_reason"] == "timer_expired"

        alerts = client.get("/alerts", headers=headers).json()
        assert alerts["total"] == 1
        assert alerts["alerts"][0]["status"] == "sent"
        assert len(alerts["alerts"][0]["sent_to"]) == 2

        listed = client.get("/sessions", headers=headers).json()
        assert listed["count"] == 1


class TestContactsApi:
    def test_crud(self, client, user, auth_headers):
        headers = auth_headers(user)

        created = client.post(
            "/contacts",
            json={"name": "Mom", "phone": "9876543210", "relationship": "family", "email": "mom@example.com"},
            headers=headers,
        )
        assert created.status_code == 201
        contact = created.json()["contact"]
        assert contact["phone"] == "9876543210"
        assert contact["is_primary"] is True

        updated = client.put(f"/contacts/{contact['id']}", json={"name": "Mother"}, headers=headers)
        assert updated.json()["contact"]["name"] == "Mother"

        fetched = client.get(f"/contacts/{contact['id']}", headers=headers).json()["contact"]
        assert fetched["phone"] == "9876543210"

        assert client.delete(f"/contacts/{contact['id']}", headers=headers).status_code == 200
        assert client.get(f"/contacts/{contact['id']}", headers=headers).status_code == 404

    def test_phone_must_be_ten_digits(self, client, user, auth_headers):
        res = client.post("/contacts", json={"name": "Mom", "phone": "12345"}, headers=auth_headers(user))
        assert res.status_code == 422

    def test_limit_and_count(self, client, user, make_contacts, auth_headers):
        headers = auth_headers(user)
        make_contacts(user.id, count=5)

        stats = client.get("/contacts/stats/count", headers=headers).json()
        assert stats["count"] == 5 and stats["can_add_more"] is False

        res = client.post("/contacts", json={"name": "Sixth", "phone": "9000000006"}, headers=headers)
        assert res.status_code == 400

    def test_delete_all(self, client, user, make_contacts, auth_headers):
        headers = auth_headers(user)
        make_contacts(user.id, count=3)

        res = client.delete("/contacts", headers=headers)
        assert res.json()["deleted_count"] == 3
        assert client.get("/contacts", headers=headers).json()["count"] == 0


class TestAlertsApi:
    def test_manual_trigger(self, client, services, user, make_contacts, auth_headers, sms):
        headers = auth_headers(user)
        make_contacts(user.id, count=2)
        session_id = _start(client, headers).json()["session"]["id"]

        res = client.post(
            "/alerts/trigger",
            json={"session_id": session_id, "reason": "panic_button", "location": {"latitude": 12.0, "longitude": 77.0}},
            headers=headers,
        )

        assert res.status_code == 201
        alert = res.json()["alert"]
        assert alert["trigger_reason"] == "panic_button"
        assert alert["location"]["latitude"] == 12.0
        assert len(sms.calls) == 2
        assert not services.watchdog.has_pending(session_id)

        session = client.get(f"/sessions/{session_id}", headers=headers).json()["session"]
        assert session["status"] == "alert_triggered"

    def test_trigger_needs_active_session(self, client, user, auth_headers):
        headers = auth_headers(user)
        session_id = _start(client, headers).json()["session"]["id"]
        client.post(f"/sessions/{session_id}/stop", headers=headers)

        res = client.post("/alerts/trigger", json={"session_id": session_id}, headers=headers)
        assert res.status_code == 400

    def test_get_stats_and_delete(self, client, user, auth_headers):
        headers = auth_headers(user)
        session_id = _start(client, headers).json()["session"]["id"]
        alert_id = client.post("/alerts/trigger", json={"session_id": session_id}, headers=headers).json()["alert"]["id"]

        assert client.get(f"/alerts/{alert_id}", headers=headers).status_code == 200

        stats = client.get("/alerts/stats/overview", headers=headers).json()["stats"]
        assert stats["total"] == 1
        assert stats["by_reason"] == {"manual": 1}

        assert client.delete(f"/alerts/{alert_id}", headers=headers).status_code == 200
        assert client.get(f"/alerts/{alert_id}", headers=headers).status_code == 404
        assert client.delete("/alerts", headers=headers).json()["deleted_count"] == 0


class TestHealth:
    def test_health(self, client):
        res = client.get("/health")
        assert res.status_code == 200
        assert res.json()["status"] == "ok"
        assert res.json()["details"]["db_connection"] is True

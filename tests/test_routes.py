import pytest

from conftest import PASSWORD, at
from models.audit_log import AuditLog
from models.session import Session
from security.csrf import CSRF_COOKIE, CSRF_HEADER


def _login(http, username):
    resp = http.post("/auth/login", json={"username": username, "password": PASSWORD})
    assert resp.status_code == 200, resp.get_json()
    return {CSRF_HEADER: http.get_cookie(CSRF_COOKIE).value}


@pytest.fixture
def studio(app, provider):
    http = app.test_client()
    return http, _login(http, "studio")


@pytest.fixture
def published_slot(studio, day):
    http, headers = studio
    resp = http.post("/services", json={"name": "Yoga", "price": "10.00", "capacity": 1}, headers=headers)
    assert resp.status_code == 201
    service_id = resp.get_json()["id"]

    resp = http.post(
        f"/services/{service_id}/slots",
        json={"start_time": at(day, 9).isoformat(), "end_time": at(day, 10).isoformat() + "Z"},
        headers=headers,
    )
    assert resp.status_code == 201
    return resp.get_json()


def test_health_and_security_headers(app):
    resp = app.test_client().get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}
    assert resp.headers["X-Frame-Options"] == "DENY"


def test_register_login_and_me(app):
    http = app.test_client()
    resp = http.post("/auth/register", json={"username": "dana", "email": "dana@example.com", "password": PASSWORD})
    assert resp.status_code == 201
    assert resp.get_json()["user"]["roles"] == ["CLIENT"]

    _login(http, "dana@example.com")
    me = http.get("/auth/me").get_json()
    assert me["username"] == "dana"


def test_bad_credentials_are_rejected(app, alice):
    resp = app.test_client().post("/auth/login", json={"username": "alice", "password": "wrong"})
    assert resp.status_code == 401
    assert AuditLog.query.filter_by(action="LOGIN_FAIL").count() == 1


def test_booking_flow_over_http(app, published_slot, alice, bob):
    assert published_slot["status"] == "AVAILABLE"
    assert published_slot["seats_left"] == 1
    assert published_slot["price"] == "10.00"

    alice_http = app.test_client()
    alice_headers = _login(alice_http, "alice")
    resp = alice_http.post("/bookings", json={"slot_id": published_slot["id"]}, headers=alice_headers)
    assert resp.status_code == 201
    booking = resp.get_json()
    assert booking["status"] == "CONFIRMED"
    assert booking["slot_id"] == published_slot["id"]

    bob_http = app.test_client()
    bob_headers = _login(bob_http, "bob")
    resp = bob_http.post("/bookings", json={"slot_id": published_slot["id"]}, headers=bob_headers)
    assert resp.status_code == 409
    assert "not available" in resp.get_json()["error"]
    assert AuditLog.query.filter_by(action="REQUEST_REJECTED").count() == 1

    slot = bob_http.get(f"/slots/{published_slot['id']}").get_json()
    assert slot["status"] == "FULL"
    assert slot["seats_left"] == 0

    resp = bob_http.get(f"/bookings/{booking['id']}")
    assert resp.status_code == 403

    resp = alice_http.post(f"/bookings/{booking['id']}/cancel", headers=alice_headers)
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "CANCELLED_BY_CLIENT"

    mine = alice_http.get("/bookings/me?status=CANCELLED_BY_CLIENT").get_json()
    assert [b["id"] for b in mine] == [booking["id"]]


def test_state_changes_need_csrf_and_a_session(app, published_slot, alice):
    resp = app.test_client().post("/bookings", json={"slot_id": published_slot["id"]})
    assert resp.status_code == 401

    http = app.test_client()
    _login(http, "alice")
    resp = http.post("/bookings", json={"slot_id": published_slot["id"]})
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "CSRF validation failed"


def test_malformed_ids_and_times(app, studio):
    http, headers = studio
    assert http.get("/slots/not-a-uuid").status_code == 400
    assert http.get("/slots/00000000-0000-4000-8000-000000000000").status_code == 404

    service_id = http.post("/services", json={"name": "Spin"}, headers=headers).get_json()["id"]
    resp = http.post(
        f"/services/{service_id}/slots",
        json={"start_time": "2026-13-40T25:00:00", "end_time": "2026-01-01T10:00:00"},
        headers=headers,
    )
    assert resp.status_code == 400


def test_reservations_over_http(app, studio, alice, day):
    http, headers = studio
    service_id = http.post("/services", json={"name": "Sauna", "price": "25"}, headers=headers).get_json()["id"]

    alice_http = app.test_client()
    alice_headers = _login(alice_http, "alice")
    body = {"service_id": service_id, "start_time": at(day, 18).isoformat(), "end_time": at(day, 19).isoformat()}
    resp = alice_http.post("/reservations", json=body, headers=alice_headers)
    assert resp.status_code == 201
    reservation = resp.get_json()
    assert reservation["status"] == "PENDING"
    assert reservation["price"] == "25.00"

    resp = alice_http.post("/reservations", json=body, headers=alice_headers)
    assert resp.status_code == 409

    resp = http.post(f"/reservations/{reservation['id']}/confirm", headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "CONFIRMED"

    resp = alice_http.delete(f"/reservations/{reservation['id']}", headers=alice_headers)
    assert resp.status_code == 409

    listed = http.get(f"/reservations/service/{service_id}").get_json()
    assert [r["id"] for r in listed] == [reservation["id"]]


def test_admin_endpoints_require_admin(app, admin, alice):
    alice_http = app.test_client()
    _login(alice_http, "alice")
    assert alice_http.get("/admin/users").status_code == 403
    assert alice_http.get("/admin/audit-logs").status_code == 403

    admin_http = app.test_client()
    _login(admin_http, "root")
    users = admin_http.get("/admin/users").get_json()
    assert {u["username"] for u in users} == {"root", "alice"}

    logs = admin_http.get("/admin/audit-logs?action=LOGIN_SUCCESS").get_json()
    assert len(logs) == 2


def test_provider_search_is_public_and_hides_private_fields(app, provider, alice):
    resp = app.test_client().get("/providers?search=stu")
    assert resp.status_code == 200
    assert resp.get_json() == [{"id": provider.id, "public_id": provider.public_id, "username": "studio"}]

    assert app.test_client().get("/providers?search=alice").get_json() == []


def test_string_user_ids_are_coerced(app, published_slot, alice):
    http = app.test_client()
    headers = _login(http, "alice")

    resp = http.post("/bookings", json={"slot_id": published_slot["id"], "client_id": "abc"}, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "client_id must be a user id."

    resp = http.post(
        "/bookings",
        json={"slot_id": published_slot["id"], "client_id": str(alice.id)},
        headers=headers,
    )
    assert resp.status_code == 201
    assert resp.get_json()["client_id"] == alice.id


def test_csrf_failure_is_audited(app, alice):
    http = app.test_client()
    _login(http, "alice")
    resp = http.post("/auth/logout", headers={CSRF_HEADER: "forged"})
    assert resp.status_code == 403

    row = AuditLog.query.filter_by(action="REQUEST_REJECTED").one()
    assert row.user_id == alice.id
    assert row.details["error"] == "AccessDeniedError"


def test_logout_stamps_the_revocation(app, alice):
    http = app.test_client()
    headers = _login(http, "alice")
    assert http.post("/auth/logout", headers=headers).status_code == 200

    sess = Session.query.filter_by(user_id=alice.id).one()
    assert sess.revoked is True
    assert sess.revoked_at is not None
    assert http.get("/auth/me").status_code == 401


def test_audit_logs_filter_by_entity(app, admin, published_slot):
    http = app.test_client()
    _login(http, "root")

    logs = http.get("/admin/audit-logs?entity=time_slot").get_json()
    assert [(r["action"], r["entity_id"]) for r in logs] == [("SLOT_CREATE", published_slot["id"])]

    resp = http.get("/admin/audit-logs?entity=court")
    assert resp.status_code == 400

#!/usr/bin/env python3
"""
Test script for login session handling.
"""
import json
import os
import tempfile
import time

from attendance_portal.auth import SessionManager, SessionStore, LOGIN_ROUTE
from attendance_portal.errors import ApiError, UnauthorizedError, ValidationError
from attendance_portal.testing import FakeResponse, FakeSession
from attendance_portal.utils.concurrency import run_all_settled

TEACHER_ME = {
    "id": 11, "email": "teacher@uni.edu", "first_name": "Mehmet", "last_name": "Kaya",
    "role": "TEACHER", "is_active": True, "teacher_id": 7,
}
STUDENT_ME = {
    "id": 12, "email": "ali@uni.edu", "first_name": "Ali", "last_name": "Demir",
    "role": "student", "student_id": 31,
}


def make_manager(routes=None, saved=None):
    path = os.path.join(tempfile.mkdtemp(), "session.json")
    if saved is not None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(saved, f)
    session = FakeSession(routes)
    return SessionManager(store=SessionStore(path), session=session), session, path


def login_routes(me=TEACHER_ME):
    return {
        "POST /auth/login": FakeResponse(200, {"access_token": "abc", "token_type": "bearer"}),
        "GET /auth/me": FakeResponse(200, me),
    }


def test_invalid_input_sends_nothing():
    manager, session, _ = make_manager(login_routes())
    for email, password in [("", "secret1"), ("bad", "secret1"), ("teacher@uni.edu", "123")]:
        try:
            manager.login(email, password)
            assert False, "expected ValidationError"
        except ValidationError:
            pass
    assert session.calls == []
    assert not manager.is_authenticated


def test_teacher_login():
    manager, session, path = make_manager(login_routes())
    route = manager.login("teacher@uni.edu", "secret1")

    assert route == "teacher_dashboard"
    assert len(session.calls_to("POST", "/auth/login")) == 1
    me_call = session.calls_to("GET", "/auth/me")[0]
    assert me_call["headers"]["Authorization"] == "Bearer abc"
    assert manager.is_authenticated
    assert manager.teacher_id == 7
    assert manager.student_id is None

    with open(path, encoding="utf-8") as f:
        assert json.load(f)["token"] == "abc"
    print("✓ Teacher login works")


def test_student_login_lands_on_student_dashboard():
    manager, _, _ = make_manager(login_routes(STUDENT_ME))
    assert manager.login("ali@uni.edu", "secret1") == "student_dashboard"
    assert manager.role == "STUDENT"
    assert manager.student_id == 31
    assert manager.teacher_id is None


def test_rejected_login_leaves_no_session():
    routes = {"POST /auth/login": FakeResponse(401, {"detail": "Incorrect email or password"})}
    manager, session, _ = make_manager(routes)
    try:
        manager.login("teacher@uni.edu", "wrongpass")
        assert False, "expected UnauthorizedError"
    except UnauthorizedError as e:
        assert e.message == "Incorrect email or password"
    assert manager.token is None
    assert session.calls_to("GET", "/auth/me") == []


def test_unknown_role_is_rejected():
    manager, _, _ = make_manager(login_routes(dict(TEACHER_ME, role="ADMIN")))
    try:
        manager.login("teacher@uni.edu", "secret1")
        assert False, "expected ValidationError"
    except ValidationError as e:
        assert "role" in e.message
    assert manager.token is None and manager.user is None


def test_missing_token_is_rejected():
    routes = {"POST /auth/login": FakeResponse(200, {"token_type": "bearer"})}
    manager, session, _ = make_manager(routes)
    try:
        manager.login("teacher@uni.edu", "secret1")
        assert False, "expected ValidationError"
    except ValidationError:
        pass
    assert len(session.calls) == 1


def test_restore_from_saved_token():
    saved = {"token": "abc", "api_url": "http://example:9000", "language": "en", "theme": "dark"}
    manager, session, _ = make_manager({"GET /auth/me": FakeResponse(200, TEACHER_ME)}, saved)
    assert manager.api_url == "http://example:9000"
    assert manager.language == "en" and manager.theme == "dark"
    assert manager.restore()
    assert session.calls[0]["url"] == "http://example:9000/api/auth/me"
    assert manager.landing_route == "teacher_dashboard"


def test_restore_with_expired_token_clears_session():
    saved = {"token": "old"}
    manager, _, path = make_manager({"GET /auth/me": FakeResponse(401, {"detail": "expired"})}, saved)
    assert not manager.restore()
    assert manager.token is None
    assert manager.landing_route == LOGIN_ROUTE
    with open(path, encoding="utf-8") as f:
        assert json.load(f)["token"] is None


def test_unauthorized_response_clears_session():
    routes = login_routes()
    routes["GET /courses/"] = FakeResponse(401, {"detail": "Token expired"})
    manager, _, _ = make_manager(routes)
    manager.login("teacher@uni.edu", "secret1")
    try:
        manager.client.get("/courses/")
        assert False, "expected UnauthorizedError"
    except UnauthorizedError:
        pass
    assert not manager.is_authenticated


class SlowStore(SessionStore):
    """Store that holds each write open long enough for threads to overlap."""

    def __init__(self, path):
        super().__init__(path)
        self.active = 0
        self.max_active = 0
        self.writes = 0

    def _write(self, data):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        time.sleep(0.005)
        super()._write(data)
        self.writes += 1
        self.active -= 1


def test_concurrent_unauthorized_responses_write_one_at_a_time():
    routes = login_routes()
    for course_id in range(1, 7):
        routes[f"GET /courses/{course_id}/attendance"] = FakeResponse(401, {"detail": "Token expired"})
    path = os.path.join(tempfile.mkdtemp(), "session.json")
    store = SlowStore(path)
    manager = SessionManager(store=store, session=FakeSession(routes))
    manager.login("teacher@uni.edu", "secret1")

    outcomes = run_all_settled(lambda course_id: manager.client.get(f"/courses/{course_id}/attendance"),
                               range(1, 7))
    assert all(isinstance(outcome.error, UnauthorizedError) for outcome in outcomes)
    run_all_settled(lambda _: store.save({"token": None, "theme": "dark"}), range(6))

    assert not manager.is_authenticated
    assert store.writes >= 7
    assert store.max_active == 1
    with open(path, encoding="utf-8") as f:
        saved = json.load(f)
    assert saved["token"] is None
    print("✓ Session file writes never overlap")


def test_logout_keeps_preferences():
    manager, _, path = make_manager(login_routes())
    manager.login("teacher@uni.edu", "secret1")
    manager.set_language("en")
    manager.set_api_url("http://other:8000/")
    assert manager.logout() == LOGIN_ROUTE
    assert not manager.is_authenticated
    with open(path, encoding="utf-8") as f:
        saved = json.load(f)
    assert saved["language"] == "en"
    assert saved["api_url"] == "http://other:8000"


def test_update_profile_reloads_user():
    routes = login_routes()
    routes["PUT /auth/me"] = FakeResponse(200, {})
    manager, session, _ = make_manager(routes)
    manager.login("teacher@uni.edu", "secret1")
    session.routes["GET /auth/me"] = FakeResponse(200, dict(TEACHER_ME, first_name="Ahmet"))

    user = manager.update_profile(" Ahmet ", "Kaya")
    assert user.first_name == "Ahmet"
    assert session.calls_to("PUT", "/auth/me")[0]["json"] == {"first_name": "Ahmet", "last_name": "Kaya"}

    try:
        manager.update_profile("", "Kaya")
        assert False, "expected ValidationError"
    except ValidationError as e:
        assert e.field == "first_name"


def test_password_reset():
    manager, session, _ = make_manager({"POST /password/reset": FakeResponse(200, {"message": "sent"})})
    manager.request_password_reset("teacher@uni.edu")
    assert session.calls[0]["json"] == {"email": "teacher@uni.edu"}

    session.routes["POST /password/reset"] = FakeResponse(404, {"detail": "User not found"})
    try:
        manager.request_password_reset("nobody@uni.edu")
        assert False, "expected ApiError"
    except ApiError as e:
        assert e.message == "User not found"


if __name__ == "__main__":
    print("Testing session handling...")
    test_invalid_input_sends_nothing()
    test_teacher_login()
    test_student_login_lands_on_student_dashboard()
    test_rejected_login_leaves_no_session()
    test_unknown_role_is_rejected()
    test_missing_token_is_rejected()
    test_restore_from_saved_token()
    test_restore_with_expired_token_clears_session()
    test_unauthorized_response_clears_session()
    test_concurrent_unauthorized_responses_write_one_at_a_time()
    test_logout_keeps_preferences()
    test_update_profile_reloads_user()
    test_password_reset()
    print("\n✅ Session tests passed!")

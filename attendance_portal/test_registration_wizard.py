#!/usr/bin/env python3
"""
Test script for the student registration wizard.
"""
from attendance_portal.api import ApiClient
from attendance_portal.api.models import Course
from attendance_portal.errors import PortalError, ValidationError
from attendance_portal.registration import RegistrationWizard, StepStatus, FormStep, COURSE_REQUIRED
from attendance_portal.registration.wizard import ENROLLMENT_FAILED
from attendance_portal.testing import FakeResponse, FakeSession

INFO = {
    "first_name": "Ayşe", "last_name": "Yılmaz", "student_number": "2021001",
    "department": "Computer Engineering", "email": "ayse@uni.edu", "password": "secret1",
}
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def happy_routes():
    return {
        "GET /courses/": FakeResponse(200, [
            {"id": 1, "code": "CS101", "name": "Intro to Programming"},
            {"id": 2, "code": "CS202", "name": "Data Structures"},
        ]),
        "POST /auth/register": FakeResponse(200, {"id": 50, "student_id": 42}),
        "POST /students/42/face": FakeResponse(200, {"message": "ok"}),
        "POST /courses/1/students": FakeResponse(200, {}),
        "POST /courses/2/students": FakeResponse(200, {}),
    }


def make_wizard(routes, photo=True, course_ids=(1, 2)):
    session = FakeSession(routes)
    wizard = RegistrationWizard(ApiClient(base_url="http://backend", session=session))
    wizard.set_info(INFO)
    if photo:
        wizard.capture.accept_upload("face.png", PNG_BYTES, "image/png")
    for course_id in course_ids:
        wizard.toggle_course(course_id)
    return wizard, session


def test_missing_photo_sends_nothing():
    wizard, session = make_wizard(happy_routes(), photo=False)
    try:
        wizard.submit()
        assert False, "expected ValidationError"
    except ValidationError as e:
        assert e.field == "photo"
    assert session.calls == []
    assert wizard.error


def test_missing_course_sends_nothing():
    wizard, session = make_wizard(happy_routes(), course_ids=())
    try:
        wizard.submit()
        assert False, "expected ValidationError"
    except ValidationError as e:
        assert e.message == COURSE_REQUIRED
    assert session.calls == []


def test_form_steps():
    wizard, _ = make_wizard(happy_routes(), photo=False)
    assert wizard.next_step() == FormStep.PHOTO
    try:
        wizard.next_step()
        assert False, "expected ValidationError"
    except ValidationError:
        pass
    wizard.capture.accept_upload("face.png", PNG_BYTES, "image/png")
    assert wizard.next_step() == FormStep.COURSES
    assert wizard.previous_step() == FormStep.PHOTO
    wizard.toggle_course(1)
    wizard.toggle_course(1)
    assert wizard.selected_course_ids == []


def test_full_registration():
    wizard, session = make_wizard(happy_routes())
    assert wizard.load_courses()[0].code == "CS101"

    assert wizard.submit() == 42
    assert wizard.success
    assert all(status == StepStatus.SUCCESS for status in wizard.statuses.values())

    register = session.calls_to("POST", "/auth/register")[0]["json"]
    assert register["role"] == "STUDENT"
    assert register["student_number"] == "2021001"
    face = session.calls_to("POST", "/students/42/face")[0]
    assert face["files"] == {"file": ("face.png", PNG_BYTES, "image/png")}
    assert session.calls_to("POST", "/courses/1/students")[0]["json"] == {"student_id": 42}
    assert len(session.calls_to("POST", "/courses/2/students")) == 1
    print("✓ Registration completes all three steps")


def test_nested_student_id():
    routes = happy_routes()
    routes["POST /auth/register"] = FakeResponse(200, {"id": 50, "student": {"id": 42}})
    wizard, _ = make_wizard(routes, course_ids=(1,))
    assert wizard.submit() == 42


def test_missing_student_id_stops_before_photo():
    routes = happy_routes()
    routes["POST /auth/register"] = FakeResponse(200, {"id": 50})
    wizard, session = make_wizard(routes)
    try:
        wizard.submit()
        assert False, "expected PortalError"
    except PortalError:
        pass
    assert wizard.statuses["register"] == StepStatus.ERROR
    assert session.calls_to("POST", "/students/42/face") == []


def test_photo_failure_keeps_student_and_never_enrolls():
    routes = happy_routes()
    routes["POST /students/42/face"] = FakeResponse(400, {"detail": "No face found in the photo"})
    wizard, session = make_wizard(routes)
    try:
        wizard.submit()
        assert False, "expected PortalError"
    except PortalError as e:
        assert e.message == "No face found in the photo"

    assert wizard.student_id == 42
    assert wizard.statuses == {
        "register": StepStatus.SUCCESS, "face": StepStatus.ERROR, "enroll": StepStatus.IDLE,
    }
    assert wizard.failed_step == "face"
    assert wizard.error == "No face found in the photo"
    assert session.calls_to("POST", "/courses/1/students") == []

    # Retry resumes at the photo upload without registering again
    session.routes["POST /students/42/face"] = FakeResponse(200, {})
    assert wizard.retry() == 42
    assert len(session.calls_to("POST", "/auth/register")) == 1
    assert len(session.calls_to("POST", "/students/42/face")) == 2
    assert wizard.success


def test_partial_enrollment_failure_and_retry():
    routes = happy_routes()
    routes["POST /courses/2/students"] = FakeResponse(400, {"detail": "Already enrolled"})
    wizard, session = make_wizard(routes)
    wizard.load_courses()
    try:
        wizard.submit()
        assert False, "expected PortalError"
    except PortalError as e:
        assert e.message.startswith(ENROLLMENT_FAILED)
        assert "CS202: Already enrolled" in e.message
        assert "CS101" not in e.message

    assert wizard.failed_step == "enroll"
    assert wizard.pending_course_ids == [2]

    session.routes["POST /courses/2/students"] = FakeResponse(200, {})
    wizard.retry()
    assert len(session.calls_to("POST", "/courses/1/students")) == 1
    assert len(session.calls_to("POST", "/courses/2/students")) == 2
    assert wizard.pending_course_ids == []
    assert wizard.success


def test_retry_follows_changed_course_selection():
    routes = happy_routes()
    routes["POST /courses/2/students"] = FakeResponse(400, {"detail": "Course is full"})
    routes["POST /courses/3/students"] = FakeResponse(200, {})
    wizard, session = make_wizard(routes)
    try:
        wizard.submit()
        assert False, "expected PortalError"
    except PortalError:
        pass

    wizard.toggle_course(2)
    wizard.toggle_course(3)
    assert wizard.selected_course_ids == [1, 3]
    wizard.retry()

    assert len(session.calls_to("POST", "/auth/register")) == 1
    assert len(session.calls_to("POST", "/courses/1/students")) == 1
    assert len(session.calls_to("POST", "/courses/2/students")) == 1
    assert len(session.calls_to("POST", "/courses/3/students")) == 1
    assert sorted(wizard.enrolled_course_ids) == [1, 3]
    assert wizard.pending_course_ids == []
    assert wizard.success
    print("✓ Retry enrolls the current course selection")


def test_retry_with_no_course_selected():
    routes = happy_routes()
    routes["POST /courses/2/students"] = FakeResponse(400, {"detail": "Course is full"})
    wizard, session = make_wizard(routes, course_ids=(2,))
    try:
        wizard.submit()
        assert False, "expected PortalError"
    except PortalError:
        pass

    wizard.toggle_course(2)
    try:
        wizard.retry()
        assert False, "expected ValidationError"
    except ValidationError as e:
        assert e.message == COURSE_REQUIRED
    assert len(session.calls_to("POST", "/courses/2/students")) == 1
    assert wizard.failed_step == "enroll"


def test_reset_clears_everything():
    wizard, _ = make_wizard(happy_routes())
    wizard.submit()
    wizard.reset()
    assert wizard.form_step == FormStep.INFO
    assert wizard.info == {} and wizard.selected_course_ids == []
    assert wizard.student_id is None and not wizard.success
    assert not wizard.capture.has_photo


if __name__ == "__main__":
    print("Testing registration wizard...")
    test_missing_photo_sends_nothing()
    test_missing_course_sends_nothing()
    test_form_steps()
    test_full_registration()
    test_nested_student_id()
    test_missing_student_id_stops_before_photo()
    test_photo_failure_keeps_student_and_never_enrolls()
    test_partial_enrollment_failure_and_retry()
    test_retry_follows_changed_course_selection()
    test_retry_with_no_course_selected()
    test_reset_clears_everything()
    print("\n✅ Registration wizard tests passed!")

#!/usr/bin/env python3
"""
Test script for course management, enrollment and the student list.
"""
from attendance_portal.api import ApiClient
from attendance_portal.api.models import Course, Student
from attendance_portal.courses import service as courses
from attendance_portal.errors import ValidationError
from attendance_portal.students import service as students
from attendance_portal.testing import FakeResponse, FakeSession

FORM = {
    "code": " CS101 ",
    "name": "Intro to Programming",
    "semester": "2024 Spring",
    "description": "",
    "lesson_times": [
        {"day": "monday", "start_time": "09:00", "end_time": "09:50"},
        {"day": "WEDNESDAY", "start_time": "13:00:00", "end_time": "13:50:00"},
    ],
}


def make_client(routes=None):
    session = FakeSession(routes)
    return ApiClient(base_url="http://backend", session=session), session


def expect_field(data, field, teacher_id=7):
    try:
        courses.build_course_payload(data, teacher_id)
    except ValidationError as e:
        assert e.field == field, e.field
        return e
    raise AssertionError("expected ValidationError")


def test_payload():
    payload = courses.build_course_payload(FORM, 7)
    assert payload["code"] == "CS101"
    assert payload["teacher_id"] == 7
    assert payload["description"] is None
    assert payload["lesson_times"] == [
        {"day": "MONDAY", "start_time": "09:00", "end_time": "09:50", "lesson_number": 1},
        {"day": "WEDNESDAY", "start_time": "13:00", "end_time": "13:50", "lesson_number": 2},
    ]


def test_payload_validation():
    expect_field(dict(FORM, code="CS"), "code")
    expect_field(dict(FORM, name="Math"), "name")
    expect_field(dict(FORM, semester="2024"), "semester")
    expect_field(dict(FORM, description="x" * 501), "description")
    expect_field(dict(FORM, lesson_times=[]), "lesson_times")
    expect_field(dict(FORM, lesson_times=[{"day": "FUNDAY", "start_time": "09:00", "end_time": "10:00"}]),
                 "lesson_times")
    expect_field(dict(FORM, lesson_times=[{"day": "MONDAY", "start_time": "9:00", "end_time": "10:00"}]),
                 "lesson_times")
    error = expect_field(dict(FORM, lesson_times=[{"day": "MONDAY", "start_time": "10:00", "end_time": "09:00"}]),
                         "lesson_times")
    assert "after start" in error.message

    try:
        courses.build_course_payload(FORM, None)
        assert False, "expected ValidationError"
    except ValidationError as e:
        assert "Teacher" in e.message


def test_create_and_update():
    created = {"id": 5, "code": "CS101", "name": "Intro to Programming", "semester": "2024 Spring",
               "teacher_id": 7, "lesson_times": FORM["lesson_times"]}
    client, session = make_client({
        "POST /courses/": FakeResponse(200, created),
        "PUT /courses/5": FakeResponse(200, dict(created, name="Programming I")),
        "DELETE /courses/5": FakeResponse(204),
    })
    course = courses.create_course(client, FORM, 7)
    assert course.id == 5
    assert course.lesson_times[1].day == "WEDNESDAY"
    assert session.calls_to("POST", "/courses/")[0]["json"]["teacher_id"] == 7

    form = courses.course_form_data(course)
    form["name"] = "Programming I"
    assert courses.update_course(client, 5, form, 7).name == "Programming I"
    courses.delete_course(client, 5)
    assert len(session.calls_to("DELETE", "/courses/5")) == 1


def test_invalid_course_sends_nothing():
    client, session = make_client()
    try:
        courses.create_course(client, dict(FORM, code=""), 7)
        assert False, "expected ValidationError"
    except ValidationError:
        pass
    assert session.calls == []


def test_available_courses_and_enroll():
    all_courses = [Course(id=3, code="MATH1", name="Calculus"), Course(id=1, code="CS101", name="Intro"),
                   Course(id=2, code="BIO10", name="Biology")]
    enrolled = [Course(id=1, code="CS101", name="Intro")]
    assert [c.code for c in courses.available_courses(all_courses, enrolled)] == ["BIO10", "MATH1"]

    client, session = make_client({"POST /courses/2/students": FakeResponse(200, {})})
    courses.enroll(client, 2, 9)
    assert session.calls[0]["json"] == {"student_id": 9}
    try:
        courses.enroll(client, 2, None)
        assert False, "expected ValidationError"
    except ValidationError:
        pass


def student(sid, first, last, number, department, photo=None):
    return Student.from_dict({
        "id": sid, "student_number": number, "department": department, "face_photo_url": photo,
        "user": {"id": sid + 100, "first_name": first, "last_name": last,
                 "email": f"{first.lower()}@uni.edu", "role": "STUDENT"},
    })


def test_student_filters():
    items = [
        student(1, "Zeynep", "Ak", "2021005", "Physics"),
        student(2, "Ali", "Demir", "2021002", "Computer Engineering", "/faces/2.jpg"),
        student(3, "Burak", "Can", "2021003", "Computer Engineering"),
    ]
    assert students.departments(items) == ["Computer Engineering", "Physics"]
    assert [s.id for s in students.filter_students(items)] == [2, 3, 1]
    assert [s.id for s in students.filter_students(items, department="Computer Engineering")] == [2, 3]
    assert [s.id for s in students.filter_students(items, search="zeynep@")] == [1]
    assert [s.id for s in students.filter_students(items, search="2021003")] == [3]

    frame = students.students_frame(items)
    assert list(frame["Face Photo"]) == ["No", "Yes", "No"]


def test_delete_student():
    client, session = make_client({"DELETE /students/3": FakeResponse(204)})
    students.delete_student(client, 3)
    assert session.calls[0]["method"] == "DELETE"


if __name__ == "__main__":
    print("Testing courses and students...")
    test_payload()
    test_payload_validation()
    test_create_and_update()
    test_invalid_course_sends_nothing()
    test_available_courses_and_enroll()
    test_student_filters()
    test_delete_student()
    print("\n✅ Course and student tests passed!")

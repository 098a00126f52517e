#!/usr/bin/env python3
"""
Test script for dashboard loading and statistics.
"""
from datetime import datetime

from attendance_portal.api import ApiClient, RequestScope
from attendance_portal.api.models import Course
from attendance_portal.dashboard import (
    load_teacher_dashboard, load_student_dashboard, teacher_summary, course_attendance_frame,
    emotion_frame, weekly_schedule, upcoming_lessons, student_summary, student_course_rates,
    recent_entries
)
from attendance_portal.errors import RequestCancelled
from attendance_portal.testing import FakeResponse, FakeSession

COURSES = [
    {"id": 1, "code": "CS101", "name": "Intro to Programming",
     "lesson_times": [{"day": "MONDAY", "start_time": "09:00", "end_time": "09:50"}]},
    {"id": 2, "code": "CS202", "name": "Data Structures",
     "lesson_times": [{"day": "WEDNESDAY", "start_time": "13:00", "end_time": "13:50"}]},
    {"id": 3, "code": "CS303", "name": "Algorithms",
     "lesson_times": [{"day": "MONDAY", "start_time": "08:00", "end_time": "08:50"}]},
]


def make_client(routes):
    session = FakeSession(routes)
    return ApiClient(base_url="http://backend", session=session), session


def teacher_routes():
    return {
        "GET /teachers/7/courses": FakeResponse(200, COURSES),
        "GET /courses/1/attendance": FakeResponse(200, [
            {"id": 10, "date": "2024-03-04", "lesson_number": 1, "recognized_students": 8,
             "total_students": 10, "emotion_statistics": {"happy": 5, "neutral": 3}},
            {"id": 11, "date": "2024-03-11", "lesson_number": 1, "recognized_students": 6,
             "total_students": 10, "emotion_statistics": {"happy": 2, "sad": 1}},
        ]),
        "GET /courses/2/attendance": FakeResponse(500, {"detail": "boom"}),
        "GET /courses/3/attendance": FakeResponse(200, []),
    }


def test_teacher_dashboard_with_failed_course():
    client, session = make_client(teacher_routes())
    data = load_teacher_dashboard(client, 7)

    assert len(data.courses) == 3
    assert data.failed_course_ids == [2]
    assert sorted(data.records) == [1, 3]
    assert len(session.calls) == 4

    summary = teacher_summary(data)
    assert summary == {
        "total_courses": 3, "total_sessions": 2, "average_attendance": 70, "failed_courses": 1,
    }
    print("✓ Teacher dashboard survives a failed course")


def test_teacher_frames():
    client, _ = make_client(teacher_routes())
    data = load_teacher_dashboard(client, 7)

    frame = course_attendance_frame(data)
    assert list(frame["Course"]) == ["CS101", "CS303"]
    assert list(frame["Sessions"]) == [2, 0]
    assert frame["Attendance %"].iloc[0] == 70

    emotions = emotion_frame(data)
    assert list(emotions.index) == ["CS101"]
    assert list(emotions.columns) == ["happy", "neutral", "sad"]
    assert emotions.loc["CS101", "happy"] == 7


def test_cancelled_dashboard_raises():
    client, _ = make_client(teacher_routes())
    scope = RequestScope()
    token = scope.begin(7)
    scope.begin(8)
    try:
        load_teacher_dashboard(client, 7, cancel_token=token)
        assert False, "expected RequestCancelled"
    except RequestCancelled:
        pass


def test_schedule_and_upcoming():
    courses = [Course.from_dict(c) for c in COURSES]
    schedule = weekly_schedule(courses)
    assert [s["course"] for s in schedule["MONDAY"]] == ["CS303", "CS101"]
    assert schedule["FRIDAY"] == []

    # Monday 08:30: CS303 already started, CS101 is next
    now = datetime(2024, 3, 4, 8, 30)
    lessons = upcoming_lessons(courses, now=now, limit=2)
    assert [l["course"] for l in lessons] == ["CS101", "CS202"]
    assert lessons[0]["starts_at"] == datetime(2024, 3, 4, 9, 0)
    assert lessons[1]["starts_at"] == datetime(2024, 3, 6, 13, 0)

    wrapped = upcoming_lessons(courses, now=datetime(2024, 3, 6, 14, 0))
    assert wrapped[0]["starts_at"] == datetime(2024, 3, 11, 8, 0)


def test_student_dashboard():
    client, _ = make_client({
        "GET /students/9/courses": FakeResponse(200, COURSES[:2]),
        "GET /attendance/course/1/student/9": FakeResponse(200, [
            {"id": 10, "date": "2024-03-04", "lesson_number": 1, "status": "PRESENT"},
            {"id": 11, "date": "2024-03-11", "lesson_number": 1, "status": "LATE"},
            {"id": 12, "date": "2024-03-18", "lesson_number": 1, "status": "ABSENT"},
            {"id": 13, "date": "2024-03-25", "lesson_number": 1, "status": "EXCUSED"},
        ]),
        "GET /attendance/course/2/student/9": FakeResponse(404, {"detail": "Not found"}),
    })
    data = load_student_dashboard(client, 9)
    assert data.failed_course_ids == [2]

    summary = student_summary(data)
    assert summary["attended"] == 2
    assert summary["total_classes"] == 4
    assert summary["average_attendance"] == 50
    assert summary["failed_courses"] == 1

    rates = student_course_rates(data)
    assert list(rates["Course"]) == ["CS101"]
    assert rates["Rate %"].iloc[0] == 50

    recent = recent_entries(data, limit=2)
    assert [e["id"] for e in recent] == [13, 12]
    assert recent[0]["course"] == "CS101"


if __name__ == "__main__":
    print("Testing dashboards...")
    test_teacher_dashboard_with_failed_course()
    test_teacher_frames()
    test_cancelled_dashboard_raises()
    test_schedule_and_upcoming()
    test_student_dashboard()
    print("\n✅ Dashboard tests passed!")

"""
Backend endpoints used by the portal.

One function per call; each takes an ApiClient and maps the JSON response
into the dataclasses of ``models``.
"""
from typing import Any, Dict, List, Optional, Tuple

from .client import ApiClient
from .models import AttendanceDetail, AttendanceRecord, AttendanceResult, Course, Student, User

# (filename, content, mime type) as accepted by requests' ``files=``
FileTuple = Tuple[str, bytes, str]


def _as_list(payload) -> list:
    return payload if isinstance(payload, list) else []


# -------------------- Auth -------------------- #

def login(client: ApiClient, email: str, password: str) -> Dict[str, Any]:
    return client.post("/auth/login", json={"email": email, "password": password}, auth=False) or {}


def get_me(client: ApiClient) -> User:
    return User.from_dict(client.get("/auth/me") or {})


def update_me(client: ApiClient, first_name: str, last_name: str) -> Dict[str, Any]:
    return client.put("/auth/me", json={"first_name": first_name, "last_name": last_name}) or {}


def register_user(client: ApiClient, payload: Dict[str, Any]) -> Dict[str, Any]:
    return client.post("/auth/register", json=payload) or {}


def request_password_reset(client: ApiClient, email: str) -> Dict[str, Any]:
    return client.post("/password/reset", json={"email": email}, auth=False) or {}


# -------------------- Courses -------------------- #

def list_courses(client: ApiClient, cancel_token=None) -> List[Course]:
    return [Course.from_dict(c) for c in _as_list(client.get("/courses/", cancel_token=cancel_token))]


def create_course(client: ApiClient, payload: Dict[str, Any]) -> Course:
    return Course.from_dict(client.post("/courses/", json=payload) or {})


def update_course(client: ApiClient, course_id: int, payload: Dict[str, Any]) -> Course:
    return Course.from_dict(client.put(f"/courses/{course_id}", json=payload) or {})


def delete_course(client: ApiClient, course_id: int) -> None:
    client.delete(f"/courses/{course_id}")


def get_teacher_courses(client: ApiClient, teacher_id: int, cancel_token=None) -> List[Course]:
    payload = client.get(f"/teachers/{teacher_id}/courses", cancel_token=cancel_token)
    return [Course.from_dict(c) for c in _as_list(payload)]


def get_student_courses(client: ApiClient, student_id: int, cancel_token=None) -> List[Course]:
    payload = client.get(f"/students/{student_id}/courses", cancel_token=cancel_token)
    return [Course.from_dict(c) for c in _as_list(payload)]


def enroll_student(client: ApiClient, course_id: int, student_id: int) -> Dict[str, Any]:
    return client.post(f"/courses/{course_id}/students", json={"student_id": student_id}) or {}


# -------------------- Students -------------------- #

def list_students(client: ApiClient, cancel_token=None) -> List[Student]:
    return [Student.from_dict(s) for s in _as_list(client.get("/students/", cancel_token=cancel_token))]


def delete_student(client: ApiClient, student_id: int) -> None:
    client.delete(f"/students/{student_id}")


def upload_face(client: ApiClient, student_id: int, photo: FileTuple) -> Dict[str, Any]:
    return client.post(f"/students/{student_id}/face", files={"file": photo}) or {}


# -------------------- Attendance -------------------- #

def create_attendance(client: ApiClient, course_id: int, date: str, lesson_number: int,
                      attendance_type: str, photo: FileTuple) -> Dict[str, Any]:
    data = {
        "course_id": str(course_id),
        "date": date,
        "lesson_number": str(lesson_number),
        "type": attendance_type,
    }
    return client.post("/attendance/", data=data, files={"file": photo}) or {}


def get_attendance(client: ApiClient, attendance_id: int, cancel_token=None) -> AttendanceRecord:
    return AttendanceRecord.from_dict(client.get(f"/attendance/{attendance_id}", cancel_token=cancel_token) or {})


def update_attendance_status(client: ApiClient, attendance_id: int, student_id: int,
                             status: str) -> AttendanceDetail:
    payload = client.post(f"/attendance/{attendance_id}/students/{student_id}", json={"status": status})
    return AttendanceDetail.from_dict(payload or {"student_id": student_id, "status": status})


def get_course_attendance(client: ApiClient, course_id: int, cancel_token=None) -> List[AttendanceRecord]:
    payload = client.get(f"/courses/{course_id}/attendance", cancel_token=cancel_token)
    return [AttendanceRecord.from_dict(r) for r in _as_list(payload)]


def get_student_course_attendance(client: ApiClient, course_id: int, student_id: int,
                                  cancel_token=None) -> List[Dict[str, Any]]:
    payload = client.get(f"/attendance/course/{course_id}/student/{student_id}", cancel_token=cancel_token)
    if isinstance(payload, dict):
        return list(payload.get("attendance_details") or [])
    return _as_list(payload)


def parse_attendance_result(payload: Optional[Dict[str, Any]]) -> Optional[AttendanceResult]:
    if not isinstance(payload, dict) or "results" not in payload:
        return None
    return AttendanceResult.from_dict(payload)

"""
Data loading for the dashboards.

Courses are fetched first; the per-course attendance lists are then fetched
concurrently. A failed course does not stop the others, it is only reported
in ``failed_course_ids``.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..api import endpoints
from ..api.client import ApiClient
from ..api.models import AttendanceRecord, Course
from ..courses.service import student_courses, teacher_courses
from ..utils.concurrency import run_all_settled

logger = logging.getLogger(__name__)


@dataclass
class TeacherDashboardData:
    courses: List[Course] = field(default_factory=list)
    records: Dict[int, List[AttendanceRecord]] = field(default_factory=dict)
    failed_course_ids: List[int] = field(default_factory=list)

    @property
    def loaded_courses(self) -> List[Course]:
        return [c for c in self.courses if c.id in self.records]


@dataclass
class StudentDashboardData:
    courses: List[Course] = field(default_factory=list)
    entries: Dict[int, List[Dict[str, Any]]] = field(default_factory=dict)
    failed_course_ids: List[int] = field(default_factory=list)


def load_teacher_dashboard(client: ApiClient, teacher_id: int, cancel_token=None) -> TeacherDashboardData:
    """
    Fetch a teacher's courses and every course's attendance records.

    Args:
        client (ApiClient): Authenticated client
        teacher_id (int): Teacher whose courses are shown
        cancel_token (CancelToken): Token of the current page request

    Returns:
        TeacherDashboardData: Records keyed by course id plus failed ids
    """
    courses = teacher_courses(client, teacher_id, cancel_token=cancel_token)
    outcomes = run_all_settled(
        lambda course: endpoints.get_course_attendance(client, course.id, cancel_token=cancel_token),
        courses,
    )
    data = TeacherDashboardData(courses=courses)
    for outcome in outcomes:
        if outcome.ok:
            data.records[outcome.item.id] = outcome.value
        else:
            data.failed_course_ids.append(outcome.item.id)
    if data.failed_course_ids:
        logger.warning("Attendance could not be loaded for courses %s", data.failed_course_ids)
    if cancel_token is not None:
        cancel_token.raise_if_cancelled()
    return data


def load_student_dashboard(client: ApiClient, student_id: int, cancel_token=None) -> StudentDashboardData:
    """Fetch a student's courses and their own attendance in each."""
    courses = student_courses(client, student_id, cancel_token=cancel_token)
    outcomes = run_all_settled(
        lambda course: endpoints.get_student_course_attendance(
            client, course.id, student_id, cancel_token=cancel_token),
        courses,
    )
    data = StudentDashboardData(courses=courses)
    for outcome in outcomes:
        if outcome.ok:
            data.entries[outcome.item.id] = outcome.value
        else:
            data.failed_course_ids.append(outcome.item.id)
    if cancel_token is not None:
        cancel_token.raise_if_cancelled()
    return data

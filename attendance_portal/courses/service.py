"""
Course management for teachers and course enrollment for students.
"""
import logging
import re
from typing import Any, Dict, List, Optional

from ..api import endpoints
from ..api.client import ApiClient
from ..api.models import Course
from ..config.settings import (
    COURSE_CODE_LENGTH, COURSE_NAME_LENGTH, COURSE_SEMESTER_LENGTH, COURSE_DESCRIPTION_MAX, WEEK_DAYS
)
from ..errors import ValidationError

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def _check_length(value: str, bounds, field: str, label: str) -> str:
    value = (value or "").strip()
    low, high = bounds
    if len(value) < low:
        raise ValidationError(f"{label} must be at least {low} characters.", field=field)
    if len(value) > high:
        raise ValidationError(f"{label} can be at most {high} characters.", field=field)
    return value


def validate_lesson_times(lesson_times: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Check weekly lesson slots and number them by position.

    Args:
        lesson_times (List[Dict]): Items with day, start_time, end_time

    Returns:
        List[Dict]: Cleaned slots with lesson_number 1..N
    """
    if not lesson_times:
        raise ValidationError("Add at least one lesson time.", field="lesson_times")

    cleaned = []
    for index, slot in enumerate(lesson_times):
        day = str(slot.get("day") or "").upper()
        start = str(slot.get("start_time") or "")[:5]
        end = str(slot.get("end_time") or "")[:5]
        if day not in WEEK_DAYS:
            raise ValidationError(f"Lesson time {index + 1}: select a valid day.", field="lesson_times")
        if not TIME_PATTERN.match(start) or not TIME_PATTERN.match(end):
            raise ValidationError(f"Lesson time {index + 1}: use the HH:MM format.", field="lesson_times")
        # Zero padded HH:MM strings compare chronologically
        if start >= end:
            raise ValidationError(f"Lesson time {index + 1}: end time must be after start time.",
                                  field="lesson_times")
        cleaned.append({"day": day, "start_time": start, "end_time": end, "lesson_number": index + 1})
    return cleaned


def build_course_payload(data: Dict[str, Any], teacher_id: Optional[int]) -> Dict[str, Any]:
    """
    Validate the course form and build the request body.

    Args:
        data (Dict): code, name, semester, description, lesson_times
        teacher_id (int): Owner of the course

    Returns:
        Dict: JSON payload for create/update
    """
    if not teacher_id:
        raise ValidationError("Teacher information is missing. Please log in again.")

    description = (data.get("description") or "").strip()
    if len(description) > COURSE_DESCRIPTION_MAX:
        raise ValidationError(f"Description can be at most {COURSE_DESCRIPTION_MAX} characters.",
                              field="description")

    return {
        "code": _check_length(data.get("code"), COURSE_CODE_LENGTH, "code", "Course code"),
        "name": _check_length(data.get("name"), COURSE_NAME_LENGTH, "name", "Course name"),
        "semester": _check_length(data.get("semester"), COURSE_SEMESTER_LENGTH, "semester", "Semester"),
        "description": description or None,
        "teacher_id": teacher_id,
        "lesson_times": validate_lesson_times(data.get("lesson_times") or []),
    }


def course_form_data(course: Course) -> Dict[str, Any]:
    """Values to prefill the edit form with."""
    return {
        "code": course.code,
        "name": course.name,
        "semester": course.semester,
        "description": course.description or "",
        "lesson_times": [slot.to_dict() for slot in course.lesson_times],
    }


def create_course(client: ApiClient, data: Dict[str, Any], teacher_id: Optional[int]) -> Course:
    course = endpoints.create_course(client, build_course_payload(data, teacher_id))
    logger.info("Created course %s (%s)", course.id, course.code)
    return course


def update_course(client: ApiClient, course_id: int, data: Dict[str, Any],
                  teacher_id: Optional[int]) -> Course:
    course = endpoints.update_course(client, course_id, build_course_payload(data, teacher_id))
    logger.info("Updated course %s", course_id)
    return course


def delete_course(client: ApiClient, course_id: int) -> None:
    endpoints.delete_course(client, course_id)
    logger.info("Deleted course %s", course_id)


def teacher_courses(client: ApiClient, teacher_id: Optional[int], cancel_token=None) -> List[Course]:
    if not teacher_id:
        raise ValidationError("Teacher information is missing. Please log in again.")
    return endpoints.get_teacher_courses(client, teacher_id, cancel_token=cancel_token)


def student_courses(client: ApiClient, student_id: Optional[int], cancel_token=None) -> List[Course]:
    if not student_id:
        raise ValidationError("Student information is missing. Please log in again.")
    return endpoints.get_student_courses(client, student_id, cancel_token=cancel_token)


def available_courses(all_courses: List[Course], enrolled: List[Course]) -> List[Course]:
    """Courses the student is not enrolled in yet, sorted by code."""
    enrolled_ids = {course.id for course in enrolled}
    return sorted((c for c in all_courses if c.id not in enrolled_ids), key=lambda c: c.code)


def enroll(client: ApiClient, course_id: int, student_id: Optional[int]) -> None:
    if not student_id:
        raise ValidationError("Student information is missing. Please log in again.")
    endpoints.enroll_student(client, course_id, student_id)
    logger.info("Student %s enrolled in course %s", student_id, course_id)

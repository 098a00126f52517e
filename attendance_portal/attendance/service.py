"""
Attendance sessions: taking attendance from a class photo, reviewing and
correcting a session, and browsing a course's attendance history.
"""
import logging
from datetime import date as date_type
from datetime import datetime
from typing import Dict, List, Optional

from ..api import endpoints
from ..api.client import ApiClient
from ..api.models import AttendanceDetail, AttendanceRecord, AttendanceResult
from ..config.settings import (
    ATTENDANCE_TYPES, ATTENDANCE_STATUSES, ATTENDED_STATUSES, MAX_LESSON_NUMBER, DEFAULT_LANGUAGE
)
from ..errors import ApiError, ValidationError
from ..i18n import attendance_type_label, day_name, lesson_label
from ..utils.image_validation import PhotoFile

logger = logging.getLogger(__name__)


def parse_date(value: Optional[str]) -> Optional[date_type]:
    """Parse an ISO ``YYYY-MM-DD`` date (time part ignored), None if invalid."""
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def format_date(value: Optional[str]) -> str:
    """Show an ISO date as DD.MM.YYYY; unparseable values are returned as-is."""
    if not value:
        return "-"
    parsed = parse_date(value)
    if parsed is None:
        return value
    return parsed.strftime("%d.%m.%Y")


# ---------------------------------------------------------------------- #
# Taking attendance
# ---------------------------------------------------------------------- #

def take_attendance(client: ApiClient, course_id: Optional[int], lesson_date: str,
                    lesson_number: int, attendance_type: str,
                    photo: Optional[PhotoFile]) -> AttendanceResult:
    """
    Send a class photo for recognition and create the attendance session.

    Args:
        client (ApiClient): Authenticated client
        course_id (int): Course the session belongs to
        lesson_date (str): ISO date of the lesson
        lesson_number (int): Lesson slot of the day, 1..MAX_LESSON_NUMBER
        attendance_type (str): FACE, EMOTION or FACE_EMOTION
        photo (PhotoFile): Class photo

    Returns:
        AttendanceResult: Recognition summary and per-student results

    Raises:
        ValidationError: Missing course, photo or invalid options
        ApiError: Backend failure or a response without results
    """
    if not course_id:
        raise ValidationError("Please select a course.", field="course_id")
    if photo is None:
        raise ValidationError("Please upload or capture a class photo.", field="photo")
    if parse_date(lesson_date) is None:
        raise ValidationError("Please select a valid date.", field="date")
    if not 1 <= int(lesson_number) <= MAX_LESSON_NUMBER:
        raise ValidationError(f"Lesson number must be between 1 and {MAX_LESSON_NUMBER}.",
                              field="lesson_number")
    if attendance_type not in ATTENDANCE_TYPES:
        raise ValidationError("Unknown attendance type.", field="type")

    logger.info("Creating %s attendance for course %s, %s lesson %s",
                attendance_type, course_id, lesson_date, lesson_number)
    payload = endpoints.create_attendance(
        client, course_id, lesson_date, int(lesson_number), attendance_type, photo.as_upload()
    )
    result = endpoints.parse_attendance_result(payload)
    if result is None:
        raise ApiError("Unexpected response from the server: no recognition results.",
                       kind="unparseable")
    logger.info("Attendance %s created: %d recognized, %d unrecognized",
                result.attendance_id, result.recognized_count, result.unrecognized_count)
    return result


# ---------------------------------------------------------------------- #
# Session detail
# ---------------------------------------------------------------------- #

def status_counts(details: List[AttendanceDetail]) -> Dict[str, int]:
    counts = {status: 0 for status in ATTENDANCE_STATUSES}
    for detail in details:
        if detail.status in counts:
            counts[detail.status] += 1
    return counts


def presence_rate(details: List[AttendanceDetail]) -> Optional[float]:
    """Share of students marked PRESENT or LATE, in percent."""
    if not details:
        return None
    attended = sum(1 for d in details if d.status in ATTENDED_STATUSES)
    return attended / len(details) * 100


def correct_status(client: ApiClient, record: AttendanceRecord, student_id: int,
                   status: str) -> AttendanceRecord:
    """
    Change one student's status in a session and update the local record.

    Returns:
        AttendanceRecord: The same record with the detail replaced
    """
    status = (status or "").upper()
    if status not in ATTENDANCE_STATUSES:
        raise ValidationError("Unknown attendance status.", field="status")

    updated = endpoints.update_attendance_status(client, record.id, student_id, status)
    for index, detail in enumerate(record.details):
        if detail.student_id == student_id:
            detail.status = updated.status or status
            record.details[index] = detail
            break
    logger.info("Attendance %s: student %s set to %s", record.id, student_id, status)
    return record


# ---------------------------------------------------------------------- #
# History
# ---------------------------------------------------------------------- #

def filter_details(details: List[AttendanceDetail], term: Optional[str]) -> List[AttendanceDetail]:
    """
    Students of one session whose first name, last name, full name or
    student number contains ``term`` (case-insensitive).
    """
    term = (term or "").strip().lower()
    if not term:
        return list(details)
    return [
        detail for detail in details
        if any(term in value.lower() for value in (
            detail.first_name, detail.last_name, detail.full_name, detail.student_number,
        ))
    ]


def photo_url(api_url: str, photo_path: Optional[str]) -> Optional[str]:
    """URL of a stored class photo; the backend returns a path relative to its root."""
    if not photo_path:
        return None
    if photo_path.startswith(("http://", "https://")):
        return photo_path
    return f"{api_url.rstrip('/')}/{photo_path.lstrip('/')}"


def matches_search(record: AttendanceRecord, term: str, language: str = DEFAULT_LANGUAGE) -> bool:
    """
    Case-insensitive match on the displayed date, weekday name, lesson
    number ("1", "1." or the lesson label) and attendance type label.
    """
    term = (term or "").strip().lower()
    if not term:
        return True
    lesson = str(record.lesson_number) if record.lesson_number is not None else ""
    candidates = [
        format_date(record.date),
        day_name(record.date, language),
        lesson,
        lesson + "." if lesson else "",
        lesson_label(record.lesson_number, language) if lesson else "",
        attendance_type_label(record.type, language),
    ]
    return any(term in candidate.lower() for candidate in candidates if candidate)


def _sort_key(record: AttendanceRecord):
    parsed = parse_date(record.date)
    # Records without a usable date go last
    return (
        0 if parsed is not None else 1,
        -(parsed.toordinal() if parsed else 0),
        -(record.lesson_number or 0),
    )


def filter_history(records: List[AttendanceRecord], date_filter: Optional[str] = None,
                   search: str = "", language: str = DEFAULT_LANGUAGE) -> List[AttendanceRecord]:
    """
    Filter by exact date and search term, newest first.

    Args:
        records (List[AttendanceRecord]): Course attendance records
        date_filter (str): ISO date; only records of that day are kept
        search (str): Free text, see ``matches_search``
        language (str): Language of day and type labels

    Returns:
        List[AttendanceRecord]: Sorted by date descending, same date by
        lesson number descending
    """
    selected = [
        record for record in records
        if (not date_filter or (record.date or "")[:10] == date_filter)
        and matches_search(record, search, language)
    ]
    return sorted(selected, key=_sort_key)


def history_summary(records: List[AttendanceRecord]) -> Dict[str, object]:
    """
    Summarize already sorted history records.

    Returns:
        Dict with ``total_sessions``, ``recognized_total``, ``last_date``
        (DD.MM.YYYY or "-") and ``average_participation`` (rounded percent
        or None when no record has a known class size)
    """
    if not records:
        return {
            "total_sessions": 0,
            "recognized_total": 0,
            "last_date": "-",
            "average_participation": None,
        }

    rates = [r.participation for r in records if r.participation is not None]
    return {
        "total_sessions": len(records),
        "recognized_total": sum(r.recognized_students or 0 for r in records),
        "last_date": format_date(records[0].date),
        "average_participation": round(sum(rates) / len(rates)) if rates else None,
    }


def load_course_history(client: ApiClient, course_id: int, cancel_token=None) -> List[AttendanceRecord]:
    return endpoints.get_course_attendance(client, course_id, cancel_token=cancel_token)


def load_student_history(client: ApiClient, course_id: int, student_id: int,
                         cancel_token=None) -> List[Dict[str, object]]:
    """
    A student's attendance entries for one course, newest first.

    Returns:
        List of dicts with ``id``, ``date``, ``lesson_number``, ``status``,
        ``emotion`` and ``confidence``
    """
    rows = endpoints.get_student_course_attendance(client, course_id, student_id,
                                                   cancel_token=cancel_token)
    entries = []
    for row in rows:
        detail = AttendanceDetail.from_dict(row)
        entries.append({
            "id": row.get("id"),
            "date": row.get("date"),
            "lesson_number": row.get("lesson_number"),
            "status": detail.status,
            "emotion": detail.emotion,
            "confidence": detail.confidence,
        })
    entries.sort(key=lambda e: (parse_date(e["date"]) or date_type.min, e["lesson_number"] or 0),
                 reverse=True)
    return entries

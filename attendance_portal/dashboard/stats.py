"""
Statistics shown on the teacher and student dashboards.

Everything here is a pure function of already loaded data, recomputed on
every render.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import pandas as pd

from ..api.models import AttendanceRecord, Course
from ..config.settings import ATTENDED_STATUSES, WEEK_DAYS
from .loader import StudentDashboardData, TeacherDashboardData


def average_participation(records: List[AttendanceRecord]) -> Optional[int]:
    """Mean recognized/total percentage over records with a known class size."""
    rates = [r.participation for r in records if r.participation is not None]
    if not rates:
        return None
    return round(sum(rates) / len(rates))


def teacher_summary(data: TeacherDashboardData) -> Dict[str, Any]:
    """
    Headline numbers of the teacher dashboard.

    Only courses whose attendance was loaded contribute; failed courses
    are counted in ``failed_courses``.
    """
    all_records = [r for records in data.records.values() for r in records]
    return {
        "total_courses": len(data.courses),
        "total_sessions": len(all_records),
        "average_attendance": average_participation(all_records),
        "failed_courses": len(data.failed_course_ids),
    }


def course_attendance_frame(data: TeacherDashboardData) -> pd.DataFrame:
    """One row per loaded course: sessions and average attendance %."""
    rows = []
    for course in data.loaded_courses:
        records = data.records[course.id]
        rows.append({
            "Course": course.code,
            "Name": course.name,
            "Sessions": len(records),
            "Attendance %": average_participation(records),
        })
    return pd.DataFrame(rows, columns=["Course", "Name", "Sessions", "Attendance %"])


def emotion_frame(data: TeacherDashboardData) -> pd.DataFrame:
    """
    Emotion counts summed per course, for a stacked bar chart.

    Returns:
        pd.DataFrame: Index is the course code, one column per emotion
    """
    totals: Dict[str, Dict[str, int]] = {}
    for course in data.loaded_courses:
        counts: Dict[str, int] = {}
        for record in data.records[course.id]:
            for emotion, count in record.emotion_statistics.items():
                counts[emotion] = counts.get(emotion, 0) + count
        if counts:
            totals[course.code] = counts
    if not totals:
        return pd.DataFrame()
    frame = pd.DataFrame.from_dict(totals, orient="index").fillna(0).astype(int)
    return frame[sorted(frame.columns)]


def weekly_schedule(courses: List[Course]) -> Dict[str, List[Dict[str, Any]]]:
    """Lesson slots grouped by weekday (MONDAY first), sorted by start time."""
    schedule = {day: [] for day in WEEK_DAYS}
    for course in courses:
        for slot in course.lesson_times:
            if slot.day in schedule:
                schedule[slot.day].append({
                    "course": course.code,
                    "name": course.name,
                    "start_time": slot.start_time,
                    "end_time": slot.end_time,
                    "lesson_number": slot.lesson_number,
                })
    for slots in schedule.values():
        slots.sort(key=lambda s: s["start_time"])
    return schedule


def upcoming_lessons(courses: List[Course], now: Optional[datetime] = None,
                     limit: int = 5) -> List[Dict[str, Any]]:
    """
    Next occurrences of the weekly lesson slots.

    Args:
        courses (List[Course]): Courses with lesson times
        now (datetime): Reference time, defaults to the current time
        limit (int): Maximum number of lessons returned

    Returns:
        List of dicts with course, name, day, start_time, end_time and
        ``starts_at`` (datetime), soonest first
    """
    now = now or datetime.now()
    upcoming = []
    for course in courses:
        for slot in course.lesson_times:
            if slot.day not in WEEK_DAYS:
                continue
            try:
                hour, minute = (int(part) for part in slot.start_time.split(":"))
            except ValueError:
                continue
            days_ahead = (WEEK_DAYS.index(slot.day) - now.weekday()) % 7
            starts_at = (now + timedelta(days=days_ahead)).replace(
                hour=hour, minute=minute, second=0, microsecond=0)
            if starts_at < now:
                starts_at += timedelta(days=7)
            upcoming.append({
                "course": course.code,
                "name": course.name,
                "day": slot.day,
                "start_time": slot.start_time,
                "end_time": slot.end_time,
                "starts_at": starts_at,
            })
    upcoming.sort(key=lambda lesson: lesson["starts_at"])
    return upcoming[:limit]


def student_course_rates(data: StudentDashboardData) -> pd.DataFrame:
    """Attended/total classes and rate per loaded course."""
    rows = []
    for course in data.courses:
        if course.id not in data.entries:
            continue
        entries = data.entries[course.id]
        attended = sum(1 for e in entries if str(e.get("status") or "").upper() in ATTENDED_STATUSES)
        rows.append({
            "Course": course.code,
            "Name": course.name,
            "Attended": attended,
            "Total": len(entries),
            "Rate %": round(attended / len(entries) * 100) if entries else None,
        })
    return pd.DataFrame(rows, columns=["Course", "Name", "Attended", "Total", "Rate %"])


def student_summary(data: StudentDashboardData) -> Dict[str, Any]:
    """
    Headline numbers of the student dashboard.

    PRESENT and LATE entries count as attended.
    """
    entries = [e for course_entries in data.entries.values() for e in course_entries]
    attended = sum(1 for e in entries if str(e.get("status") or "").upper() in ATTENDED_STATUSES)
    return {
        "total_courses": len(data.courses),
        "attended": attended,
        "total_classes": len(entries),
        "average_attendance": round(attended / len(entries) * 100) if entries else None,
        "failed_courses": len(data.failed_course_ids),
    }


def recent_entries(data: StudentDashboardData, limit: int = 5) -> List[Dict[str, Any]]:
    """Latest attendance entries across all courses."""
    codes = {course.id: course.code for course in data.courses}
    rows = [
        dict(entry, course=codes.get(course_id, str(course_id)))
        for course_id, course_entries in data.entries.items()
        for entry in course_entries
    ]
    rows.sort(key=lambda e: (str(e.get("date") or ""), e.get("lesson_number") or 0), reverse=True)
    return rows[:limit]

"""
Attendance sessions: creation, detail, correction and history.
"""

from .service import (
    take_attendance, correct_status, status_counts, presence_rate, filter_details, photo_url,
    filter_history, history_summary, load_course_history, load_student_history,
    format_date, parse_date
)

__all__ = [
    'take_attendance', 'correct_status', 'status_counts', 'presence_rate', 'filter_details', 'photo_url',
    'filter_history', 'history_summary', 'load_course_history', 'load_student_history',
    'format_date', 'parse_date'
]

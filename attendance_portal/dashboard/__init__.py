"""
Teacher and student dashboards.
"""

from .loader import TeacherDashboardData, StudentDashboardData, load_teacher_dashboard, load_student_dashboard
from .stats import (
    average_participation, teacher_summary, course_attendance_frame, emotion_frame,
    weekly_schedule, upcoming_lessons, student_summary, student_course_rates, recent_entries
)

__all__ = [
    'TeacherDashboardData', 'StudentDashboardData', 'load_teacher_dashboard', 'load_student_dashboard',
    'average_participation', 'teacher_summary', 'course_attendance_frame', 'emotion_frame',
    'weekly_schedule', 'upcoming_lessons', 'student_summary', 'student_course_rates', 'recent_entries'
]

"""
Course management and enrollment.
"""

from .service import (
    validate_lesson_times, build_course_payload, course_form_data,
    create_course, update_course, delete_course,
    teacher_courses, student_courses, available_courses, enroll
)

__all__ = [
    'validate_lesson_times', 'build_course_payload', 'course_form_data',
    'create_course', 'update_course', 'delete_course',
    'teacher_courses', 'student_courses', 'available_courses', 'enroll'
]

"""
Backend API access: HTTP client, cancellation and response records.
"""

from .client import ApiClient, error_from_response
from .cancellation import CancelToken, RequestScope, ViewCache
from .models import (
    User, Course, LessonTime, Student,
    AttendanceDetail, AttendanceRecord, AttendanceResult
)

__all__ = [
    'ApiClient', 'error_from_response',
    'CancelToken', 'RequestScope', 'ViewCache',
    'User', 'Course', 'LessonTime', 'Student',
    'AttendanceDetail', 'AttendanceRecord', 'AttendanceResult'
]

"""
Student list, filters and deletion.
"""

from .service import load_students, departments, filter_students, delete_student, students_frame

__all__ = ['load_students', 'departments', 'filter_students', 'delete_student', 'students_frame']

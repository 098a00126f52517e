"""
Student list for teachers.
"""
import logging
from typing import List, Optional

import pandas as pd

from ..api import endpoints
from ..api.client import ApiClient
from ..api.models import Student

logger = logging.getLogger(__name__)


def load_students(client: ApiClient, cancel_token=None) -> List[Student]:
    return endpoints.list_students(client, cancel_token=cancel_token)


def departments(students: List[Student]) -> List[str]:
    return sorted({s.department for s in students if s.department})


def filter_students(students: List[Student], search: str = "",
                    department: Optional[str] = None) -> List[Student]:
    """
    Filter students by free text and department.

    Args:
        students (List[Student]): All students
        search (str): Matched case-insensitively against name, e-mail
            and student number
        department (str): Exact department, None or "" for all

    Returns:
        List[Student]: Matching students sorted by name
    """
    term = (search or "").strip().lower()
    selected = []
    for student in students:
        if department and student.department != department:
            continue
        if term:
            haystack = " ".join([student.full_name, student.email, student.student_number]).lower()
            if term not in haystack:
                continue
        selected.append(student)
    return sorted(selected, key=lambda s: (s.full_name.lower(), s.student_number))


def delete_student(client: ApiClient, student_id: int) -> None:
    endpoints.delete_student(client, student_id)
    logger.info("Deleted student %s", student_id)


def students_frame(students: List[Student]) -> pd.DataFrame:
    """Table shown on the student list page."""
    rows = [{
        "ID": s.id,
        "Student Number": s.student_number,
        "Name": s.full_name,
        "E-mail": s.email,
        "Department": s.department,
        "Face Photo": "Yes" if s.has_face_photo else "No",
    } for s in students]
    return pd.DataFrame(rows, columns=["ID", "Student Number", "Name", "E-mail", "Department", "Face Photo"])

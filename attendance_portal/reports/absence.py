"""
Per-student absence counts for a course.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..api.models import AttendanceRecord
from ..config.settings import DEFAULT_ABSENCE_LIMIT

logger = logging.getLogger(__name__)


@dataclass
class StudentAbsence:
    id: int
    name: str
    absences: int = 0
    email: Optional[str] = None


def absence_summaries(records: List[AttendanceRecord]) -> List[StudentAbsence]:
    """
    Count how often each student appears in ``absent_students``.

    Entries without an integer id or string first/last name are skipped.

    Args:
        records (List[AttendanceRecord]): Attendance sessions of one course

    Returns:
        List[StudentAbsence]: One entry per student, in first-seen order
    """
    summaries: Dict[int, StudentAbsence] = {}
    skipped = 0
    for record in records:
        for student in record.absent_students:
            if not isinstance(student, dict):
                skipped += 1
                continue
            student_id = student.get("id")
            first_name = student.get("first_name")
            last_name = student.get("last_name")
            # bool is an int subclass but never a valid id
            if (not isinstance(student_id, int) or isinstance(student_id, bool)
                    or not isinstance(first_name, str) or not isinstance(last_name, str)):
                skipped += 1
                continue
            if student_id not in summaries:
                summaries[student_id] = StudentAbsence(
                    id=student_id,
                    name=f"{first_name} {last_name}",
                    email=student.get("email") or None,
                )
            summaries[student_id].absences += 1
    if skipped:
        logger.debug("Skipped %d malformed absent student entries", skipped)
    return list(summaries.values())


def filter_absences(summaries: List[StudentAbsence], search: str = "",
                    limit: int = DEFAULT_ABSENCE_LIMIT) -> List[StudentAbsence]:
    """
    Students with at least ``limit`` absences whose name contains ``search``.

    Returns:
        List[StudentAbsence]: Sorted alphabetically by name
    """
    term = (search or "").strip().lower()
    selected = [
        s for s in summaries
        if s.absences >= limit and (not term or term in s.name.lower())
    ]
    return sorted(selected, key=lambda s: (s.name.lower(), s.id))

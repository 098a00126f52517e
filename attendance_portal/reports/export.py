"""
Excel export of absence reports.
"""
import logging
from datetime import date
from io import BytesIO
from typing import List, Optional, Tuple

import pandas as pd
from openpyxl.utils import get_column_letter

from ..config.settings import REPORT_SHEET_NAME
from ..errors import ValidationError
from .absence import StudentAbsence

logger = logging.getLogger(__name__)

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

REPORT_COLUMNS = ["Student ID", "Name", "Total Absences"]


def absence_frame(summaries: List[StudentAbsence]) -> pd.DataFrame:
    rows = [{"Student ID": s.id, "Name": s.name, "Total Absences": s.absences} for s in summaries]
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def report_filename(course_code: Optional[str], day: Optional[date] = None) -> str:
    day = day or date.today()
    return f"absences_{course_code or 'report'}_{day.isoformat()}.xlsx"


def create_absence_workbook(summaries: List[StudentAbsence], course_code: Optional[str] = None,
                            day: Optional[date] = None) -> Tuple[bytes, str, str]:
    """
    Build the XLSX file for the filtered absence table.

    Args:
        summaries (List[StudentAbsence]): Rows to export
        course_code (str): Used in the file name
        day (date): Date in the file name, defaults to today

    Returns:
        Tuple of (data_bytes, file_name, mime)

    Raises:
        ValidationError: There is nothing to export
    """
    if not summaries:
        raise ValidationError("There are no students to export.")

    df = absence_frame(summaries)
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=REPORT_SHEET_NAME)
        worksheet = writer.sheets[REPORT_SHEET_NAME]
        for idx, col in enumerate(df.columns, start=1):
            max_len = max([len(col)] + df[col].astype(str).map(len).tolist())
            worksheet.column_dimensions[get_column_letter(idx)].width = min(max_len + 2, 60)

    filename = report_filename(course_code, day)
    logger.info("Exported %d rows to %s", len(df), filename)
    return buffer.getvalue(), filename, XLSX_MIME

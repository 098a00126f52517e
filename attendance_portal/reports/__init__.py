"""
Absence reports: counting, Excel export and warning e-mails.
"""

from .absence import StudentAbsence, absence_summaries, filter_absences
from .export import absence_frame, create_absence_workbook, report_filename, XLSX_MIME
from .mailer import AbsenceMailer, MailingReport

__all__ = [
    'StudentAbsence', 'absence_summaries', 'filter_absences',
    'absence_frame', 'create_absence_workbook', 'report_filename', 'XLSX_MIME',
    'AbsenceMailer', 'MailingReport'
]

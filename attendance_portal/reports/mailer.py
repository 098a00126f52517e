"""
Absence warning e-mails through the EmailJS REST API.

Service, template and keys come from the environment (see settings);
nothing is embedded in the code.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import requests

from ..api.models import Course
from ..config import settings
from ..config.settings import REQUEST_TIMEOUT
from ..errors import ApiError, ConfigurationError, ValidationError
from ..utils.concurrency import run_all_settled
from .absence import StudentAbsence

logger = logging.getLogger(__name__)


@dataclass
class MailingReport:
    sent: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)
    missing_email: List[int] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.failed) + len(self.missing_email)

    @property
    def all_sent(self) -> bool:
        return not self.failed and not self.missing_email


class AbsenceMailer:
    """
    Sends one templated e-mail per student.
    """

    def __init__(self, service_id: Optional[str] = None, template_id: Optional[str] = None,
                 public_key: Optional[str] = None, private_key: Optional[str] = None,
                 api_url: Optional[str] = None, session=None, timeout: float = REQUEST_TIMEOUT):
        self.service_id = service_id if service_id is not None else settings.EMAILJS_SERVICE_ID
        self.template_id = template_id if template_id is not None else settings.EMAILJS_TEMPLATE_ID
        self.public_key = public_key if public_key is not None else settings.EMAILJS_PUBLIC_KEY
        self.private_key = private_key if private_key is not None else settings.EMAILJS_PRIVATE_KEY
        self.api_url = api_url or settings.EMAILJS_API_URL
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.service_id and self.template_id and self.public_key)

    def send_one(self, student: StudentAbsence, course: Course) -> None:
        """
        Send the warning to one student.

        Raises:
            ApiError: The e-mail service rejected the message or was unreachable
        """
        payload = {
            "service_id": self.service_id,
            "template_id": self.template_id,
            "user_id": self.public_key,
            "template_params": {
                "to_email": student.email,
                "student_name": student.name,
                "course_name": course.name,
                "course_code": course.code,
                "absence_count": student.absences,
            },
        }
        if self.private_key:
            payload["accessToken"] = self.private_key

        try:
            response = self.session.post(self.api_url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise ApiError(f"Could not reach the e-mail service: {e}", kind="network") from e
        if not response.ok:
            raise ApiError(f"E-mail service error: {response.text or response.status_code}",
                           status=response.status_code)

    def send_warnings(self, students: List[StudentAbsence], course: Course) -> MailingReport:
        """
        Send warnings to the selected students concurrently.

        Students without an e-mail address are not contacted and are
        reported in ``missing_email``.

        Raises:
            ValidationError: No student selected
            ConfigurationError: The e-mail service is not configured
        """
        if not students:
            raise ValidationError("Select at least one student to e-mail.")
        if not self.configured:
            raise ConfigurationError(
                "E-mail service is not configured. Set EMAILJS_SERVICE_ID, "
                "EMAILJS_TEMPLATE_ID and EMAILJS_PUBLIC_KEY."
            )

        report = MailingReport()
        recipients = []
        for student in students:
            if student.email:
                recipients.append(student)
            else:
                logger.warning("No e-mail address for student %s, skipping", student.id)
                report.missing_email.append(student.id)

        for outcome in run_all_settled(lambda s: self.send_one(s, course), recipients):
            if outcome.ok:
                report.sent.append(outcome.item.id)
            else:
                report.failed.append(outcome.item.id)

        logger.info("Absence warnings for %s: %d sent, %d failed, %d without e-mail",
                    course.code, len(report.sent), len(report.failed), len(report.missing_email))
        return report

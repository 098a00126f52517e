"""
Student registration wizard.

Collects personal information, a face photo and the courses to join, then
registers the student with three sequential backend calls:

1. create the user account (role STUDENT) and obtain the student id
2. upload the face photo for that student
3. enroll the student in every selected course, concurrently

The calls are not transactional. A failed step keeps what earlier steps
produced and ``retry()`` continues from the failed step.
"""
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from ..api import endpoints
from ..api.client import ApiClient
from ..api.models import Course
from ..errors import PortalError, ValidationError
from ..utils.camera_utils import CaptureSession
from ..utils.concurrency import run_all_settled
from ..utils.validation import validate_registration

logger = logging.getLogger(__name__)

PHOTO_REQUIRED = "A face photo is required."
COURSE_REQUIRED = "Select at least one course."
MISSING_STUDENT_ID = "The registration response did not contain a student id."
ENROLLMENT_FAILED = "Some course enrollments failed:"


class StepStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class FormStep(Enum):
    INFO = 1
    PHOTO = 2
    COURSES = 3


# Backend calls in execution order
SUBMIT_STEPS = ("register", "face", "enroll")


class RegistrationWizard:
    """
    State of one registration form plus the submit workflow.
    """

    def __init__(self, client: ApiClient, capture: Optional[CaptureSession] = None):
        """
        Initialize the wizard.

        Args:
            client (ApiClient): Backend client; authenticated when a teacher
                registers a student, anonymous for self-registration
            capture (CaptureSession): Photo source for the second form step
        """
        self.client = client
        self.capture = capture or CaptureSession()
        self.courses: List[Course] = []
        self.reset()

    def reset(self) -> None:
        """Clear every field and release the camera."""
        self.capture.reset()
        self.form_step = FormStep.INFO
        self.info: Dict[str, str] = {}
        self.selected_course_ids: List[int] = []
        self.statuses = {name: StepStatus.IDLE for name in SUBMIT_STEPS}
        self.student_id: Optional[int] = None
        self.pending_course_ids: List[int] = []
        self.enrolled_course_ids: List[int] = []
        self.error: Optional[str] = None
        self.success = False

    # ------------------------------------------------------------------ #
    # Form navigation
    # ------------------------------------------------------------------ #

    def load_courses(self) -> List[Course]:
        self.courses = endpoints.list_courses(self.client)
        return self.courses

    def set_info(self, data: Dict[str, Any]) -> Dict[str, str]:
        self.info = validate_registration(data)
        return self.info

    def toggle_course(self, course_id: int) -> None:
        if course_id in self.selected_course_ids:
            self.selected_course_ids.remove(course_id)
        else:
            self.selected_course_ids.append(course_id)

    def next_step(self) -> FormStep:
        """Advance the form after checking the current step."""
        if self.form_step == FormStep.INFO:
            validate_registration(self.info)
            self.form_step = FormStep.PHOTO
        elif self.form_step == FormStep.PHOTO:
            if not self.capture.has_photo:
                raise ValidationError(PHOTO_REQUIRED, field="photo")
            self.form_step = FormStep.COURSES
        return self.form_step

    def previous_step(self) -> FormStep:
        if self.form_step == FormStep.COURSES:
            self.form_step = FormStep.PHOTO
        elif self.form_step == FormStep.PHOTO:
            self.form_step = FormStep.INFO
        return self.form_step

    def validate(self) -> None:
        """
        Check everything needed before the first backend call.

        Raises:
            ValidationError: Invalid info, missing photo or no course
        """
        self.info = validate_registration(self.info)
        if not self.capture.has_photo:
            raise ValidationError(PHOTO_REQUIRED, field="photo")
        if not self.selected_course_ids:
            raise ValidationError(COURSE_REQUIRED, field="courses")

    # ------------------------------------------------------------------ #
    # Submission
    # ------------------------------------------------------------------ #

    @property
    def failed_step(self) -> Optional[str]:
        for name in SUBMIT_STEPS:
            if self.statuses[name] == StepStatus.ERROR:
                return name
        return None

    def submit(self) -> int:
        """
        Validate and run all three backend calls.

        Returns:
            int: The new student id

        Raises:
            ValidationError: Nothing was sent
            PortalError: A backend step failed; ``statuses`` tells which
        """
        self.error = None
        try:
            self.validate()
        except ValidationError as e:
            self.error = e.message
            raise

        self.statuses = {name: StepStatus.IDLE for name in SUBMIT_STEPS}
        self.student_id = None
        self.pending_course_ids = list(self.selected_course_ids)
        self.enrolled_course_ids = []
        self.success = False
        return self._run_from("register")

    def retry(self) -> int:
        """
        Continue a failed submission from the step that failed.

        The account is not created again once a student id exists and
        only the course enrollments that failed are repeated.
        """
        step = self.failed_step
        if step is None:
            if self.success and self.student_id is not None:
                return self.student_id
            return self.submit()
        if not self.selected_course_ids:
            self.error = COURSE_REQUIRED
            raise ValidationError(COURSE_REQUIRED, field="courses")
        return self._run_from(step)

    def _run_from(self, first_step: str) -> int:
        self.error = None
        start = SUBMIT_STEPS.index(first_step)
        runners = {
            "register": self._register,
            "face": self._upload_face,
            "enroll": self._enroll,
        }
        for name in SUBMIT_STEPS[start:]:
            self.statuses[name] = StepStatus.LOADING
            try:
                runners[name]()
            except PortalError as e:
                self.statuses[name] = StepStatus.ERROR
                self.error = e.message
                logger.warning("Registration step %s failed: %s", name, e.message)
                raise
            self.statuses[name] = StepStatus.SUCCESS

        self.success = True
        logger.info("Student %s registered and enrolled in %d course(s)",
                    self.student_id, len(self.selected_course_ids))
        return self.student_id

    def _register(self) -> None:
        payload = dict(self.info, role="STUDENT")
        response = endpoints.register_user(self.client, payload)
        student_id = response.get("student_id")
        if student_id is None and isinstance(response.get("student"), dict):
            student_id = response["student"].get("id")
        if student_id is None:
            raise PortalError(MISSING_STUDENT_ID)
        self.student_id = int(student_id)

    def _upload_face(self) -> None:
        endpoints.upload_face(self.client, self.student_id, self.capture.photo.as_upload())

    def _enroll(self) -> None:
        # Selection may change between a failure and retry().
        pending = [c for c in self.selected_course_ids if c not in self.enrolled_course_ids]
        outcomes = run_all_settled(
            lambda course_id: endpoints.enroll_student(self.client, course_id, self.student_id),
            pending,
        )
        self.enrolled_course_ids.extend(outcome.item for outcome in outcomes if outcome.ok)
        failed = [outcome for outcome in outcomes if not outcome.ok]
        self.pending_course_ids = [outcome.item for outcome in failed]
        if failed:
            details = ", ".join(
                f"{self._course_label(outcome.item)}: {outcome.error.message}" for outcome in failed
            )
            raise PortalError(f"{ENROLLMENT_FAILED} {details}")

    def _course_label(self, course_id: int) -> str:
        for course in self.courses:
            if course.id == course_id:
                return course.code or str(course_id)
        return str(course_id)

"""
Main entry point for the face recognition attendance portal.
"""
import argparse
import getpass
import importlib.util
import logging
import os
import sys
import time
from datetime import date

from attendance_portal.attendance.service import take_attendance
from attendance_portal.api import endpoints
from attendance_portal.auth.session import SessionManager
from attendance_portal.config import setup_logging
from attendance_portal.config.settings import (
    ATTENDANCE_TYPES, CAMERA_INDEX, DEFAULT_ABSENCE_LIMIT, FRAME_WIDTH, FRAME_HEIGHT
)
from attendance_portal.courses.service import teacher_courses
from attendance_portal.errors import PortalError
from attendance_portal.reports import (
    AbsenceMailer, absence_frame, absence_summaries, create_absence_workbook, filter_absences
)
from attendance_portal.utils.camera_utils import CameraStream, CaptureSession
from attendance_portal.utils.image_validation import read_photo

logger = logging.getLogger(__name__)


def _require_session() -> SessionManager:
    manager = SessionManager()
    if not manager.restore():
        raise PortalError("Not logged in. Run 'attendance-portal login' first.")
    return manager


def _find_course(manager: SessionManager, course_ref: str):
    for course in teacher_courses(manager.client, manager.teacher_id):
        if str(course.id) == course_ref or course.code.lower() == course_ref.lower():
            return course
    raise PortalError(f"Course not found: {course_ref}")


def run_web(args):
    """Start the Streamlit portal."""
    spec = importlib.util.find_spec("web_app")
    if spec is None or spec.origin is None:
        raise PortalError("web_app.py could not be found.")

    from streamlit.web import cli as stcli

    sys.argv = ["streamlit", "run", spec.origin, "--server.port", str(args.port)]
    if args.headless:
        sys.argv += ["--server.headless", "true"]
    sys.exit(stcli.main())


def run_login(args):
    manager = SessionManager()
    if args.api_url:
        manager.set_api_url(args.api_url)
    password = args.password or getpass.getpass("Password: ")
    route = manager.login(args.email, password)
    print(f"Logged in as {manager.user.full_name} ({manager.role}) -> {route}")


def run_logout(args):
    SessionManager().logout()
    print("Logged out")


def run_courses(args):
    manager = _require_session()
    if manager.teacher_id:
        courses = teacher_courses(manager.client, manager.teacher_id)
    else:
        courses = endpoints.get_student_courses(manager.client, manager.student_id)
    if not courses:
        print("No courses found")
        return
    for course in courses:
        print(f"{course.id:>5}  {course.code:<10}  {course.name}  ({course.semester})")


def _capture_from_camera(camera_index: int, warmup: float):
    capture = CaptureSession()
    capture.open_camera(CameraStream(camera_index, FRAME_WIDTH, FRAME_HEIGHT))
    try:
        # Let exposure settle before grabbing the frame
        time.sleep(warmup)
        return capture.capture()
    finally:
        capture.reset()


def run_take_attendance(args):
    manager = _require_session()
    course = _find_course(manager, args.course)

    if args.photo:
        photo = read_photo(args.photo)
    else:
        photo = _capture_from_camera(args.camera, args.warmup)

    result = take_attendance(manager.client, course.id, args.date, args.lesson, args.type, photo)

    print(f"\nAttendance #{result.attendance_id} for {course.label}")
    print(f"Recognized: {result.recognized_count}  Unrecognized: {result.unrecognized_count}")
    print(f"Present: {result.present_count}  Absent: {result.absent_count}")
    if result.emotion_statistics:
        emotions = ", ".join(f"{k}: {v}" for k, v in sorted(result.emotion_statistics.items()))
        print(f"Emotions: {emotions}")
    for detail in result.results:
        confidence = f"{detail.confidence:.2f}" if detail.confidence is not None else "-"
        print(f"  {detail.student_number:<12} {detail.full_name:<30} {detail.status:<8} {confidence}")


def run_report(args):
    manager = _require_session()
    course = _find_course(manager, args.course)
    records = endpoints.get_course_attendance(manager.client, course.id)
    rows = filter_absences(absence_summaries(records), args.search, args.limit)

    if not rows:
        print(f"No students with at least {args.limit} absences")
        return
    print(absence_frame(rows).to_string(index=False))

    if args.export:
        data, filename, _ = create_absence_workbook(rows, course.code)
        path = os.path.join(args.export, filename) if os.path.isdir(args.export) else args.export
        with open(path, "wb") as f:
            f.write(data)
        print(f"\nSaved {path}")

    if args.email:
        report = AbsenceMailer().send_warnings(rows, course)
        print(f"\nE-mails sent: {len(report.sent)}, failed: {report.error_count}")


def main():
    """Main entry point for the attendance portal."""
    parser = argparse.ArgumentParser(
        description="Face Recognition Attendance Portal",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Web UI command
    web_parser = subparsers.add_parser("web", help="Start the web portal")
    web_parser.add_argument("--port", type=int, default=8501, help="Port (default: 8501)")
    web_parser.add_argument("--headless", action="store_true", help="Do not open a browser")

    # Session commands
    login_parser = subparsers.add_parser("login", help="Log in and store the session")
    login_parser.add_argument("email", help="Account e-mail")
    login_parser.add_argument("--password", help="Password (prompted if omitted)")
    login_parser.add_argument("--api-url", help="Backend URL, e.g. http://localhost:8000")

    subparsers.add_parser("logout", help="Forget the stored session")
    subparsers.add_parser("courses", help="List your courses")

    # Attendance command
    take_parser = subparsers.add_parser("take-attendance", help="Take attendance from a class photo")
    take_parser.add_argument("course", help="Course id or code")
    take_parser.add_argument("--date", default=date.today().isoformat(), help="Lesson date (default: today)")
    take_parser.add_argument("--lesson", type=int, default=1, help="Lesson number (default: 1)")
    take_parser.add_argument("--type", choices=ATTENDANCE_TYPES, default="FACE",
                             help="Attendance type (default: FACE)")
    source = take_parser.add_mutually_exclusive_group()
    source.add_argument("--photo", help="Path of a JPEG or PNG class photo")
    source.add_argument("--camera", type=int, default=CAMERA_INDEX,
                        help=f"Capture from this camera (default: {CAMERA_INDEX})")
    take_parser.add_argument("--warmup", type=float, default=1.0,
                             help="Seconds to wait before capturing (default: 1.0)")

    # Report command
    report_parser = subparsers.add_parser("report", help="Absence report for a course")
    report_parser.add_argument("course", help="Course id or code")
    report_parser.add_argument("--limit", type=int, default=DEFAULT_ABSENCE_LIMIT,
                               help=f"Minimum absences (default: {DEFAULT_ABSENCE_LIMIT})")
    report_parser.add_argument("--search", default="", help="Filter by student name")
    report_parser.add_argument("--export", help="Write an .xlsx file (path or directory)")
    report_parser.add_argument("--email", action="store_true", help="Send warning e-mails")

    args = parser.parse_args()
    setup_logging("DEBUG" if args.verbose else None)

    commands = {
        "web": run_web,
        "login": run_login,
        "logout": run_logout,
        "courses": run_courses,
        "take-attendance": run_take_attendance,
        "report": run_report,
    }
    if args.command not in commands:
        # If no command is provided, show help
        parser.print_help()
        return

    try:
        commands[args.command](args)
    except PortalError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

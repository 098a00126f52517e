"""
Global settings for the Face Recognition Attendance Portal.
"""
import os
from pathlib import Path

# Base directories
PROJECT_ROOT = Path(__file__).parent.parent.absolute()
DATA_DIR = os.getenv("ATTENDANCE_DATA_DIR", os.path.join(PROJECT_ROOT, "data"))
LOGS_DIR = os.path.join(DATA_DIR, "logs")

# Ensure directories exist
for directory in [DATA_DIR, LOGS_DIR]:
    os.makedirs(directory, exist_ok=True)

# Local session storage (token, api url, ui preferences)
SESSION_FILE = os.path.join(DATA_DIR, "session.json")

# Backend API settings
DEFAULT_API_URL = os.getenv("ATTENDANCE_API_URL", "http://localhost:8000")
API_PREFIX = "/api"
REQUEST_TIMEOUT = float(os.getenv("ATTENDANCE_REQUEST_TIMEOUT", "30"))  # Seconds
MAX_PARALLEL_REQUESTS = 8  # Worker threads for fan-out calls

# Photo settings
MAX_PHOTO_BYTES = 5 * 1024 * 1024  # 5 MB
ALLOWED_PHOTO_TYPES = ("image/jpeg", "image/png")
JPEG_QUALITY = 90
CAPTURE_FILENAME = "webcam-photo.jpg"

# Camera settings
CAMERA_INDEX = 0
FRAME_WIDTH = 640
FRAME_HEIGHT = 480
STUN_SERVERS = ["stun:stun.l.google.com:19302"]

# Validation rules
MIN_PASSWORD_LENGTH = 6
COURSE_CODE_LENGTH = (3, 10)
COURSE_NAME_LENGTH = (5, 100)
COURSE_SEMESTER_LENGTH = (5, 50)
COURSE_DESCRIPTION_MAX = 500

# Attendance settings
ATTENDANCE_TYPES = ("FACE", "EMOTION", "FACE_EMOTION")
ATTENDANCE_STATUSES = ("PRESENT", "ABSENT", "LATE", "EXCUSED")
ATTENDED_STATUSES = ("PRESENT", "LATE")
MAX_LESSON_NUMBER = 12
WEEK_DAYS = (
    "MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY",
    "FRIDAY", "SATURDAY", "SUNDAY",
)

# Report settings
DEFAULT_ABSENCE_LIMIT = 3
REPORT_SHEET_NAME = "Absence Report"

# Reminder e-mail service (server-side configuration only)
EMAILJS_API_URL = os.getenv("EMAILJS_API_URL", "https://api.emailjs.com/api/v1.0/email/send")
EMAILJS_SERVICE_ID = os.getenv("EMAILJS_SERVICE_ID", "")
EMAILJS_TEMPLATE_ID = os.getenv("EMAILJS_TEMPLATE_ID", "")
EMAILJS_PUBLIC_KEY = os.getenv("EMAILJS_PUBLIC_KEY", "")
EMAILJS_PRIVATE_KEY = os.getenv("EMAILJS_PRIVATE_KEY", "")

# UI settings
SUPPORTED_LANGUAGES = ("tr", "en")
DEFAULT_LANGUAGE = os.getenv("ATTENDANCE_LANGUAGE", "tr")
DEFAULT_THEME = "light"

# Logging settings
LOG_LEVEL = os.getenv("ATTENDANCE_LOG_LEVEL", "INFO")
ENABLE_FILE_LOGGING = True
LOG_FILE = os.path.join(LOGS_DIR, "portal.log")

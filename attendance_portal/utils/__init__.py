"""
Utility functions for the attendance portal.
"""

from .validation import validate_email, validate_password, validate_login, validate_registration
from .image_validation import PhotoFile, validate_photo, read_photo
from .camera_utils import CameraStream, CaptureState, CaptureSession, encode_jpeg
from .concurrency import Settled, run_all_settled

__all__ = [
    'validate_email', 'validate_password', 'validate_login', 'validate_registration',
    'PhotoFile', 'validate_photo', 'read_photo',
    'CameraStream', 'CaptureState', 'CaptureSession', 'encode_jpeg',
    'Settled', 'run_all_settled'
]

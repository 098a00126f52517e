"""
Configuration module for attendance portal
"""

from .settings import *
from .logging_config import setup_logging

__all__ = [
    'DEFAULT_API_URL',
    'REQUEST_TIMEOUT',
    'MAX_PHOTO_BYTES',
    'ALLOWED_PHOTO_TYPES',
    'SESSION_FILE',
    'setup_logging'
]

"""
Student registration with face photo and course enrollment.
"""

from .wizard import RegistrationWizard, StepStatus, FormStep, PHOTO_REQUIRED, COURSE_REQUIRED

__all__ = ['RegistrationWizard', 'StepStatus', 'FormStep', 'PHOTO_REQUIRED', 'COURSE_REQUIRED']

"""
Face recognition attendance portal.

Web and command line client for the attendance backend: course and student
management, attendance from a class photo, dashboards and absence reports.
"""

__version__ = "1.0.0"

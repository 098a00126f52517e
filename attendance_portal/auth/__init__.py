"""
Login session management.
"""

from .session import SessionManager, SessionStore, LANDING_ROUTES, LOGIN_ROUTE, ROLE_TEACHER, ROLE_STUDENT

__all__ = ['SessionManager', 'SessionStore', 'LANDING_ROUTES', 'LOGIN_ROUTE', 'ROLE_TEACHER', 'ROLE_STUDENT']

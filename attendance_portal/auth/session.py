"""
Login session handling.

The SessionManager is the only object that changes the session: bearer
token, current user, role and teacher id. Token, API URL and UI
preferences are persisted to a small JSON file so a restart can resume.
"""
import json
import logging
import os
import threading
from typing import Any, Dict, Optional

from ..api import endpoints
from ..api.client import ApiClient
from ..api.models import User
from ..config.settings import SESSION_FILE, DEFAULT_API_URL, DEFAULT_LANGUAGE, DEFAULT_THEME
from ..errors import PortalError, ValidationError
from ..utils.validation import validate_email, validate_login

logger = logging.getLogger(__name__)

ROLE_TEACHER = "TEACHER"
ROLE_STUDENT = "STUDENT"

LANDING_ROUTES = {
    ROLE_TEACHER: "teacher_dashboard",
    ROLE_STUDENT: "student_dashboard",
}
LOGIN_ROUTE = "login"


class SessionStore:
    """JSON file holding the persisted part of the session."""

    def __init__(self, path: Optional[str] = SESSION_FILE):
        self.path = path
        # 401 teardown may run on several fan-out threads at once
        self._lock = threading.Lock()

    def load(self) -> Dict[str, Any]:
        if not self.path or not os.path.exists(self.path):
            return {}
        try:
            with self._lock, open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, data: Dict[str, Any]) -> None:
        if not self.path:
            return
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with self._lock:
            self._write(data)

    def _write(self, data: Dict[str, Any]) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)


class SessionManager:
    """
    Current login plus the API client bound to it.
    """

    def __init__(self, store: Optional[SessionStore] = None, session=None):
        """
        Initialize the manager from the persisted state.

        Args:
            store (SessionStore): Persistence; defaults to SESSION_FILE
            session: requests.Session compatible object for the API client
        """
        self.store = store or SessionStore()
        saved = self.store.load()

        self.token: Optional[str] = saved.get("token") or None
        self.user: Optional[User] = None
        self.language: str = saved.get("language") or DEFAULT_LANGUAGE
        self.theme: str = saved.get("theme") or DEFAULT_THEME

        self.client = ApiClient(
            base_url=saved.get("api_url") or DEFAULT_API_URL,
            token_provider=lambda: self.token,
            session=session,
            on_unauthorized=self._on_unauthorized,
        )

    # ------------------------------------------------------------------ #
    # Read-only views
    # ------------------------------------------------------------------ #

    @property
    def api_url(self) -> str:
        return self.client.base_url

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token) and self.user is not None

    @property
    def role(self) -> Optional[str]:
        return self.user.role if self.user else None

    @property
    def teacher_id(self) -> Optional[int]:
        if self.user is None or self.user.role != ROLE_TEACHER:
            return None
        return self.user.teacher_id

    @property
    def student_id(self) -> Optional[int]:
        if self.user is None or self.user.role != ROLE_STUDENT:
            return None
        return self.user.student_id

    @property
    def landing_route(self) -> str:
        return LANDING_ROUTES.get(self.role, LOGIN_ROUTE)

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def login(self, email: str, password: str) -> str:
        """
        Exchange credentials for a token and load the current user.

        Args:
            email (str): Account e-mail
            password (str): Account password

        Returns:
            str: Landing route for the user's role

        Raises:
            ValidationError: Bad input or unknown role
            ApiError: Backend rejected the login or is unreachable
        """
        credentials = validate_login(email, password)
        self.clear()

        try:
            response = endpoints.login(self.client, credentials["email"], credentials["password"])
            token = response.get("access_token")
            if not token:
                raise ValidationError("Login response did not contain a token.")
            self.token = token

            user = endpoints.get_me(self.client)
            if user.role not in LANDING_ROUTES:
                raise ValidationError("Unknown user role.")
            self.user = user
        except PortalError:
            self.clear()
            raise

        self._persist()
        logger.info("Logged in user %s as %s", self.user.id, self.user.role)
        return LANDING_ROUTES[self.user.role]

    def restore(self) -> bool:
        """
        Validate a persisted token by loading the current user.

        Returns:
            bool: True if the session is usable
        """
        if not self.token:
            return False
        try:
            user = endpoints.get_me(self.client)
        except PortalError as e:
            logger.info("Stored session rejected: %s", e.message)
            self.clear()
            return False
        if user.role not in LANDING_ROUTES:
            self.clear()
            return False
        self.user = user
        return True

    def logout(self) -> str:
        self.clear()
        logger.info("Logged out")
        return LOGIN_ROUTE

    def clear(self) -> None:
        """Drop token and user, keeping API URL and preferences."""
        self.token = None
        self.user = None
        self._persist()

    def set_api_url(self, url: str) -> str:
        self.client.base_url = url
        self._persist()
        return self.client.base_url

    def set_language(self, language: str) -> None:
        self.language = language
        self._persist()

    def set_theme(self, theme: str) -> None:
        self.theme = theme
        self._persist()

    def request_password_reset(self, email: str) -> None:
        email = validate_email(email)
        endpoints.request_password_reset(self.client, email)
        logger.info("Password reset requested")

    def update_profile(self, first_name: str, last_name: str) -> User:
        """
        Change the current user's name and reload the user.

        Returns:
            User: The refreshed user
        """
        first_name = (first_name or "").strip()
        last_name = (last_name or "").strip()
        if not first_name:
            raise ValidationError("First name is required.", field="first_name")
        if not last_name:
            raise ValidationError("Last name is required.", field="last_name")

        endpoints.update_me(self.client, first_name, last_name)
        self.user = endpoints.get_me(self.client)
        return self.user

    def _on_unauthorized(self) -> None:
        if self.token:
            logger.info("Backend answered 401, clearing session")
            self.clear()

    def _persist(self) -> None:
        try:
            self.store.save({
                "token": self.token,
                "api_url": self.client.base_url,
                "language": self.language,
                "theme": self.theme,
            })
        except OSError as e:
            logger.error("Could not write session file: %s", e)

"""
Form validation helpers.

All checks raise ValidationError before anything is sent to the backend.
"""
import re
from typing import Any, Dict

from ..config.settings import MIN_PASSWORD_LENGTH
from ..errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

REGISTRATION_FIELDS = (
    ("first_name", "First name is required."),
    ("last_name", "Last name is required."),
    ("student_number", "Student number is required."),
    ("department", "Department is required."),
)


def is_valid_email(email: str) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email.strip()) is not None


def validate_email(email: str) -> str:
    """
    Check an e-mail address.

    Args:
        email (str): Address typed by the user

    Returns:
        str: The stripped address

    Raises:
        ValidationError: If the address is empty or malformed
    """
    email = (email or "").strip()
    if not email:
        raise ValidationError("E-mail is required.", field="email")
    if not is_valid_email(email):
        raise ValidationError("Please enter a valid e-mail address.", field="email")
    return email


def validate_password(password: str) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters.", field="password"
        )
    return password


def validate_login(email: str, password: str) -> Dict[str, str]:
    return {"email": validate_email(email), "password": validate_password(password)}


def validate_registration(data: Dict[str, Any]) -> Dict[str, str]:
    """
    Validate the personal information step of student registration.

    Args:
        data (Dict[str, Any]): first_name, last_name, email, password,
            student_number and department

    Returns:
        Dict[str, str]: Cleaned values

    Raises:
        ValidationError: On the first invalid field
    """
    cleaned = {}
    for key, message in REGISTRATION_FIELDS:
        value = str(data.get(key) or "").strip()
        if not value:
            raise ValidationError(message, field=key)
        cleaned[key] = value
    cleaned["email"] = validate_email(data.get("email") or "")
    cleaned["password"] = validate_password(data.get("password") or "")
    return cleaned

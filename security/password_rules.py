import re
from typing import Tuple

MIN_PASSWORD_LENGTH = 7


def validate_password_strength(password: str) -> Tuple[bool, str]:
    """
    Validate an admin password against the required policy:
      - At least 7 characters
      - At least one letter
      - At least one digit
    Returns a tuple (is_valid, message). Message is empty when valid.
    """
    if not isinstance(password, str) or not password:
        return False, "Password is required."
    if len(password) < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
    if not re.search(r"[A-Za-z]", password):
        return False, "Password must include at least one letter."
    if not re.search(r"[0-9]", password):
        return False, "Password must include at least one numeric digit."
    return True, ""


def assert_passwords_match(password: str, confirm_password: str) -> None:
    """
    Raise ValueError if the password and confirmation do not match.
    """
    if password != confirm_password:
        raise ValueError("Password and confirmation do not match.")

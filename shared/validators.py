"""
Input validation rules shared by the auth, user and admin routes.
"""

import re

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9._]+$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 15
PASSWORD_MIN_LENGTH = 8
FOLDER_NAME_MAX_LENGTH = 10


def is_valid_username(username: str | None) -> bool:
    if not username:
        return False
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        return False
    return bool(USERNAME_PATTERN.fullmatch(username))


def is_valid_email(email: str | None) -> bool:
    return bool(email) and bool(EMAIL_PATTERN.fullmatch(email))


def is_valid_password(password: str | None) -> bool:
    return bool(password) and len(password) >= PASSWORD_MIN_LENGTH


def is_valid_folder_name(name: str | None) -> bool:
    if not name or len(name) > FOLDER_NAME_MAX_LENGTH:
        return False
    return not any(char.isspace() for char in name)


def normalize_email(email: str) -> str:
    return email.strip().lower()

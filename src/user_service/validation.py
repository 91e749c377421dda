"""Field rules shared by request schemas and path parameters."""

import re

from bson import ObjectId

PASSWORD_MIN_LENGTH = 8
# bcrypt ignores anything past 72 bytes
PASSWORD_MAX_BYTES = 72

_LETTER = re.compile(r"[a-zA-Z]")
_DIGIT = re.compile(r"\d")
_OBJECT_ID = re.compile(r"^[0-9a-fA-F]{24}$")


def validate_password(value: str) -> str:
    """Return ``value`` if it is an acceptable password, else raise ValueError."""
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"password must be at most {PASSWORD_MAX_BYTES} bytes")
    if not _LETTER.search(value) or not _DIGIT.search(value):
        raise ValueError("password must contain at least 1 letter and 1 number")
    return value


def is_valid_object_id(value: str) -> bool:
    # ObjectId.is_valid also accepts 12-byte strings
    return bool(_OBJECT_ID.match(value)) and ObjectId.is_valid(value)

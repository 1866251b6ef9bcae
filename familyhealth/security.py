"""Input sanitisation and identifier validation helpers."""

import json
import re
from typing import Any

from familyhealth.errors import InvalidIdentifierError

MAX_LOG_LENGTH = 1000
MAX_INPUT_LENGTH = 1000
MAX_ID_LENGTH = 100

_CONTROL_WHITESPACE = re.compile(r"[\r\n\t]")


def sanitize_for_log(value: Any) -> str:
    """Flatten a value into a single log-safe line of at most 1000 characters."""
    if isinstance(value, BaseException):
        to_dict = getattr(value, "to_dict", None)
        text = json.dumps(to_dict(), default=str) if callable(to_dict) else str(value)
    elif isinstance(value, str):
        text = value
    else:
        text = json.dumps(value, default=str)
    return _CONTROL_WHITESPACE.sub(" ", text)[:MAX_LOG_LENGTH]


def _validate(value: Any, label: str) -> str:
    if not value or not isinstance(value, str) or len(value) >= MAX_ID_LENGTH:
        raise InvalidIdentifierError(f"Invalid {label}")
    return value


def validate_user_id(user_id: Any) -> str:
    return _validate(user_id, "user ID")


def validate_id(record_id: Any) -> str:
    return _validate(record_id, "ID")


def sanitize_input(text: Any) -> str:
    if not text or not isinstance(text, str):
        return ""
    return text.strip()[:MAX_INPUT_LENGTH]

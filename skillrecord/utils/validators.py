"""Field validation for JSON and form payloads.

Each ``*_field`` helper reads one key from ``data``, records a message in
``errors`` when the value is unusable and returns the cleaned value.
Views collect all messages and raise a single ValidationError.
"""
from datetime import datetime
import re

from ..errors import ValidationError

EMAIL_RE = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
MIN_PASSWORD_LENGTH = 6

_MISSING = object()


def validate_email(email):
    """Validate email format"""
    if not email or not isinstance(email, str) or not EMAIL_RE.match(email):
        return "Please enter a valid email address."
    return None


def validate_password(password):
    """Validate password requirements"""
    if not password or not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
    return None


def raise_for(errors):
    if errors:
        raise ValidationError(errors=errors)


def text_field(data, name, errors, required=False, default=None):
    value = data.get(name, _MISSING)
    if value is _MISSING or value is None or (isinstance(value, str) and not value.strip()):
        if required:
            errors[name] = "This field is required."
        return default
    if not isinstance(value, str):
        errors[name] = "Must be a string."
        return default
    return value.strip()


def int_field(data, name, errors, required=False, default=None, minimum=None, maximum=None):
    value = data.get(name, _MISSING)
    if value is _MISSING or value is None or value == '':
        if required:
            errors[name] = "This field is required."
        return default
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool):
        errors[name] = "Must be an integer."
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        errors[name] = "Must be an integer."
        return default
    if isinstance(value, float) and value != number:
        errors[name] = "Must be an integer."
        return default
    if minimum is not None and number < minimum:
        errors[name] = f"Must be at least {minimum}."
        return default
    if maximum is not None and number > maximum:
        errors[name] = f"Must be at most {maximum}."
        return default
    return number


def bool_field(data, name, errors, default=None):
    value = data.get(name, _MISSING)
    if value is _MISSING or value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ('true', 'false', '1', '0'):
        return value.lower() in ('true', '1')
    errors[name] = "Must be a boolean."
    return default


def choice_field(data, name, errors, choices, required=False, default=None):
    value = data.get(name, _MISSING)
    if value is _MISSING or value is None or value == '':
        if required:
            errors[name] = "This field is required."
        return default
    if value not in choices:
        errors[name] = f"Must be one of: {', '.join(choices)}."
        return default
    return value


def date_field(data, name, errors, required=False):
    value = data.get(name, _MISSING)
    if value is _MISSING or value is None or value == '':
        if required:
            errors[name] = "This field is required."
        return None
    if not isinstance(value, str):
        errors[name] = "Must be an ISO date."
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00')).replace(tzinfo=None)
    except ValueError:
        errors[name] = "Must be an ISO date."
        return None


def string_list_field(data, name, errors):
    value = data.get(name, _MISSING)
    if value is _MISSING:
        return _MISSING
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        errors[name] = "Must be a list of strings."
        return _MISSING
    return value


def int_list_field(data, name, errors, required=False):
    value = data.get(name, _MISSING)
    if value is _MISSING or value is None:
        if required:
            errors[name] = "This field is required."
        return None
    if not isinstance(value, list) or not all(
        isinstance(item, int) and not isinstance(item, bool) for item in value
    ):
        errors[name] = "Must be a list of integers."
        return None
    return value


def is_missing(value):
    return value is _MISSING

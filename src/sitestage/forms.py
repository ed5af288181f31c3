"""Contact form validation."""

import re
from collections.abc import Mapping
from dataclasses import dataclass

from sitestage.errors import MalformedRequest

BAD_FORM_INPUT = "Bad form input."

EMAIL_RE = re.compile(
    r"^(([^<>()\[\]\\.,;:\s@\"]+(\.[^<>()\[\]\\.,;:\s@\"]+)*)|(\".+\"))@"
    r"((\[[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\])|(([a-zA-Z\-0-9]+\.)+[a-zA-Z]{2,}))$",
)

# Matched case-sensitively against every field
BANNED_WORDS = (
    "SELECT",
    "DROP",
    "UPDATE",
    "UNION",
    "ALTER",
    "CREATE",
    "DELETE",
    "EXISTS",
    "EXEC",
    "INSERT",
    "JOIN",
    "ORDER",
    "TRUNCATE",
)

# Field name -> (min length, max length)
FIELD_LENGTHS = {
    "name": (5, 50),
    "email": (7, 50),
    "subject": (10, 50),
    "message": (20, 280),
}


@dataclass(frozen=True)
class ContactMessage:
    """Validated contact form content."""

    name: str
    email: str
    subject: str
    message: str


def is_valid_email(value: str) -> bool:
    return EMAIL_RE.match(value) is not None


def contains_sql(value: str) -> bool:
    """Check for words that suggest an SQL injection attempt."""
    return any(word in value for word in BANNED_WORDS)


def validate_contact_form(form: Mapping[str, str]) -> ContactMessage:
    """Validate submitted contact form fields.

    Args:
        form: Decoded form fields

    Returns:
        ContactMessage built from the form

    Raises:
        MalformedRequest: If a field is missing, has the wrong length,
            the email is malformed, or a field contains an SQL keyword
    """
    values: dict[str, str] = {}
    for field_name, (min_length, max_length) in FIELD_LENGTHS.items():
        value = form.get(field_name)
        if value is None:
            raise MalformedRequest(BAD_FORM_INPUT)
        if not min_length <= len(value) <= max_length:
            raise MalformedRequest(BAD_FORM_INPUT)
        if contains_sql(value):
            raise MalformedRequest(BAD_FORM_INPUT)
        values[field_name] = value

    if not is_valid_email(values["email"]):
        raise MalformedRequest(BAD_FORM_INPUT)

    return ContactMessage(**values)

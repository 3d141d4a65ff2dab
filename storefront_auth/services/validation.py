"""Input normalisation for emails and profile names."""

from email_validator import EmailNotValidError, validate_email
from markupsafe import escape

from storefront_auth.errors import ValidationError

NAME_MAX_LENGTH = 50


def normalize_email(email: str) -> str:
    """Trim and lowercase. No provider-specific alias folding."""
    return email.strip().lower()


def check_email(email: str | None) -> str:
    """Validate email syntax and return the normalized address."""
    if not email or not isinstance(email, str):
        raise ValidationError("Please enter a valid email address")
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("Please enter a valid email address") from None
    return normalize_email(email)


def sanitize_name(value: str | None) -> str:
    """Trim, cap at NAME_MAX_LENGTH characters, then HTML-escape."""
    if value is None:
        return ""
    return str(escape(str(value).strip()[:NAME_MAX_LENGTH]))

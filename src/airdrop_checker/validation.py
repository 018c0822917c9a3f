"""
Suggestion validation.

Every rule is checked independently so the user sees all problems at
once. The checks are pure; nothing here touches the network.
"""

import re
from urllib.parse import urlsplit

from .models import SuggestionInput, ValidationResult

MIN_PROJECT_NAME_LENGTH = 2
MIN_DESCRIPTION_LENGTH = 10

ERROR_PROJECT_NAME = "Le nom du projet doit contenir au moins 2 caractères"
ERROR_DESCRIPTION = "La description doit contenir au moins 10 caractères"
ERROR_OFFICIAL_LINK = "Le lien officiel doit être une URL valide"
ERROR_EMAIL = "L'email n'est pas valide"

# local@domain.tld, no whitespace and a single "@"
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

SCHEME_PATTERN = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*")

# Schemes that cannot be absolute without a host
SPECIAL_SCHEMES = {"http", "https", "ws", "wss", "ftp"}


def is_valid_url(value: str | None) -> bool:
    """
    Check that a string parses as an absolute URL.

    Any scheme is accepted (file:, ftp:, mailto: ...). Web schemes must
    carry a host.
    """
    if not value:
        return False
    candidate = value.strip()
    if not candidate:
        return False

    try:
        parsed = urlsplit(candidate)
        # Raises ValueError on a malformed port
        _ = parsed.port
    except ValueError:
        return False

    if not parsed.scheme or not SCHEME_PATTERN.fullmatch(parsed.scheme):
        return False

    if parsed.scheme.lower() in SPECIAL_SCHEMES:
        if not parsed.netloc:
            # "https:example.com" and "https:/example.com" name a host too
            rest = candidate[len(parsed.scheme) + 1:].lstrip("/\\")
            try:
                parsed = urlsplit(f"{parsed.scheme}://{rest}")
                _ = parsed.port
            except ValueError:
                return False
        if not parsed.hostname:
            return False

    if any(ch.isspace() for ch in parsed.netloc):
        return False

    return True


def is_valid_email(value: str | None) -> bool:
    """Check the simple local-part@domain.tld shape."""
    if not value:
        return False
    return EMAIL_PATTERN.fullmatch(value) is not None


def validate_suggestion(suggestion: SuggestionInput) -> ValidationResult:
    """
    Validate a suggestion, collecting one message per broken rule.

    Order: project name, description, official link, email (only when given).
    """
    errors: list[str] = []

    if len((suggestion.project_name or "").strip()) < MIN_PROJECT_NAME_LENGTH:
        errors.append(ERROR_PROJECT_NAME)

    if len((suggestion.description or "").strip()) < MIN_DESCRIPTION_LENGTH:
        errors.append(ERROR_DESCRIPTION)

    if not is_valid_url(suggestion.official_link):
        errors.append(ERROR_OFFICIAL_LINK)

    if suggestion.email and not is_valid_email(suggestion.email):
        errors.append(ERROR_EMAIL)

    return ValidationResult(errors=errors)

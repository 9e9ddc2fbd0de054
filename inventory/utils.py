import re
import uuid
from html import unescape

import bleach
from django.utils.crypto import get_random_string
from django.utils.text import slugify

from .constants import (
    BOX_SHORT_CODE_ALPHABET,
    BOX_SHORT_CODE_LENGTH,
    QR_SHORT_CODE_ALPHABET,
    QR_SHORT_CODE_LENGTH,
    QR_SHORT_CODE_PATTERN,
    QR_SHORT_CODE_PREFIX,
)


def sanitize_text(text: str) -> str:
    """
    Strip all HTML from user input to prevent XSS attacks.

    The result is plain text: entities bleach would escape are turned back
    into literal characters. Length is left to the model validators, so an
    over-long value is rejected rather than cut.
    """
    if not text:
        return ""

    cleaned = bleach.clean(
        text,
        tags=[],
        attributes={},
        strip=True
    )

    return unescape(cleaned).strip()


def normalize_location_name(name: str) -> str:
    """
    Sibling-comparison key for a location name.

    "Shelf A", "shelf-a" and " SHELF  A " all normalize to "shelf-a", so they
    count as the same name under one parent.
    """
    return slugify(name or "", allow_unicode=True)


def normalize_tags(tags) -> list[str]:
    """Sanitize, trim and de-duplicate tags, keeping first-seen order."""
    seen = set()
    result = []
    for tag in tags or []:
        cleaned = sanitize_text(str(tag))
        key = cleaned.lower()
        if cleaned and key not in seen:
            seen.add(key)
            result.append(cleaned)
    return result


def generate_box_short_code() -> str:
    return get_random_string(BOX_SHORT_CODE_LENGTH, allowed_chars=BOX_SHORT_CODE_ALPHABET)


def generate_qr_short_code() -> str:
    """Return a fresh code in the printed label format, e.g. ``QR-A1B2C3``."""
    return QR_SHORT_CODE_PREFIX + get_random_string(QR_SHORT_CODE_LENGTH, allowed_chars=QR_SHORT_CODE_ALPHABET)


def normalize_qr_short_code(raw: str) -> str | None:
    """
    Upper-case and validate a scanned short code.
    Returns None if it does not match the label format.
    """
    code = (raw or "").strip().upper()
    if not re.match(QR_SHORT_CODE_PATTERN, code):
        return None
    return code


def to_uuid(value) -> uuid.UUID | None:
    """Parse a UUID from user input, returning None when it is malformed."""
    if value is None or isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except (ValueError, TypeError, AttributeError):
        return None

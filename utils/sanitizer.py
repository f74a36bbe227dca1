"""
Sanitization of text taken from uploaded spreadsheet cells.

Every text field passes through ``sanitize`` before it is validated and
stored, so the stored value is also what the export writes back out.
"""
import html
import logging
import re
from typing import List, Optional, Pattern

from utils.errors import MaliciousContentError

logger = logging.getLogger(__name__)

# Checked in order; the first match rejects the value
INJECTION_PATTERNS: List[Pattern[str]] = [
    re.compile(r"<\s*script\b[^>]*>(.*?)<\s*/\s*script\s*>", re.IGNORECASE | re.DOTALL),
    re.compile(r"on\w+\s*=\s*['\"]?[^'\"]+['\"]?", re.IGNORECASE),
    re.compile(r"(javascript:|data:text/html)", re.IGNORECASE),
    re.compile(r"<\s*(iframe|embed|svg|object)\b[^>]*>", re.IGNORECASE),
    re.compile(r"<\s*img\b[^>]*on\w+\s*=", re.IGNORECASE),
    re.compile(r"(document\.cookie|document\.write|window\.location|eval\s*\(|String\.fromCharCode\s*\()", re.IGNORECASE),
]

FORMULA_TRIGGERS = ("=", "+", "-", "@")
# A leading single quote is the text marker itself and is never doubled
HTML_TRIGGERS = ("<", ">", '"', "&")
TEXT_PREFIX = "'"


def check_script_injection(text: Optional[str]) -> None:
    """
    Reject text matching any known script-injection pattern.

    Args:
        text: Decoded text to inspect

    Raises:
        MaliciousContentError: If one of the patterns matches
    """
    if not text:
        return
    for pattern in INJECTION_PATTERNS:
        if pattern.search(text):
            logger.warning("Rejected value matching injection pattern", extra={"pattern": pattern.pattern})
            raise MaliciousContentError()


def sanitize(text: Optional[str]) -> Optional[str]:
    """
    Neutralize a cell value before it is stored.

    HTML entities are decoded first so encoded payloads are still caught.
    Values that would start with a formula or HTML trigger character get a
    leading single quote, which spreadsheet applications render as text.

    Args:
        text: Raw cell text; None and "" are returned unchanged

    Returns:
        The sanitized, trimmed text

    Raises:
        MaliciousContentError: If the decoded text contains an injection pattern
    """
    if not text:
        return text

    decoded = html.unescape(text)
    check_script_injection(decoded)

    # The first character is checked after trimming, and an existing
    # text quote is never doubled
    sanitized = decoded.strip()
    if sanitized.startswith(TEXT_PREFIX):
        # Already quoted as text
        return sanitized
    if sanitized.startswith(FORMULA_TRIGGERS) or sanitized.startswith(HTML_TRIGGERS):
        sanitized = TEXT_PREFIX + sanitized
    return sanitized

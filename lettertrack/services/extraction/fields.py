"""Heuristic extraction of letter fields from OCR text.

Every extractor takes the raw recognized text of one page and returns a
plain value. Pattern lists are ordered: the first pattern that produces a
usable value wins and later patterns are not consulted. Nothing here raises;
bad input or an unexpected failure inside one extractor degrades that single
field to ``""`` (or ``Urgency.LOW``).
"""

import functools
import logging
import re
from datetime import date

from lettertrack.enums import Urgency

logger = logging.getLogger(__name__)

MONTHS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

_MONTH_NAMES = (
    "January|February|March|April|May|June|July|August|September|October|November|December"
    "|Sept|Jan|Feb|Mar|Apr|Jun|Jul|Aug|Sep|Oct|Nov|Dec"
)

# Tried in this order; see extract_date for the day/month ambiguity of the first one
NUMERIC_DATE_RE = re.compile(r"\b(\d{1,2})[-/](\d{1,2})[-/](\d{2,4})\b")
YEAR_FIRST_DATE_RE = re.compile(r"\b(\d{4})[-/](\d{1,2})[-/](\d{1,2})\b")
TEXTUAL_DATE_RE = re.compile(
    rf"\b({_MONTH_NAMES})\.?\s+(\d{{1,2}})(?:st|nd|rd|th)?,?\s+(\d{{4}})\b",
    re.IGNORECASE,
)

TITLE_LABEL_RE = re.compile(r"^(subject|re|reference)\s*:\s*(.+)$", re.IGNORECASE)
TITLE_STOPWORDS = (
    "date",
    "from",
    "to",
    "dear",
    "subject",
    "sincerely",
    "regards",
    "confidential",
)
TITLE_SCAN_LINES = 5
TITLE_MIN_LENGTH = 10
TITLE_MAX_LENGTH = 100

# Case-sensitive on purpose: each accepted capitalisation is spelled out
SENDER_PATTERNS = [
    re.compile(r"\b[Ff]rom:[ \t]*([^\n]*)"),
    re.compile(r"\b[Ss]ender:[ \t]*([^\n]*)"),
    re.compile(r"\b[Ss]incerely,[ \t]*([^\n]*)"),
    re.compile(r"\b[Yy]ours [Ff]aithfully,[ \t]*([^\n]*)"),
    re.compile(r"\b[Yy]ours [Ss]incerely,[ \t]*([^\n]*)"),
]

RECIPIENT_PATTERNS = [
    re.compile(r"\b[Tt]o:[ \t]*([^\n]*)"),
    re.compile(r"\b[Rr]ecipient:[ \t]*([^\n]*)"),
    re.compile(r"\b[Dd]ear[ \t]+(?:(?:(?:Mrs|Mr|Ms|Dr|Prof)\b\.?|Sir\b|Madam\b)[ \t]*)?([^,\n]*)"),
]

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
PHONE_PATTERNS = [
    # International: +256 700 123 456, +44-20-7946-0958
    re.compile(r"\+\d{1,3}[\s.-]?\(?\d{1,4}\)?(?:[\s.-]?\d{2,4}){2,3}"),
    # US/Canada: (555) 123-4567, 555.123.4567
    re.compile(r"\(?\b\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}\b"),
    # 4-3-3 grouping: 0772 123 456
    re.compile(r"\b\d{4}[\s.-]?\d{3}[\s.-]?\d{3}\b"),
]

# Keyword set -> weight. Weights add up across sets, not within one.
URGENCY_KEYWORDS = [
    (("urgent", "immediate", "asap", "emergency", "critical"), 3),
    (("priority", "important", "attention required", "time sensitive"), 2),
    (("attention", "please review", "please respond"), 1),
]
URGENCY_THRESHOLDS = [
    (3, Urgency.URGENT),
    (2, Urgency.HIGH),
    (1, Urgency.MEDIUM),
]


def _has_text(text) -> bool:
    return isinstance(text, str) and bool(text.strip())


def _degrades_to(default):
    """Return ``default`` for non-text input or when the wrapped extractor fails."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(text, *args, **kwargs):
            if not _has_text(text):
                return default
            try:
                return func(text, *args, **kwargs)
            except Exception:
                logger.warning(f"{func.__name__} failed, leaving field empty", exc_info=True)
                return default

        return wrapper

    return decorator


def _lines(text: str) -> list[str]:
    return [line.strip() for line in text.split("\n") if line.strip()]


def _expand_year(year: str) -> int:
    value = int(year)
    if len(year) == 2:
        # Browser Date parsing pivot: 50-99 -> 1900s, 00-49 -> 2000s
        value += 1900 if value >= 50 else 2000
    return value


def _to_iso(year: int, month: int, day: int) -> str | None:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def _parse_numeric(match: re.Match, day_first: bool) -> str | None:
    first, second, year = match.groups()
    month, day = (int(second), int(first)) if day_first else (int(first), int(second))
    return _to_iso(_expand_year(year), month, day)


def _parse_year_first(match: re.Match, day_first: bool) -> str | None:
    year, month, day = match.groups()
    return _to_iso(int(year), int(month), int(day))


def _parse_textual(match: re.Match, day_first: bool) -> str | None:
    month_name, day, year = match.groups()
    return _to_iso(int(year), MONTHS[month_name[:3].lower()], int(day))


DATE_PATTERNS = [
    (NUMERIC_DATE_RE, _parse_numeric),
    (YEAR_FIRST_DATE_RE, _parse_year_first),
    (TEXTUAL_DATE_RE, _parse_textual),
]


@_degrades_to("")
def extract_date(text: str, day_first: bool = False) -> str:
    """
    Find the first recognisable date and return it as ``YYYY-MM-DD``.

    Patterns are tried in order: ``d/m/y`` style numbers, year-first numbers,
    then a month name with day and four-digit year. Only the first match of
    each pattern is considered; if it is not a real calendar date the next
    pattern gets a chance.

    The numeric ``12/08/2025`` shape is ambiguous. It is read month-first
    (December 8) unless ``day_first`` is set (12 August). Neither reading is
    right for every sender.
    Two-digit years pivot at 50: `1/2/55` is 1955, `1/2/49` is 2049.
    """
    for pattern, parse in DATE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        parsed = parse(match, day_first)
        if parsed:
            return parsed
    return ""


@_degrades_to("")
def extract_title(text: str) -> str:
    """
    Use an explicit ``Subject:``/``Re:``/``Reference:`` line if there is one,
    otherwise the first early line that looks like a heading.
    """
    lines = _lines(text)

    for line in lines:
        match = TITLE_LABEL_RE.match(line)
        if match:
            return match.group(2).strip()

    for line in lines[:TITLE_SCAN_LINES]:
        if not TITLE_MIN_LENGTH < len(line) < TITLE_MAX_LENGTH:
            continue
        lowered = line.lower()
        if any(word in lowered for word in TITLE_STOPWORDS):
            continue
        return line

    return ""


def _first_capture(patterns: list[re.Pattern], text: str) -> str:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            value = match.group(1).strip()
            if value:
                return value
    return ""


@_degrades_to("")
def extract_sender(text: str) -> str:
    """Sender from a ``From:``/``Sender:`` label or a closing salutation."""
    return _first_capture(SENDER_PATTERNS, text)


@_degrades_to("")
def extract_recipient(text: str) -> str:
    """Recipient from a ``To:``/``Recipient:`` label or a ``Dear ...,`` greeting."""
    return _first_capture(RECIPIENT_PATTERNS, text)


@_degrades_to("")
def extract_contact(text: str) -> str:
    """First email address in the text; failing that, the first phone number."""
    email = EMAIL_RE.search(text)
    if email:
        return email.group(0)

    for pattern in PHONE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(0).strip()
    return ""


@_degrades_to(Urgency.LOW)
def determine_urgency(text: str) -> Urgency:
    """
    Score urgency from keyword sets.

    Each set contributes its weight once if any of its keywords occurs
    anywhere in the text. This is a coarse heuristic, not a probability:
    "please review" alone is enough for MEDIUM.
    """
    lowered = text.lower()
    score = sum(
        weight
        for keywords, weight in URGENCY_KEYWORDS
        if any(keyword in lowered for keyword in keywords)
    )
    for threshold, urgency in URGENCY_THRESHOLDS:
        if score >= threshold:
            return urgency
    return Urgency.LOW

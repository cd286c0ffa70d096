"""
Book List Filters

Parses raw list-query parameters into a canonical, order-independent filter
descriptor. The descriptor's serialization is the filter part of list cache
keys, so semantically identical queries must serialize identically no matter
how the client ordered or spelled its parameters.
"""

import json
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Union

from ..constants import MAX_PAGES
from ..core.exceptions import ValidationError

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")

# Fixed serialization order: (query parameter, descriptor attribute)
FILTER_FIELDS = (
    ("author", "author"),
    ("startDate", "start_date"),
    ("endDate", "end_date"),
    ("minPages", "min_pages"),
    ("maxPages", "max_pages"),
)


def parse_calendar_date(value: Union[str, date, datetime], field: str) -> date:
    """
    Parse an ISO-8601 calendar date or datetime string into a ``date``.

    Raises:
        ValidationError: If the value cannot be read as a date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field} must be a valid date (YYYY-MM-DD)",
            details={"field": field, "value": value},
        )

    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise ValidationError(
            f"{field} must be a valid date (YYYY-MM-DD)",
            details={"field": field, "value": value},
        ) from None


def _parse_integer(value: str, field: str) -> int:
    text = value.strip() if isinstance(value, str) else ""
    if not _INTEGER_PATTERN.match(text):
        raise ValidationError(
            f"{field} must be an integer",
            details={"field": field, "value": value},
        )
    digits = text.lstrip("+-").lstrip("0")
    if len(digits) > len(str(MAX_PAGES)) or abs(int(text)) > MAX_PAGES:
        raise ValidationError(
            f"{field} is out of range",
            details={"field": field, "value": value, "max": MAX_PAGES},
        )
    return int(text)


@dataclass(frozen=True)
class BookFilter:
    """
    Canonical filter descriptor for book list queries.

    All bounds are inclusive. ``None`` means the constraint is absent.
    """

    author: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    min_pages: Optional[int] = None
    max_pages: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, attr) is None for _, attr in FILTER_FIELDS)

    def as_params(self) -> Dict[str, Any]:
        """Present constraints keyed by query parameter name, in fixed order."""
        params: Dict[str, Any] = {}
        for name, attr in FILTER_FIELDS:
            value = getattr(self, attr)
            if value is None:
                continue
            params[name] = value.isoformat() if isinstance(value, date) else value
        return params

    def canonical(self) -> str:
        """Deterministic serialization used inside cache keys; ``{}`` when empty."""
        return json.dumps(self.as_params(), separators=(",", ":"), ensure_ascii=False)

    def matches(self, record: Mapping[str, Any]) -> bool:
        """Evaluate the filter against a serialized book record."""
        if self.author is not None and self.author not in record["author"]:
            return False

        published = parse_calendar_date(record["publishedDate"], "publishedDate")
        if self.start_date is not None and published < self.start_date:
            return False
        if self.end_date is not None and published > self.end_date:
            return False

        pages = record["pages"]
        if self.min_pages is not None and pages < self.min_pages:
            return False
        if self.max_pages is not None and pages > self.max_pages:
            return False
        return True

    def __str__(self) -> str:
        return self.canonical()


def parse_book_filter(params: Mapping[str, str]) -> BookFilter:
    """
    Build a ``BookFilter`` from raw query parameters.

    Unrecognised parameters are ignored. An empty ``author`` counts as absent.

    Raises:
        ValidationError: On an unparseable date or a non-integer or
            out-of-range page bound
    """
    author = params.get("author")
    if author == "":
        author = None

    start_date = end_date = None
    if "startDate" in params:
        start_date = parse_calendar_date(params["startDate"], "startDate")
    if "endDate" in params:
        end_date = parse_calendar_date(params["endDate"], "endDate")

    min_pages = max_pages = None
    if "minPages" in params:
        min_pages = _parse_integer(params["minPages"], "minPages")
    if "maxPages" in params:
        max_pages = _parse_integer(params["maxPages"], "maxPages")

    return BookFilter(
        author=author,
        start_date=start_date,
        end_date=end_date,
        min_pages=min_pages,
        max_pages=max_pages,
    )

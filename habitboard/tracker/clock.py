"""Clock / timezone provider.

All "today" and calendar arithmetic goes through a ``Clock`` instance so the
date a completion lands on follows the user's zone, not the server's. The zone
is fixed at construction; build a new Clock to change it.
"""

from __future__ import annotations

import logging
import os
import re
from datetime import date, datetime, timedelta, timezone
from typing import Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from habitboard.tracker.errors import ValidationError

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _load_zone(name: str) -> ZoneInfo | None:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def host_timezone() -> str:
    """IANA name of the host default zone: $TZ when valid, else UTC."""
    name = os.environ.get("TZ", "").lstrip(":")
    if name and _load_zone(name) is not None:
        return name
    return "UTC"


def parse_date(value: date | str) -> date:
    """Accept a ``date`` or a strict ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        raise ValidationError(f"Expected a calendar date, got a datetime: {value!r}")
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DATE_RE.match(value):
        raise ValidationError(f"Invalid date (expected YYYY-MM-DD): {value!r}")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid date (expected YYYY-MM-DD): {value!r}")


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


class Clock:
    def __init__(
        self,
        timezone_name: str | None = None,
        now: Callable[[], datetime] | None = None,
    ):
        if timezone_name is not None:
            zone = _load_zone(timezone_name)
            if zone is None:
                raise ValidationError(f"Unknown timezone: {timezone_name!r}")
            self._name = timezone_name
        else:
            self._name = host_timezone()
            zone = _load_zone(self._name) or ZoneInfo("UTC")
        self._zone = zone
        self._now = now or (lambda: datetime.now(timezone.utc))
        logger.debug("Clock using timezone %s", self._name)

    @property
    def zone(self) -> ZoneInfo:
        return self._zone

    def effective_timezone(self) -> str:
        return self._name

    def current_datetime(self) -> datetime:
        current = self._now()
        if current.tzinfo is None:
            # Naive values from an injected source are taken as UTC
            current = current.replace(tzinfo=timezone.utc)
        return current.astimezone(self._zone)

    def today(self) -> date:
        return self.current_datetime().date()

    def now(self) -> str:
        """Today as ``YYYY-MM-DD`` in the effective zone."""
        return self.today().isoformat()

    def is_today(self, value: date | str) -> bool:
        return parse_date(value) == self.today()

    def last_n_days(self, days: int, end: date | None = None) -> list[date]:
        """``days`` consecutive dates ending at ``end`` (default today), oldest first."""
        if days < 1:
            return []
        last = end or self.today()
        return [last - timedelta(days=i) for i in range(days - 1, -1, -1)]

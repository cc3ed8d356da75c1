"""Tests for the clock / timezone provider."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from habitboard.tracker.clock import Clock, add_days, host_timezone, parse_date
from habitboard.tracker.errors import ValidationError


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 1, 16, hour, minute, tzinfo=timezone.utc)


class TestEffectiveTimezone:
    def test_override_wins(self):
        clock = Clock("America/Santiago")
        assert clock.effective_timezone() == "America/Santiago"

    def test_host_default_from_tz_env(self, monkeypatch):
        monkeypatch.setenv("TZ", "Europe/Lisbon")
        assert Clock().effective_timezone() == "Europe/Lisbon"

    def test_host_default_falls_back_to_utc(self, monkeypatch):
        monkeypatch.setenv("TZ", "Not/AZone")
        assert host_timezone() == "UTC"

    def test_invalid_override_rejected(self):
        with pytest.raises(ValidationError):
            Clock("Mars/Olympus_Mons")

    def test_clocks_are_independent(self):
        a = Clock("Asia/Tokyo", now=lambda: _at(20))
        b = Clock("UTC", now=lambda: _at(20))
        assert a.today() != b.today()


class TestToday:
    def test_date_follows_zone_not_utc(self):
        # 02:30 UTC is still the previous evening in Santiago (UTC-3 in January)
        clock = Clock("America/Santiago", now=lambda: _at(2, 30))
        assert clock.today() == date(2025, 1, 15)
        assert clock.now() == "2025-01-15"

    def test_ahead_of_utc(self):
        clock = Clock("Asia/Tokyo", now=lambda: _at(20))
        assert clock.today() == date(2025, 1, 17)

    def test_naive_source_treated_as_utc(self):
        clock = Clock("UTC", now=lambda: datetime(2025, 1, 16, 23, 0))
        assert clock.today() == date(2025, 1, 16)

    def test_is_today(self):
        clock = Clock("UTC", now=lambda: _at(12))
        assert clock.is_today("2025-01-16")
        assert not clock.is_today(date(2025, 1, 15))


class TestDateArithmetic:
    def test_last_n_days_oldest_first(self):
        clock = Clock("UTC", now=lambda: _at(12))
        days = clock.last_n_days(3)
        assert days == [date(2025, 1, 14), date(2025, 1, 15), date(2025, 1, 16)]

    def test_last_n_days_explicit_end(self):
        clock = Clock("UTC", now=lambda: _at(12))
        assert clock.last_n_days(2, date(2025, 3, 1)) == [date(2025, 2, 28), date(2025, 3, 1)]

    def test_last_n_days_zero(self):
        assert Clock("UTC").last_n_days(0) == []

    def test_add_days_crosses_month(self):
        assert add_days(date(2025, 1, 31), 1) == date(2025, 2, 1)
        assert add_days(date(2025, 3, 1), -1) == date(2025, 2, 28)


class TestParseDate:
    def test_iso_string(self):
        assert parse_date("2025-01-15") == date(2025, 1, 15)

    def test_date_passthrough(self):
        assert parse_date(date(2025, 1, 15)) == date(2025, 1, 15)

    @pytest.mark.parametrize("bad", ["2025-1-15", "15/01/2025", "2025-02-30", "", "2025-01-15T00:00:00", None, 20250115])
    def test_rejects_malformed(self, bad):
        with pytest.raises(ValidationError):
            parse_date(bad)

    def test_rejects_datetime(self):
        with pytest.raises(ValidationError):
            parse_date(datetime(2025, 1, 15, 10, 0))

"""Tests for cron schedule helpers."""

from datetime import datetime, timezone

import pytest

from automation.models import TriggerType
from automation.services.schedule import (
    is_due,
    is_valid_cron,
    next_fire_times,
    schedule_activation,
)


class TestIsValidCron:
    """Tests for cron validation."""

    def test_valid(self):
        assert is_valid_cron("0 9 * * *")
        assert is_valid_cron("*/15 * * * 1-5")

    def test_wrong_field_count(self):
        # Six-field (seconds) expressions are not accepted
        assert not is_valid_cron("0 0 9 * * *")
        assert not is_valid_cron("0 9 * *")

    def test_garbage(self):
        assert not is_valid_cron("every day")
        assert not is_valid_cron("61 9 * * *")

    def test_empty(self):
        assert not is_valid_cron("")
        assert not is_valid_cron(None)


class TestNextFireTimes:
    """Tests for fire time preview."""

    def test_daily(self):
        start = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)
        times = next_fire_times("0 9 * * *", start, count=3)

        assert times == [
            datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc),
            datetime(2024, 1, 2, 9, 0, tzinfo=timezone.utc),
            datetime(2024, 1, 3, 9, 0, tzinfo=timezone.utc),
        ]

    def test_invalid_raises(self):
        with pytest.raises(ValueError):
            next_fire_times("not cron")

    def test_zero_count(self):
        assert next_fire_times("* * * * *", count=0) == []


class TestIsDue:
    """Tests for due checks."""

    def test_due_after_fire_time(self):
        last = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)
        now = datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)

        assert is_due("0 9 * * *", last, now)

    def test_not_due_before_fire_time(self):
        last = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
        now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

        assert not is_due("0 9 * * *", last, now)

    def test_invalid_never_due(self):
        last = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert not is_due("bogus", last, last)


class TestScheduleActivation:
    """Tests for schedule activations."""

    def test_empty_trigger_context(self):
        fired_at = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
        activation = schedule_activation("wf_1", fired_at)

        assert activation.trigger_type == TriggerType.SCHEDULE
        assert activation.trigger == {}
        assert activation.activated_at == fired_at

"""Cron helpers for schedule triggers."""

from __future__ import annotations

from datetime import datetime, timezone

from croniter import croniter

from automation.models.trigger import Activation, TriggerType

CRON_FIELD_COUNT = 5


def is_valid_cron(expression: str | None) -> bool:
    """Whether ``expression`` is a standard five-field cron string."""
    if not expression or len(expression.split()) != CRON_FIELD_COUNT:
        return False
    return croniter.is_valid(expression)


def next_fire_times(
    expression: str, start: datetime | None = None, count: int = 5
) -> list[datetime]:
    """Return the next ``count`` fire times after ``start`` (UTC by default).

    Raises:
        ValueError: If the expression is not a valid five-field cron string
    """
    if not is_valid_cron(expression):
        raise ValueError(f"Invalid cron expression: {expression!r}")
    base = start or datetime.now(timezone.utc)
    itr = croniter(expression, base)
    return [itr.get_next(datetime) for _ in range(max(count, 0))]


def is_due(expression: str, last_run: datetime, now: datetime | None = None) -> bool:
    """Whether a fire time falls in ``(last_run, now]``."""
    if not is_valid_cron(expression):
        return False
    now = now or datetime.now(timezone.utc)
    return croniter(expression, last_run).get_next(datetime) <= now


def schedule_activation(workflow_id: str, fired_at: datetime | None = None) -> Activation:
    """Activation for a schedule tick. Schedules carry an empty trigger context."""
    fired_at = fired_at or datetime.now(timezone.utc)
    return Activation(
        workflow_id=workflow_id,
        trigger_type=TriggerType.SCHEDULE,
        activated_at=fired_at,
    )

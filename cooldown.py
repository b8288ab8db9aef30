"""Cooldown policy for the trigger engine.

Pure functions, no I/O. A task is checkable in a pass only if every gate
passes. Gates run in a fixed order and the first failure wins:

1. category-cycle: a task of the same category already fired in this pass
2. category cooldown: the category fired less than CATEGORY_COOLDOWN_MINUTES ago
3. task cooldown: the task itself fired less than its cooldown_minutes ago
"""

from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional, Set

from database import CategoryEnum

CATEGORY_COOLDOWN_MINUTES = 30

CATEGORY_CYCLE = "category_cycle"
CATEGORY_COOLDOWN = "category_cooldown"
TASK_COOLDOWN = "task_cooldown"


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def minutes_since(earlier: datetime, now: datetime) -> float:
    return (ensure_utc(now) - ensure_utc(earlier)) / timedelta(minutes=1)


def check_gates(
    task,
    now: datetime,
    fired_this_pass: Set[CategoryEnum],
    last_triggered: Mapping[CategoryEnum, datetime],
    category_cooldown_minutes: float = CATEGORY_COOLDOWN_MINUTES,
) -> Optional[str]:
    """Return the name of the first failing gate, or None if the task may be checked.

    Args:
        task: object with category, triggered_at and cooldown_minutes
        now: time of the current pass
        fired_this_pass: categories that already fired in this pass
        last_triggered: snapshot of the latest trigger time per category
        category_cooldown_minutes: category cooldown window
    """
    if task.category in fired_this_pass:
        return CATEGORY_CYCLE

    category_last = last_triggered.get(task.category)
    if category_last is not None and minutes_since(category_last, now) < category_cooldown_minutes:
        return CATEGORY_COOLDOWN

    # Only reachable for tasks that already fired; pending tasks never have triggered_at
    if task.triggered_at is not None and minutes_since(task.triggered_at, now) < task.cooldown_minutes:
        return TASK_COOLDOWN

    return None

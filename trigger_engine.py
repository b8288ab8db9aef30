"""Trigger Engine for Smart Task Service.

One call to process_sample() is one pass over the pending tasks for a single
location sample:

1. Load pending tasks (high priority first) and a snapshot of the last
   trigger time per category
2. For each task, run the cooldown gates; skip on the first failing gate
3. Ask the proximity index for a place of the task's category in range
4. On a hit, mark the task triggered and add it to its category's batch
5. Sort each batch by priority and cap it at BATCH_CAP entries

At most one task per category fires in a pass. A task that cannot be checked
because the proximity lookup timed out or failed is treated as no match.
Store failures abort the pass; tasks that fired before the failure stay
triggered.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

from config import settings
from cooldown import check_gates
from database import CategoryEnum, PRIORITY_RANK
from errors import NotFoundError, ProximityError, TriggerEngineError
from logger_config import setup_logger
from proximity import ProximityIndex
from schemas import Batch, BatchItem, LocationSample
from task_store import TaskStore

logger = setup_logger(__name__, 'engine.log')


def build_batches(accumulator: Dict[CategoryEnum, List[BatchItem]], cap: int) -> List[Batch]:
    """Turn per-category fired items into batches.

    Items are stably sorted by priority and truncated to cap; count keeps
    the number of items before truncation. Batch order follows the
    accumulator's insertion order.
    """
    batches = []
    for category, items in accumulator.items():
        ordered = sorted(items, key=lambda item: PRIORITY_RANK[item.priority])
        batches.append(Batch(category=category, count=len(ordered), tasks=ordered[:cap]))
    return batches


class TriggerEngine:
    """Decides which pending tasks fire for a location sample."""

    def __init__(
        self,
        store: TaskStore,
        proximity: ProximityIndex,
        category_cooldown_minutes: Optional[float] = None,
        radius_meters: Optional[float] = None,
        batch_cap: Optional[int] = None,
    ):
        self.store = store
        self.proximity = proximity
        self.category_cooldown_minutes = (
            settings.CATEGORY_COOLDOWN_MINUTES if category_cooldown_minutes is None else category_cooldown_minutes
        )
        self.radius_meters = settings.TRIGGER_RADIUS_METERS if radius_meters is None else radius_meters
        self.batch_cap = settings.BATCH_CAP if batch_cap is None else batch_cap

    def process_sample(self, point: LocationSample, now: Optional[datetime] = None) -> List[Batch]:
        """Run one trigger pass for a location sample.

        Args:
            point: location sample
            now: time of the pass (defaults to the current UTC time)

        Returns:
            List[Batch]: one batch per category that fired, in order of first fire

        Raises:
            TriggerEngineError: if the pass was aborted
        """
        if now is None:
            now = datetime.now(timezone.utc)

        try:
            return self._run(point, now)
        except TriggerEngineError:
            raise
        except Exception as e:
            logger.error(f"Trigger pass aborted at ({point.lat}, {point.lng}): {e}", exc_info=True)
            raise TriggerEngineError("Trigger engine failed") from e

    def _run(self, point: LocationSample, now: datetime) -> List[Batch]:
        logger.info(f"Location received: {point.lat}, {point.lng}")

        tasks = self.store.list_pending()
        logger.info(f"Found {len(tasks)} pending task(s)")
        if not tasks:
            return []

        last_triggered = self.store.last_triggered_per_category()
        fired_this_pass: Set[CategoryEnum] = set()
        accumulator: Dict[CategoryEnum, List[BatchItem]] = {}

        for task in tasks:
            skipped_by = check_gates(
                task, now, fired_this_pass, last_triggered, self.category_cooldown_minutes
            )
            if skipped_by:
                logger.debug(f"Task {task.id} ({task.category.value}) skipped: {skipped_by}")
                continue

            try:
                place = self.proximity.query(task.category, point, self.radius_meters)
            except ProximityError as e:
                logger.warning(f"Proximity lookup failed for task {task.id} ({task.category.value}), treating as no match: {e}")
                continue

            if place is None:
                logger.debug(f"Task {task.id} ({task.category.value}): no nearby place")
                continue

            try:
                transitioned = self.store.mark_triggered(task.id, now)
            except NotFoundError:
                logger.warning(f"Task {task.id} disappeared before it could be triggered, skipping")
                continue

            if not transitioned:
                logger.info(f"Task {task.id} was already triggered by another pass, skipping")
                continue

            logger.info(f"TRIGGERED task {task.id} '{task.text}' at {place.name} ({task.priority.value} priority)")
            fired_this_pass.add(task.category)
            accumulator.setdefault(task.category, []).append(
                BatchItem(task_id=task.id, text=task.text, place_name=place.name, priority=task.priority)
            )

        batches = build_batches(accumulator, self.batch_cap)
        logger.info(f"Response: {len(batches)} batch(es) with {sum(b.count for b in batches)} total task(s)")
        return batches

"""Task Store: trigger state of smart tasks.

The store owns every status transition. mark_triggered is a conditional
update (pending -> triggered) so that two passes racing on the same task
cannot both fire it.
"""

from datetime import datetime
from typing import Dict, List

from sqlalchemy import case, func
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from database import SmartTask, CategoryEnum, StatusEnum, PRIORITY_RANK
from errors import NotFoundError, StoreUnavailableError
from logger_config import setup_logger

logger = setup_logger(__name__, 'engine.log')


class TaskStore:
    """SQLAlchemy-backed task store bound to one session."""

    def __init__(self, db: Session):
        self.db = db

    def _unavailable(self, exc: OperationalError) -> StoreUnavailableError:
        self.db.rollback()
        logger.error(f"Task store unavailable: {exc}")
        return StoreUnavailableError(str(exc))

    def list_pending(self) -> List[SmartTask]:
        """Pending tasks, high priority first, newest first within a priority."""
        priority_rank = case(
            *[(SmartTask.priority == priority, rank) for priority, rank in PRIORITY_RANK.items()],
            else_=len(PRIORITY_RANK) + 1,
        )
        try:
            return (
                self.db.query(SmartTask)
                .filter(SmartTask.status == StatusEnum.PENDING)
                .order_by(priority_rank.asc(), SmartTask.created_at.desc())
                .all()
            )
        except OperationalError as e:
            raise self._unavailable(e) from e

    def last_triggered_per_category(self) -> Dict[CategoryEnum, datetime]:
        """Latest triggered_at per category among triggered tasks."""
        try:
            rows = (
                self.db.query(SmartTask.category, func.max(SmartTask.triggered_at))
                .filter(SmartTask.status == StatusEnum.TRIGGERED)
                .group_by(SmartTask.category)
                .all()
            )
        except OperationalError as e:
            raise self._unavailable(e) from e

        return {category: last for category, last in rows if last is not None}

    def mark_triggered(self, task_id: str, now: datetime) -> bool:
        """Move a task from pending to triggered.

        Returns:
            bool: True if this call made the transition, False if the task
            was already triggered

        Raises:
            NotFoundError: if no task has this id
            StoreUnavailableError: if the database cannot be reached
        """
        try:
            updated = (
                self.db.query(SmartTask)
                .filter(SmartTask.id == task_id, SmartTask.status == StatusEnum.PENDING)
                .update(
                    {SmartTask.status: StatusEnum.TRIGGERED, SmartTask.triggered_at: now},
                    synchronize_session=False,
                )
            )
            self.db.commit()
            if updated:
                return True

            exists = self.db.query(SmartTask.id).filter(SmartTask.id == task_id).first()
        except OperationalError as e:
            raise self._unavailable(e) from e

        if exists is None:
            raise NotFoundError(task_id)
        return False

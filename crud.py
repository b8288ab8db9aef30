"""CRUD operations for Smart Task Service.

This module provides the task and place operations used by the HTTP and MCP
surfaces. Trigger state transitions live in task_store, not here.
"""

from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Dict, List, Optional
import uuid
from datetime import datetime, timezone

from classifier import classify
from config import settings
from database import SmartTask, Place, CategoryEnum, PriorityEnum, StatusEnum
from logger_config import setup_logger

logger = setup_logger(__name__, 'crud.log')


def parse_priority(value: Optional[str]) -> PriorityEnum:
    """Map a client-supplied priority to the enum, defaulting to MEDIUM.

    Unknown or missing values are not an error: the task is stored as medium.
    """
    if isinstance(value, PriorityEnum):
        return value
    if value:
        try:
            return PriorityEnum(value.lower())
        except ValueError:
            logger.info(f"Unknown priority {value!r}, using medium")
    return PriorityEnum.MEDIUM


def create_task(db: Session, task_data: dict) -> SmartTask:
    """Create a new task in the database.

    Args:
        db: Database session
        task_data: Dictionary with task fields
            - text: str
            - priority: Optional[str]

    Returns:
        SmartTask: Created task, category assigned by the classifier

    Raises:
        ValueError: If text is empty
        SQLAlchemyError: On database errors
    """
    text = (task_data.get('text') or '').strip()
    if not text:
        raise ValueError("Text is required")

    db_task = SmartTask(
        id=str(uuid.uuid4()),
        text=text,
        category=classify(text),
        priority=parse_priority(task_data.get('priority')),
        status=StatusEnum.PENDING,
        triggered_at=None,
        cooldown_minutes=settings.DEFAULT_TASK_COOLDOWN_MINUTES,
        created_at=datetime.now(timezone.utc),
    )

    db.add(db_task)
    db.commit()
    db.refresh(db_task)
    logger.info(f"Task created: '{db_task.text}' ({db_task.category.value}, {db_task.priority.value} priority)")
    return db_task


def get_tasks(db: Session) -> List[SmartTask]:
    """Get all tasks, newest first."""
    return db.query(SmartTask).order_by(SmartTask.created_at.desc()).all()


def get_task(db: Session, task_id: str) -> Optional[SmartTask]:
    """Get a specific task by ID.

    Returns:
        Optional[SmartTask]: Task if found, None otherwise
    """
    return db.query(SmartTask).filter(SmartTask.id == task_id).first()


def delete_task(db: Session, task_id: str) -> bool:
    """Delete a task.

    Returns:
        bool: True if deleted, False if not found
    """
    task = get_task(db, task_id)
    if not task:
        return False

    db.delete(task)
    db.commit()
    return True


def get_task_stats(db: Session) -> Dict:
    """Count tasks by status, category and priority.

    Every enum member is present in its mapping, zero when unused.
    """
    def _counts(column, enum_cls) -> Dict[str, int]:
        counts = {member.value: 0 for member in enum_cls}
        for value, count in db.query(column, func.count(SmartTask.id)).group_by(column).all():
            counts[value.value] = count
        return counts

    return {
        "total": db.query(SmartTask).count(),
        "by_status": _counts(SmartTask.status, StatusEnum),
        "by_category": _counts(SmartTask.category, CategoryEnum),
        "by_priority": _counts(SmartTask.priority, PriorityEnum),
    }


def create_place(db: Session, place_data: dict) -> Place:
    """Register a place for proximity matching.

    Args:
        db: Database session
        place_data: name, category, latitude, longitude and optionally
            price_level and rating

    Returns:
        Place: Created place
    """
    category = place_data['category']
    if isinstance(category, str):
        category = CategoryEnum(category.lower())

    place = Place(
        name=place_data['name'],
        category=category,
        latitude=place_data['latitude'],
        longitude=place_data['longitude'],
        price_level=place_data.get('price_level'),
        rating=place_data.get('rating'),
    )
    db.add(place)
    db.commit()
    db.refresh(place)
    return place


def get_places_by_category(db: Session, category: CategoryEnum) -> List[Place]:
    """Get all places of a category."""
    return db.query(Place).filter(Place.category == category).all()

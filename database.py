"""Database module for Smart Task Service.

This module defines SQLAlchemy models and database session management.
IMPORTANT: triggered_at and created_at are stored as DateTime objects, NOT strings.
"""

from sqlalchemy import create_engine, Column, String, Integer, Float, DateTime, Enum as SQLEnum, Index
from sqlalchemy.orm import declarative_base, sessionmaker
import enum

from config import settings

# SQLAlchemy Base
Base = declarative_base()


class CategoryEnum(enum.Enum):
    """Place categories a task can be matched against"""
    GROCERY = "grocery"
    PHARMACY = "pharmacy"
    CLOTHING = "clothing"
    GENERAL = "general"


class PriorityEnum(enum.Enum):
    """Priority levels for tasks"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class StatusEnum(enum.Enum):
    """Task status. A task moves from PENDING to TRIGGERED at most once."""
    PENDING = "pending"
    TRIGGERED = "triggered"


# Sort rank: high fires before medium before low
PRIORITY_RANK = {
    PriorityEnum.HIGH: 1,
    PriorityEnum.MEDIUM: 2,
    PriorityEnum.LOW: 3,
}


class SmartTask(Base):
    """Location-tagged reminder.

    text, category and priority are frozen at creation. status and
    triggered_at change together, exactly once, through TaskStore.mark_triggered.
    """

    __tablename__ = "smart_tasks"

    id = Column(String, primary_key=True, doc="Unique task ID (UUID)")

    text = Column(String, nullable=False, doc="Reminder text as entered by the user")
    category = Column(SQLEnum(CategoryEnum), nullable=False, index=True, doc="Category assigned by the classifier")
    priority = Column(SQLEnum(PriorityEnum), nullable=False, default=PriorityEnum.MEDIUM, doc="Priority level")

    status = Column(SQLEnum(StatusEnum), nullable=False, default=StatusEnum.PENDING, index=True, doc="pending or triggered")
    triggered_at = Column(
        DateTime(timezone=True),
        nullable=True,
        doc="When the task fired (set together with status=triggered)"
    )
    cooldown_minutes = Column(Integer, nullable=False, default=60, doc="Per-task re-check suppression window")

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        doc="When the task was created (timezone-aware)"
    )

    __table_args__ = (
        Index('idx_status_category', 'status', 'category'),
    )

    def __repr__(self):
        """String representation"""
        return (
            f"<SmartTask(id={self.id}, text={self.text}, category={self.category.value}, "
            f"priority={self.priority.value}, status={self.status.value})>"
        )


class Place(Base):
    """A point of interest the proximity index can match tasks against."""

    __tablename__ = "places"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    category = Column(SQLEnum(CategoryEnum), nullable=False, index=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    price_level = Column(Integer, nullable=True)
    rating = Column(Float, nullable=True)

    def __repr__(self):
        return f"<Place(id={self.id}, name={self.name}, category={self.category.value})>"


# Database Engine Setup
engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if "sqlite" in settings.DATABASE_URL else {},
    echo=False  # Set to True for SQL debugging
)

# Session Factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Database session dependency for FastAPI.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# Create all tables
Base.metadata.create_all(bind=engine)

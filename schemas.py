"""Pydantic schemas for Smart Task Service.

This module defines request and response schemas for API validation,
plus the Batch models the trigger engine returns.
"""

from pydantic import BaseModel, Field, field_serializer
from datetime import datetime, timezone
from typing import Dict, List, Optional

from database import CategoryEnum, PriorityEnum, StatusEnum


def _as_utc_iso(value: Optional[datetime]) -> Optional[str]:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class TaskCreate(BaseModel):
    """Schema for creating a new task.

    The category is never supplied by the client: the classifier derives it
    from the text. An unknown priority falls back to medium.
    """

    text: str = Field(
        ...,
        max_length=500,
        description="Reminder text",
        examples=["Buy milk", "Pick up medicine"]
    )

    priority: Optional[str] = Field(
        default="medium",
        description="Priority level: high, medium, or low"
    )


class TaskResponse(BaseModel):
    """Schema for task responses."""

    id: str = Field(..., description="Unique task ID")
    text: str = Field(..., description="Reminder text")
    category: CategoryEnum = Field(..., description="Category assigned by the classifier")
    priority: PriorityEnum = Field(..., description="Priority level")
    status: StatusEnum = Field(..., description="pending or triggered")
    triggered_at: Optional[datetime] = Field(None, description="When the task fired")
    cooldown_minutes: int = Field(..., description="Per-task cooldown window")
    created_at: datetime = Field(..., description="When the task was created")

    class Config:
        """Pydantic configuration"""
        from_attributes = True  # Enable ORM mode for SQLAlchemy models

        json_schema_extra = {
            "example": {
                "id": "abc-123-def-456",
                "text": "Buy milk",
                "category": "grocery",
                "priority": "high",
                "status": "pending",
                "triggered_at": None,
                "cooldown_minutes": 60,
                "created_at": "2025-10-25T10:30:00+00:00"
            }
        }

    @field_serializer("triggered_at", "created_at")
    def _serialize_timestamps(self, value: Optional[datetime]) -> Optional[str]:
        return _as_utc_iso(value)


class TaskStats(BaseModel):
    """Task counts for the analytics dashboard."""

    total: int
    by_status: Dict[str, int]
    by_category: Dict[str, int]
    by_priority: Dict[str, int]


class PlaceCreate(BaseModel):
    """Schema for registering a place."""

    name: str = Field(..., min_length=1, max_length=200)
    category: CategoryEnum
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    price_level: Optional[int] = Field(None, ge=0, le=4)
    rating: Optional[float] = Field(None, ge=0, le=5)


class PlaceResponse(BaseModel):
    """Schema for place responses."""

    id: int
    name: str
    category: CategoryEnum
    latitude: float
    longitude: float
    price_level: Optional[int] = None
    rating: Optional[float] = None

    class Config:
        from_attributes = True


class NearbyPlace(BaseModel):
    """A place returned by /nearby with its distance in whole metres."""

    name: str
    category: CategoryEnum
    price_level: Optional[int] = None
    rating: Optional[float] = None
    distance: int


class LocationSample(BaseModel):
    """A single location fix reported by a client.

    Only finiteness is checked here; coordinate ranges are left to callers.
    """

    lat: float = Field(..., allow_inf_nan=False, description="Latitude in degrees")
    lng: float = Field(..., allow_inf_nan=False, description="Longitude in degrees")


class BatchItem(BaseModel):
    """One fired task inside a notification batch."""

    task_id: str
    text: str
    place_name: str
    priority: PriorityEnum


class Batch(BaseModel):
    """Fired tasks of one category.

    count is the number of tasks that fired for the category; tasks holds at
    most BATCH_CAP of them, highest priority first.
    """

    category: CategoryEnum
    count: int
    tasks: List[BatchItem]


class LocationResponse(BaseModel):
    """Response of POST /location."""

    batches: List[Batch]

"""MCP Server for Smart Task Service.

This module provides MCP tools for AI agents to manage location-tagged tasks.
Uses the same database as the REST API for data consistency.

Transport Support:
- stdio: Standard input/output (local process communication)
- sse: Server-Sent Events over HTTP (network access)
"""

from mcp.server.fastmcp import FastMCP
import os

import crud
import database
from config import settings
from errors import TriggerEngineError
from logger_config import setup_logger
from proximity import DatabaseProximityIndex, HttpProximityIndex, get_proximity_index
from schemas import LocationSample
from task_store import TaskStore
from trigger_engine import TriggerEngine

logger = setup_logger(__name__, 'mcp.log')

mcp = FastMCP(
    "SmartTaskService",
    host=settings.MCP_HOST,
    port=settings.MCP_PORT
)


@mcp.tool()
def create_task(text: str, priority: str = "medium") -> str:
    """Create a location-tagged task.

    Args:
        text: Reminder text, e.g. "buy milk"; the category is derived from it
        priority: "high", "medium" or "low" (default: "medium")

    Returns:
        Success message with task ID and category, or error message
    """
    db = database.SessionLocal()
    try:
        task = crud.create_task(db, {'text': text, 'priority': priority})
        return (
            f"✓ Task created successfully!\n"
            f"ID: {task.id}\n"
            f"Text: {task.text}\n"
            f"Category: {task.category.value}\n"
            f"Priority: {task.priority.value}"
        )
    except Exception as e:
        logger.error(f"Error creating task: {e}")
        return f"✗ Error creating task: {str(e)}"
    finally:
        db.close()


@mcp.tool()
def list_tasks(status: str = None) -> str:
    """List tasks, newest first.

    Args:
        status: Optional status filter - "pending" or "triggered"

    Returns:
        Formatted list of tasks or message if none found
    """
    db = database.SessionLocal()
    try:
        tasks = crud.get_tasks(db)
        if status:
            tasks = [t for t in tasks if t.status.value == status.lower()]

        if not tasks:
            filter_text = f" with status '{status}'" if status else ""
            return f"No tasks found{filter_text}."

        result = [f"Found {len(tasks)} task(s):\n"]
        for t in tasks:
            result.append(
                f"\n• [{t.status.value.upper()}] {t.text}\n"
                f"  ID: {t.id}\n"
                f"  Category: {t.category.value}\n"
                f"  Priority: {t.priority.value}"
            )
            if t.triggered_at:
                result.append(f"  Triggered: {t.triggered_at.isoformat()}")

        return "\n".join(result)
    finally:
        db.close()


@mcp.tool()
def delete_task(task_id: str) -> str:
    """Delete a task.

    Args:
        task_id: Task UUID

    Returns:
        Success or error message
    """
    db = database.SessionLocal()
    try:
        if crud.delete_task(db, task_id):
            return f"✓ Task {task_id} deleted successfully."
        return "✗ Task not found."
    finally:
        db.close()


@mcp.tool()
def find_nearby_places(lat: float, lng: float, category: str) -> str:
    """List places of a category near a point.

    Args:
        lat: Latitude
        lng: Longitude
        category: "grocery", "pharmacy", "clothing" or "general"

    Returns:
        Places within the nearby radius, nearest first
    """
    try:
        category_enum = database.CategoryEnum(category.lower())
    except ValueError:
        return f"✗ Unknown category '{category}'."

    db = database.SessionLocal()
    try:
        point = LocationSample(lat=lat, lng=lng)
        hits = DatabaseProximityIndex(db).nearby(category_enum, point, settings.NEARBY_RADIUS_METERS)
        if not hits:
            return f"No {category_enum.value} places within {settings.NEARBY_RADIUS_METERS:.0f} m."

        result = [f"Found {len(hits)} {category_enum.value} place(s):\n"]
        for place, distance in hits:
            result.append(f"• {place.name} - {round(distance)} m")
        return "\n".join(result)
    finally:
        db.close()


@mcp.tool()
def report_location(lat: float, lng: float) -> str:
    """Report a location and fire any tasks near a matching place.

    Args:
        lat: Latitude
        lng: Longitude

    Returns:
        Notification batches that fired, or a message if none did
    """
    db = database.SessionLocal()
    proximity = None
    try:
        proximity = get_proximity_index(db)
        engine = TriggerEngine(TaskStore(db), proximity)
        batches = engine.process_sample(LocationSample(lat=lat, lng=lng))
        if not batches:
            return "No tasks triggered at this location."

        result = [f"🔔 {len(batches)} batch(es) triggered:\n"]
        for batch in batches:
            result.append(f"\n{batch.category.value} ({batch.count} task(s))")
            for item in batch.tasks:
                result.append(f"  • [{item.priority.value}] {item.text} @ {item.place_name}")
        return "\n".join(result)
    except (TriggerEngineError, ValueError) as e:
        return f"✗ {e}"
    finally:
        if isinstance(proximity, HttpProximityIndex):
            proximity.close()
        db.close()


if __name__ == "__main__":
    transport = os.getenv("MCP_TRANSPORT", settings.MCP_TRANSPORT).lower()

    if transport == "sse":
        print(f"Starting MCP server with SSE transport on {settings.MCP_HOST}:{settings.MCP_PORT}")
        print(f"SSE endpoint: http://{settings.MCP_HOST}:{settings.MCP_PORT}/sse")
        mcp.run(transport="sse")
    else:
        print("Starting MCP server with stdio transport")
        mcp.run(transport="stdio")

"""FastAPI REST API server for Smart Task Service.

This module provides HTTP endpoints for the mobile client and web dashboard:
task management, nearby place listing, and the location endpoint that runs
the trigger engine.
"""

from fastapi import FastAPI, Depends, HTTPException, Query, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List

import crud
import schemas
import database
from config import settings
from errors import TriggerEngineError
from logger_config import setup_logger
from proximity import DatabaseProximityIndex, HttpProximityIndex, get_proximity_index
from task_store import TaskStore
from trigger_engine import TriggerEngine

logger = setup_logger(__name__, 'api.log')

# Create FastAPI application
app = FastAPI(
    title="Smart Task Service API",
    description="Location-aware reminders that fire when you are near a relevant place",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS for the web dashboard
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error bodies the mobile and web clients expect for missing coordinates
REQUIRED_PARAMS_ERRORS = {
    "/location": "lat and lng required",
    "/nearby": "lat, lng, category required",
}


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Answer bad coordinates with 400 {"error": ...}; other routes keep FastAPI's 422."""
    message = REQUIRED_PARAMS_ERRORS.get(request.url.path)
    if message is None:
        return await request_validation_exception_handler(request, exc)
    logger.info(f"Rejected {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": message})


def get_trigger_engine(db: Session = Depends(database.get_db)):
    """Trigger engine dependency bound to the request's database session.

    Yields:
        TriggerEngine: engine for a single pass
    """
    proximity = get_proximity_index(db)
    try:
        yield TriggerEngine(TaskStore(db), proximity)
    finally:
        if isinstance(proximity, HttpProximityIndex):
            proximity.close()


@app.get("/")
def root():
    """Root endpoint - service information"""
    return {
        "service": "Smart Task Service API",
        "version": "1.0.0",
        "status": "healthy",
        "endpoints": {
            "docs": "/docs",
            "health": "/health",
            "tasks": "/api/tasks",
            "location": "/location"
        }
    }


@app.get("/health")
def health_check(db: Session = Depends(database.get_db)):
    """Health check endpoint for monitoring"""
    try:
        db.execute(sql_text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check error: {e}")
        return JSONResponse(status_code=500, content={"error": "DB connection failed"})

    return {
        "status": "ok",
        "service": "smart_task_service",
        "database": settings.DATABASE_URL.split("://")[0]
    }


@app.get("/api/tasks", response_model=List[schemas.TaskResponse])
def list_tasks(db: Session = Depends(database.get_db)):
    """List all tasks, newest first."""
    return crud.get_tasks(db)


@app.post("/tasks", response_model=schemas.TaskResponse)
@app.post("/api/tasks", response_model=schemas.TaskResponse)
def create_task(
    task: schemas.TaskCreate,
    db: Session = Depends(database.get_db)
):
    """Create a new task.

    Request body example:
    ```json
    {"text": "Buy milk", "priority": "high"}
    ```

    The category is derived from the text.
    """
    if not task.text.strip():
        raise HTTPException(status_code=400, detail="Text is required")

    try:
        return crud.create_task(db, task.model_dump())
    except SQLAlchemyError as e:
        logger.error(f"Error creating task: {e}")
        raise HTTPException(status_code=500, detail="DB error")


@app.get("/api/tasks/stats", response_model=schemas.TaskStats)
def get_task_stats(db: Session = Depends(database.get_db)):
    """Task counts by status, category and priority."""
    return crud.get_task_stats(db)


@app.delete("/api/tasks/{task_id}")
def delete_task(
    task_id: str,
    db: Session = Depends(database.get_db)
):
    """Delete a task."""
    success = crud.delete_task(db, task_id)
    if not success:
        raise HTTPException(status_code=404, detail="Task not found")
    return {"success": True, "id": task_id}


@app.post("/api/places", response_model=schemas.PlaceResponse, status_code=201)
def create_place(
    place: schemas.PlaceCreate,
    db: Session = Depends(database.get_db)
):
    """Register a place for proximity matching."""
    return crud.create_place(db, place.model_dump())


@app.get("/nearby", response_model=List[schemas.NearbyPlace])
def nearby_places(
    lat: float = Query(..., description="Latitude"),
    lng: float = Query(..., description="Longitude"),
    category: database.CategoryEnum = Query(..., description="Place category"),
    db: Session = Depends(database.get_db)
):
    """Places of a category within NEARBY_RADIUS_METERS, nearest first."""
    try:
        point = schemas.LocationSample(lat=lat, lng=lng)
    except ValueError:
        return JSONResponse(status_code=400, content={"error": REQUIRED_PARAMS_ERRORS["/nearby"]})
    hits = DatabaseProximityIndex(db).nearby(category, point, settings.NEARBY_RADIUS_METERS)
    return [
        schemas.NearbyPlace(
            name=place.name,
            category=place.category,
            price_level=place.price_level,
            rating=place.rating,
            distance=round(distance),
        )
        for place, distance in hits
    ]


@app.post("/location", response_model=schemas.LocationResponse)
def report_location(
    sample: schemas.LocationSample,
    engine: TriggerEngine = Depends(get_trigger_engine)
):
    """Run the trigger engine for a location sample.

    Returns the notification batches for tasks that fired. On failure no
    batches are returned; the client retries on its next poll.
    """
    try:
        batches = engine.process_sample(sample)
    except TriggerEngineError:
        return JSONResponse(status_code=500, content={"error": "Trigger engine failed"})
    return {"batches": batches}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level="info"
    )

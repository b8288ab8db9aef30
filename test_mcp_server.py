"""Tests for the MCP tools, called as plain functions."""

import pytest

import crud
import database
import mcp_server
from config import settings


@pytest.fixture(autouse=True)
def shared_db(session_factory, monkeypatch):
    monkeypatch.setattr(database, "SessionLocal", session_factory)
    monkeypatch.setattr(settings, "PROXIMITY_BACKEND", "database")


def test_create_and_list_tasks():
    created = mcp_server.create_task("buy medicine", priority="high")
    assert "Category: pharmacy" in created

    listing = mcp_server.list_tasks()
    assert "Found 1 task(s)" in listing
    assert "buy medicine" in listing
    assert mcp_server.list_tasks(status="triggered") == "No tasks found with status 'triggered'."


def test_report_location_fires_task(db):
    crud.create_place(db, {"name": "CityPharma", "category": "pharmacy", "latitude": 10.0, "longitude": 20.0})
    mcp_server.create_task("buy medicine")

    result = mcp_server.report_location(10.0, 20.0)

    assert "pharmacy (1 task(s))" in result
    assert "buy medicine @ CityPharma" in result
    assert mcp_server.report_location(10.0, 20.0) == "No tasks triggered at this location."


def test_find_nearby_places(db):
    crud.create_place(db, {"name": "FreshMart", "category": "grocery", "latitude": 10.001, "longitude": 20.0})

    assert "FreshMart - 111 m" in mcp_server.find_nearby_places(10.0, 20.0, "grocery")
    assert mcp_server.find_nearby_places(10.0, 20.0, "hardware") == "✗ Unknown category 'hardware'."


def test_delete_task():
    created = mcp_server.create_task("call mom")
    task_id = created.split("ID: ")[1].splitlines()[0]

    assert mcp_server.delete_task(task_id) == f"✓ Task {task_id} deleted successfully."
    assert mcp_server.delete_task(task_id) == "✗ Task not found."

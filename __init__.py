"""Smart Task Service - location-aware reminders.

Tasks ("buy milk") are categorized from their text and fire when a location
sample places the user near a place of the same category.

Components:
- config: Application settings
- database: SQLAlchemy models and session management
- schemas: Pydantic validation schemas
- classifier: Text to category rules
- crud: Task and place CRUD operations
- task_store: Trigger state transitions
- cooldown: Cooldown gates
- proximity: Nearest-place lookups
- trigger_engine: Decides which tasks fire for a location sample
- api_server: FastAPI REST API
- mcp_server: MCP server with tools for AI agents

Usage:
    python main.py

    # Or run directly
    python api_server.py
    python mcp_server.py
"""

__version__ = "1.0.0"
__description__ = "Location-aware reminder service with a trigger engine"

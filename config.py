"""Configuration module for Smart Task Service.

This module provides configuration settings using Pydantic Settings.
Environment variables can be used to override default values.
"""

from typing import Dict, List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings for Smart Task Service.

    All settings can be overridden via environment variables.
    Example: export DATABASE_URL="postgresql://..."
    """

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./smart_tasks.db"
    """Database connection URL. Default: SQLite file in current directory"""

    # API Server Configuration
    API_HOST: str = "0.0.0.0"
    """API server host address"""

    API_PORT: int = 3000
    """API server port (the mobile and web clients default to 3000)"""

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
    ]
    """Origins allowed to call the API from a browser"""

    # MCP Server Configuration
    MCP_HOST: str = "127.0.0.1"
    """MCP server host address"""

    MCP_PORT: int = 3006
    """MCP server port for SSE transport (separate from REST API)"""

    MCP_TRANSPORT: str = "sse"
    """MCP transport type: 'stdio' for local, 'sse' for network access"""

    # Trigger Engine Configuration
    CATEGORY_COOLDOWN_MINUTES: int = 30
    """Minimum minutes between two triggers of the same category"""

    DEFAULT_TASK_COOLDOWN_MINUTES: int = 60
    """Per-task cooldown assigned to new tasks"""

    TRIGGER_RADIUS_METERS: float = 1000.0
    """A task fires when a place of its category is within this radius"""

    NEARBY_RADIUS_METERS: float = 5000.0
    """Search radius for the /nearby listing"""

    BATCH_CAP: int = 5
    """Maximum tasks returned per category batch"""

    # Proximity Index Configuration
    PROXIMITY_BACKEND: str = "database"
    """'database' to search the local places table, 'http' for a remote places service"""

    PROXIMITY_API_URL: str = "http://127.0.0.1:3100"
    """Base URL of the remote places service (PROXIMITY_BACKEND=http)"""

    PROXIMITY_TIMEOUT_SECONDS: float = 2.0
    """Timeout for a single remote proximity query"""

    # Logging Configuration
    LOG_LEVEL: str = "INFO"
    """Level for service loggers (DEBUG shows every gate decision)"""

    LOG_DIR: str = ""
    """Directory for rotating log files; empty means ./logs beside the code"""

    LOG_MAX_BYTES: int = 10 * 1024 * 1024
    """Rotate a log file once it reaches this size"""

    LOG_BACKUP_COUNT: int = 5
    """Rotated files kept per log"""

    # Classifier Configuration
    CATEGORY_KEYWORDS: Dict[str, List[str]] = {
        "clothing": ["shirt", "clothes", "dress"],
        "grocery": ["apple", "milk", "fruit"],
        "pharmacy": ["medicine", "tablet"],
    }
    """Ordered keyword sets; the first category with a matching keyword wins"""

    class Config:
        """Pydantic config"""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Global settings instance
settings = Settings()

# =======================================================================================
# checkin_station/database.py - Local Store Management
# =======================================================================================
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from contextlib import contextmanager
from typing import Optional
from .config import config

SCHEMA = """
CREATE TABLE IF NOT EXISTS station_credentials (
    name       VARCHAR(64) PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""

class DatabaseManager:
    """Manages the station's local SQLite store."""

    def __init__(self, url: Optional[str] = None):
        self.url = url or config.STORE_URL
        connect_args = {"check_same_thread": False} if self.url.startswith("sqlite") else {}
        self.engine: Engine = create_engine(
            self.url,
            pool_pre_ping=True,
            connect_args=connect_args,
            future=True,
        )
        self._initialized = False

    def init_schema(self):
        """Create the credential table if it does not exist yet."""
        if self._initialized:
            return
        with self.engine.begin() as conn:
            conn.execute(text(SCHEMA))
        self._initialized = True

    @contextmanager
    def get_connection(self):
        """Get a database connection with automatic cleanup."""
        self.init_schema()
        with self.engine.begin() as conn:
            yield conn

    def fetch_one(self, query: str, params: dict = None):
        """Fetch a single result."""
        with self.get_connection() as conn:
            result = conn.execute(text(query), params or {})
            return result.mappings().first()

    def dispose(self):
        self.engine.dispose()

# Global store instance
db_manager = DatabaseManager()

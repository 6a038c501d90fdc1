"""
Planning dashboard.

Aggregates a planning directory of markdown documents into projects,
tasks and outputs, and serves them to a web UI.

The dashboard consists of:
- Sync layer (sync/) - Scan the planning directory and run the sync triggers
- Database layer (db/) - SQLite durable store
- Cache layer (cache/) - In-process and Redis snapshot caches
- Backends (backends.py) - The store or the cache, behind one interface
- API layer (api/) - FastAPI endpoints for the web UI
- Models (models.py) - Pydantic models for dashboard records
"""

__all__: list[str] = []

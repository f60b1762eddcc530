"""
Checkins Backend — Application Package Initializer
===================================================

What: Marks the `checkins` directory as a Python package.
Why:  Enables module imports like `from checkins.config import Settings`.
Who:  Used by uvicorn (via `checkins.main:main`), pytest, and the console script.

Architecture Note:
    The backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP verbs, paths, status codes
    ├─────────────────────────────────────┤
    │   Services (Validator, Repository)  │  ← Payload rules, persistence calls
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │    Database (Bounded Conn. Pool)    │  ← Async SQLAlchemy + semaphore gate
    └─────────────────────────────────────┘

    Configuration is built once at startup and handed down through
    `app.state`; no module holds a global settings object.
"""

__version__ = "1.0.0"

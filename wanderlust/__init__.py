"""
Wanderlust Backend - Application Package
=========================================

What: Server-rendered listing marketplace (listings, reviews, accounts, images).
Who:  Imported by uvicorn (`uvicorn wanderlust.main:app`), Alembic and pytest.

Layers:

    ┌─────────────────────────────────────┐
    │   Routes + Guards (HTTP layer)      │  ← auth gate, ownership, validation
    ├─────────────────────────────────────┤
    │   Services (persistence logic)      │  ← listings, reviews, users, files
    ├─────────────────────────────────────┤
    │   Models & Schemas (data)           │  ← SQLAlchemy ORM + pydantic forms
    ├─────────────────────────────────────┤
    │   Database (async sessions)         │
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"

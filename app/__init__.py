"""
Lavandaria API — Application Package
======================================

What: Backend for a laundry and short-stay cleaning business.
Who:  Imported by uvicorn (app.main:app) and by the test suite.

Layers:

    ┌─────────────────────────────────────────────┐
    │  Middleware (correlation, access log,       │  ← every request
    │  login rate limit, session cookie)          │
    ├─────────────────────────────────────────────┤
    │  Routes + role gate + pagination            │  ← HTTP concerns only
    ├─────────────────────────────────────────────┤
    │  Services                                   │  ← business rules
    ├─────────────────────────────────────────────┤
    │  Models & Schemas                           │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────────────┤
    │  Database                                   │  ← async SQLAlchemy sessions
    └─────────────────────────────────────────────┘

Every response, success or failure, goes out through app.envelope.
"""

__version__ = "1.0.0"

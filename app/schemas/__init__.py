"""
Lavandaria API — Pydantic Request/Response Schemas
====================================================

Request models validate JSON bodies; response models define exactly which
columns leave the service (password hashes never do). Response models are
dumped into the success envelope by the route handlers.
"""

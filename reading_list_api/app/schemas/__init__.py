"""
Pydantic schema definitions for API payloads.

Each resource (accounts, announcements, loans) defines its own request
and response models.  Response models use camelCase aliases because
the JSON contract consumed by the frontend is camelCase, while the
Python side and the storage records stay snake_case.
"""

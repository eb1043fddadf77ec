"""
Application package for the Reading List API.

The project is split by concern: ``core`` holds configuration, logging,
errors and security helpers, ``storage`` the pluggable persistence
backends, ``services`` the business rules of each resource, ``schemas``
the request/response models and ``api`` the HTTP routes.
"""

from .main import app, create_app  # noqa: F401

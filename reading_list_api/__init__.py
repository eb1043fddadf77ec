"""
Top-level package for the Reading List API.

The service itself lives in the ``app`` subpackage; importing
``reading_list_api.app.main`` builds the ASGI application.  The package
provides no public exports.
"""

__all__ = []

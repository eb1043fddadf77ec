"""
Service layer.

Each service encapsulates the business rules of one resource and works
against an injected ``Storage`` backend, so the same logic runs on the
in-memory store used by tests and on the file or SQLite stores used in
deployments.
"""

from .account_service import AccountService
from .announcement_service import AnnouncementService
from .loan_service import LoanService

__all__ = ["AccountService", "AnnouncementService", "LoanService"]

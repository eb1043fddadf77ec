"""
Top-level API router.

Aggregates the resource routers under a single router that ``main``
mounts at ``/api``.  The debug router is included separately because it
is optional.
"""

from fastapi import APIRouter

from .endpoints import accounts, announcements, loans, version

router = APIRouter()

router.include_router(version.router, tags=["version"])
# Account routes span two prefixes (``/account/...`` and ``/accounts``),
# so the router defines full paths itself.
router.include_router(accounts.router, tags=["accounts"])
router.include_router(announcements.router, prefix="/announcements", tags=["announcements"])
router.include_router(loans.router, prefix="/loans", tags=["loans"])

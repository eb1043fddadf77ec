"""
Debug endpoints.

Inspect the configured storage, list accounts with their roles, and
wipe every collection.  Mounted only when ``ENABLE_DEBUG_ROUTES`` is
set; disable it in any deployment that holds real data.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...core.config import Settings
from ...services import AccountService
from ...storage import Storage
from ..deps import get_account_service, get_settings, get_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/status")
async def storage_status(store: Storage = Depends(get_store)) -> Dict[str, Any]:
    status = {"status": "OK", "storage": store.describe()}
    if store.backend_name == "memory":
        status["warning"] = "Data will be lost on restart"
    return status


@router.get("/users")
async def debug_users(service: AccountService = Depends(get_account_service)) -> Dict[str, Any]:
    accounts = await service.list_accounts()
    users = [account.model_dump(by_alias=True) for account in accounts]
    return {"users": users, "usersCount": len(users)}


@router.get("/reset")
async def reset(store: Storage = Depends(get_store), settings: Settings = Depends(get_settings)) -> Dict[str, str]:
    """Delete all accounts, announcements and loans."""
    store.clear()
    logger.warning("All data cleared through the debug reset route")
    return {"message": f"All data cleared. Create a fresh {settings.superuser_name} account."}

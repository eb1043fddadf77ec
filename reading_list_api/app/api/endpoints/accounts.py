"""
Account endpoints.

Registration, login, profile lookup, listing and role changes.  Every
username in a path, query or body is matched case-insensitively.
"""

from fastapi import APIRouter, Depends, Query

from ...schemas.account import (
    AccountCreated,
    AccountCredentials,
    AccountList,
    AccountRead,
    LoginResult,
    RoleUpdate,
)
from ...schemas.common import MessageResponse
from ...services import AccountService
from ..deps import get_account_service

router = APIRouter()


@router.post("/account/create", response_model=AccountCreated)
async def create_account(
    body: AccountCredentials,
    service: AccountService = Depends(get_account_service),
) -> AccountCreated:
    """Register a new account and report the role it received."""
    role = await service.create_account(body.username, body.password)
    return AccountCreated(message="Account created", role=role)


@router.post("/account/login", response_model=LoginResult)
async def login(
    body: AccountCredentials,
    service: AccountService = Depends(get_account_service),
) -> LoginResult:
    account = await service.login(body.username, body.password)
    return LoginResult(message="Login successful", username=account.username, role=account.role)


@router.get("/account/me", response_model=AccountRead)
async def get_me(
    username: str = Query("", description="Account to look up"),
    service: AccountService = Depends(get_account_service),
) -> AccountRead:
    """Return role and creation time of the named account.

    The frontend calls this periodically to notice role changes made by
    an administrator.
    """
    return await service.get_account(username)


@router.get("/accounts", response_model=AccountList)
async def list_accounts(service: AccountService = Depends(get_account_service)) -> AccountList:
    return AccountList(accounts=await service.list_accounts())


@router.put("/account/{username}/role", response_model=MessageResponse)
async def set_role(
    username: str,
    body: RoleUpdate,
    service: AccountService = Depends(get_account_service),
) -> MessageResponse:
    await service.set_role(username, body.role)
    return MessageResponse(message="Role updated")

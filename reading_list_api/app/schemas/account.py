"""
Pydantic models for accounts.

Request fields are optional at the schema level so that a missing
username or password is reported by ``AccountService`` as a 400 with
the same ``{"error": ...}`` body as every other validation failure,
rather than as a framework-generated 422.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from .common import MessageResponse


class AccountCredentials(BaseModel):
    """Body of ``/api/account/create`` and ``/api/account/login``."""

    username: Optional[str] = Field(None, examples=["Teacher1"])
    password: Optional[str] = Field(None, examples=["correct horse"])


class RoleUpdate(BaseModel):
    role: Optional[str] = Field(None, examples=["teacher"])


class AccountRead(BaseModel):
    """Public view of an account.  The password hash is never exposed."""

    username: str
    role: str
    created_at: Optional[str] = Field(None, alias="createdAt")

    model_config = {"populate_by_name": True}


class AccountList(BaseModel):
    accounts: List[AccountRead]


class AccountCreated(MessageResponse):
    role: str


class LoginResult(MessageResponse):
    username: str
    role: str

"""FastAPI dependencies resolving the storage backend and services."""

from fastapi import Request

from ..core.config import Settings
from ..services import AccountService, AnnouncementService, LoanService
from ..storage import Storage


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> Storage:
    return request.app.state.store


def get_account_service(request: Request) -> AccountService:
    return AccountService(
        get_store(request),
        superuser_name=get_settings(request).superuser_name,
    )


def get_announcement_service(request: Request) -> AnnouncementService:
    return AnnouncementService(get_store(request))


def get_loan_service(request: Request) -> LoanService:
    return LoanService(
        get_store(request),
        loan_duration_days=get_settings(request).loan_duration_days,
    )

"""Version endpoint used by the frontend to detect new deployments."""

from fastapi import APIRouter, Depends

from ...core.config import Settings
from ...schemas.common import VersionInfo
from ..deps import get_settings

router = APIRouter()


@router.get("/version", response_model=VersionInfo)
async def get_version(settings: Settings = Depends(get_settings)) -> VersionInfo:
    return VersionInfo(version=settings.app_version, built_at=settings.built_at)

"""Announcement endpoints."""

from fastapi import APIRouter, Depends

from ...schemas.announcement import AnnouncementCreate, AnnouncementList
from ...schemas.common import SuccessResponse
from ...services import AnnouncementService
from ..deps import get_announcement_service

router = APIRouter()


@router.get("", response_model=AnnouncementList)
async def list_announcements(
    service: AnnouncementService = Depends(get_announcement_service),
) -> AnnouncementList:
    """List announcements, most recent first."""
    return AnnouncementList(announcements=await service.list())


@router.post("", response_model=SuccessResponse)
async def create_announcement(
    body: AnnouncementCreate,
    service: AnnouncementService = Depends(get_announcement_service),
) -> SuccessResponse:
    """Create an announcement from either client payload shape.

    ``{title, body}`` and ``{id, username, title, content}`` are both
    accepted; ``body`` wins when both ``body`` and ``content`` are sent.
    """
    text = body.body if body.body is not None else body.content
    await service.create(body.title, text, announcement_id=body.id, username=body.username)
    return SuccessResponse()


@router.delete("/{announcement_id}", response_model=SuccessResponse)
async def delete_announcement(
    announcement_id: str,
    service: AnnouncementService = Depends(get_announcement_service),
) -> SuccessResponse:
    """Delete an announcement.  Deleting an unknown id also succeeds."""
    await service.delete(announcement_id)
    return SuccessResponse()

"""
Pydantic models for announcements.

Two client generations post announcements: the older one sends
``{id, username, title, content}``, the newer one ``{title, body}``.
Both shapes are accepted; ``content`` is treated as an alias of
``body`` and both keys are returned when reading.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class AnnouncementCreate(BaseModel):
    id: Optional[str] = Field(None, examples=["ann_1"])
    username: Optional[str] = Field(None, examples=["dreamseak"])
    title: Optional[str] = Field(None, examples=["Library closed on Friday"])
    body: Optional[str] = Field(None, examples=["Returns go to the office."])
    content: Optional[str] = None


class AnnouncementRead(BaseModel):
    id: str
    username: Optional[str] = None
    title: str = ""
    body: str = ""
    content: str = ""
    created_at: str = Field(..., alias="createdAt")

    model_config = {"populate_by_name": True}


class AnnouncementList(BaseModel):
    announcements: List[AnnouncementRead]

"""Response envelopes shared by several resources."""

from pydantic import BaseModel, Field


class SuccessResponse(BaseModel):
    success: bool = True


class MessageResponse(SuccessResponse):
    message: str = Field(..., examples=["Role updated"])


class VersionInfo(BaseModel):
    """Payload of ``GET /api/version``."""

    version: str = Field(..., examples=["0.0.1"])
    built_at: str = Field(..., alias="builtAt")

    model_config = {"populate_by_name": True}

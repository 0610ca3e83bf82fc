"""ID allocation and lifecycle schemas."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class GenerateRequest(BaseModel):
    """Schema for an allocation request."""

    owner: str
    table: str | None = None


class IdDetails(BaseModel):
    """Snapshot of one issued ID."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    owner: str
    table: str | None = Field(default=None, validation_alias=AliasChoices("table_name", "table"))
    confirmed: int
    created_at: datetime


class ConfirmRequest(BaseModel):
    """Schema for a confirmation request."""

    id: str


class ConfirmResponse(BaseModel):
    """Structured confirm result; a miss is ``success=False``, not an error."""

    success: bool
    message: str


class PreviewResponse(BaseModel):
    """Best-effort candidate that was not persisted."""

    preview_id: str

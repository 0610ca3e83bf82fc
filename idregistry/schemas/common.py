"""Shared response schemas."""

from typing import Any

from pydantic import BaseModel


class ApiError(BaseModel):
    """JSON error envelope returned for every failed request."""

    error: str
    message: str
    details: dict[str, Any] | None = None


class MessageResponse(BaseModel):
    message: str


class HealthSettings(BaseModel):
    id_length: int
    charset: str
    admin_secret: str


class HealthResponse(BaseModel):
    """Suspend state, storage location and active allocation settings."""

    status: str
    db_path: str
    settings: HealthSettings

"""Administrative suspend/resume endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from idregistry.api.dependencies import CurrentGate
from idregistry.schemas.common import MessageResponse

router = APIRouter()

SecretParam = Annotated[str | None, Query(description="Shared admin secret")]


@router.post("/suspend", response_model=MessageResponse)
async def suspend(gate: CurrentGate, secret: SecretParam = None) -> MessageResponse:
    """Reject new mutating requests until resumed."""
    gate.suspend(secret)
    return MessageResponse(message="Server suspended (new requests rejected)")


@router.post("/resume", response_model=MessageResponse)
async def resume(gate: CurrentGate, secret: SecretParam = None) -> MessageResponse:
    """Accept mutating requests again."""
    gate.resume(secret)
    return MessageResponse(message="Server resumed")

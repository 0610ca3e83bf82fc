"""ID allocation and lifecycle endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Body

from idregistry.api.dependencies import (
    CurrentRandomSource,
    CurrentSettings,
    SuspendGatedRoute,
)
from idregistry.api.errors import not_implemented_response
from idregistry.api.ids.constants import (
    ID_DELETE_NOT_AVAILABLE_DETAIL,
    ID_UPDATE_NOT_AVAILABLE_DETAIL,
)
from idregistry.repositories.id_record_repository import MutationOutcome
from idregistry.schemas.common import MessageResponse
from idregistry.schemas.ids import (
    ConfirmRequest,
    ConfirmResponse,
    GenerateRequest,
    IdDetails,
    PreviewResponse,
)
from idregistry.services import allocation, registry

router = APIRouter()
# Mutating endpoints; rejected while the server is suspended.
mutations = APIRouter(route_class=SuspendGatedRoute)


def _mutation_response(outcome: MutationOutcome, *, unavailable_detail: str) -> Any:
    if outcome is MutationOutcome.NOT_IMPLEMENTED:
        return not_implemented_response(unavailable_detail)
    return MessageResponse(message=outcome.value)


@router.get("/preview", response_model=PreviewResponse)
async def preview(
    allocation_settings: CurrentSettings,
    random_source: CurrentRandomSource,
) -> PreviewResponse:
    """Generate a candidate without persisting it."""
    preview_id = await allocation.preview_id(
        settings=allocation_settings,
        random_source=random_source,
    )
    return PreviewResponse(preview_id=preview_id)


@mutations.post(
    "/generate",
    response_model=IdDetails,
)
async def generate(
    request: GenerateRequest,
    allocation_settings: CurrentSettings,
    random_source: CurrentRandomSource,
) -> IdDetails:
    """Allocate a new ID for an owner."""
    record = await allocation.allocate_id(
        owner=request.owner,
        table_name=request.table,
        settings=allocation_settings,
        random_source=random_source,
    )
    return IdDetails.model_validate(record)


@mutations.post(
    "/confirm",
    response_model=ConfirmResponse,
)
async def confirm(request: ConfirmRequest) -> ConfirmResponse:
    """Confirm a previously allocated ID."""
    outcome = await registry.confirm_id(request.id)
    return ConfirmResponse(success=outcome.success, message=outcome.message)


@router.get("/get_id/{record_id}", response_model=IdDetails)
async def get_id(record_id: str) -> IdDetails:
    """Look up an active (not soft-deleted) ID."""
    record = await registry.lookup_id(record_id)
    return IdDetails.model_validate(record)


@mutations.put(
    "/ids/{record_id}",
    response_model=MessageResponse,
)
async def update_id(
    record_id: str,
    changes: Annotated[Any, Body()],
) -> Any:
    """Update an ID's metadata (not yet available)."""
    outcome = await registry.update_id(record_id, changes)
    return _mutation_response(outcome, unavailable_detail=ID_UPDATE_NOT_AVAILABLE_DETAIL)


@mutations.delete(
    "/ids/{record_id}",
    response_model=MessageResponse,
)
async def delete_id(record_id: str) -> Any:
    """Soft-delete an ID (not yet available)."""
    outcome = await registry.delete_id(record_id)
    return _mutation_response(outcome, unavailable_detail=ID_DELETE_NOT_AVAILABLE_DETAIL)


router.include_router(mutations)

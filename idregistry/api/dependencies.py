"""Dependencies that expose process-wide state to route handlers."""

from collections.abc import Callable, Coroutine
from typing import Annotated, Any

from fastapi import Depends, Request, Response
from fastapi.routing import APIRoute

from idregistry.core.random_source import RandomSource
from idregistry.core.suspend_gate import SuspendGate
from idregistry.services.settings_store import AllocationSettings


def get_allocation_settings(request: Request) -> AllocationSettings:
    return request.app.state.allocation_settings


def get_suspend_gate(request: Request) -> SuspendGate:
    return request.app.state.suspend_gate


def get_random_source(request: Request) -> RandomSource:
    return request.app.state.random_source


class SuspendGatedRoute(APIRoute):
    """Route that rejects the request while suspended, before the body is read."""

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        handler = super().get_route_handler()

        async def gated_handler(request: Request) -> Response:
            get_suspend_gate(request).ensure_active()
            return await handler(request)

        return gated_handler


CurrentSettings = Annotated[AllocationSettings, Depends(get_allocation_settings)]
CurrentGate = Annotated[SuspendGate, Depends(get_suspend_gate)]
CurrentRandomSource = Annotated[RandomSource, Depends(get_random_source)]

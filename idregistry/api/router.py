"""API router aggregator."""

from fastapi import APIRouter

from idregistry.api.admin import routes as admin_routes
from idregistry.api.ids import routes as id_routes

api_router = APIRouter()

api_router.include_router(id_routes.router, tags=["IDs"])
api_router.include_router(admin_routes.router, tags=["Admin"])

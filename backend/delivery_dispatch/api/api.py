# delivery_dispatch/api/api.py

from fastapi import APIRouter

from delivery_dispatch.api.endpoints import delivery_api, system

api_router = APIRouter()

api_router.include_router(delivery_api.router, tags=["Delivery"])
api_router.include_router(system.router, tags=["System"])

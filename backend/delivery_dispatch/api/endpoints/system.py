# delivery_dispatch/api/endpoints/system.py
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Annotated
from pymongo.errors import PyMongoError
from motor.motor_asyncio import AsyncIOMotorDatabase
from delivery_dispatch import __version__
from delivery_dispatch.core.config import settings
from delivery_dispatch.core.logging_setup import logger
from delivery_dispatch.db.mongo_client import get_database

router = APIRouter()

class StatusResponse(BaseModel):
    project_name: str
    version: str
    status: str = "operational"
    database_status: str

@router.get(
    "/status",
    response_model=StatusResponse,
    summary="Detailed Service Status"
)
async def get_system_status(
    db: Annotated[AsyncIOMotorDatabase, Depends(get_database)],
):
    try:
        await db.command('ping')
        db_status = "connected"
    except PyMongoError as e:
        logger.error(f"Status Check: DB ping failed: {e}")
        db_status = "error"

    return StatusResponse(
        project_name=settings.APP_NAME,
        version=__version__,
        status="operational" if db_status == "connected" else "degraded",
        database_status=db_status,
    )

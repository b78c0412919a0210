# delivery_dispatch/db/mongo_client.py
# The Motor client is created once in the app lifespan and kept on app.state
from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from delivery_dispatch.core.config import Settings, redact_mongo_uri
from delivery_dispatch.core.logging_setup import logger

async def connect_to_mongo(settings: Settings) -> AsyncIOMotorClient:
    """Opens a MongoDB client using settings and verifies it with a ping."""
    logger.info(f"Connecting to MongoDB: {redact_mongo_uri(settings.MONGODB_URI)} / DB: {settings.MONGO_DB_NAME}")
    client = AsyncIOMotorClient(
        settings.MONGODB_URI,
        serverSelectionTimeoutMS=settings.MONGO_SERVER_SELECTION_TIMEOUT_MS,
        uuidRepresentation='standard',
        tz_aware=True,
    )
    try:
        await client.admin.command('ping')
    except Exception as e:
        logger.critical(f"FATAL: Failed to connect to MongoDB: {e}")
        client.close()
        raise RuntimeError(f"Failed to connect to MongoDB: {e}") from e
    logger.success(f"Connected to MongoDB database '{settings.MONGO_DB_NAME}' successfully.")
    return client

def close_mongo_connection(client: AsyncIOMotorClient | None):
    """Closes the MongoDB client connection."""
    if client is None:
        return
    logger.info("Closing MongoDB connection...")
    client.close()
    logger.info("MongoDB connection closed.")

def get_database(request: Request) -> AsyncIOMotorDatabase:
    """FastAPI dependency returning the database opened during startup."""
    db = getattr(request.app.state, "mongo_db", None)
    if db is None:
        logger.error("Database instance is not available.")
        raise RuntimeError("Database not connected. Ensure the application lifespan ran.")
    return db

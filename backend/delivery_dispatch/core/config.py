# delivery_dispatch/core/config.py
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import Field, field_validator, model_validator
from pathlib import Path
from loguru import logger
from typing import Annotated, Optional, List
import json, sys

DEFAULT_MONGO_DB_NAME = "delivery_db"

class Settings(BaseSettings):
    # --- Core App Settings ---
    APP_NAME: str = "Delivery Dispatch Service"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # --- CORS ---
    # Example: "http://localhost:5173,https://dispatch.example.com"
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = Field(["*"], description="List of allowed CORS origins. Use '*' for dev ONLY.")

    # --- Database (MongoDB) ---
    MONGODB_URI: str = Field("mongodb://localhost:27017", description="MongoDB connection string")
    MONGO_DB_NAME: Optional[str] = None # Derived from URI if not set, defaults to 'delivery_db'
    DELIVERY_COLLECTION: str = "delivery_requests"
    MONGO_SERVER_SELECTION_TIMEOUT_MS: int = 5000

    # --- Uvicorn (local dev) ---
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    RELOAD: bool = False

    model_config = SettingsConfigDict(
        env_file=str(Path.cwd() / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("ALLOWED_ORIGINS", mode='before')
    @classmethod
    def split_origins(cls, value):
        # Accepts a JSON list or a comma-separated string
        if isinstance(value, str):
            value = value.strip()
            if value.startswith("["):
                return json.loads(value)
            return [o.strip() for o in value.split(',') if o.strip()]
        return value

    @model_validator(mode='after')
    def process_and_validate(self) -> 'Settings':
        if not self.MONGODB_URI:
            raise ValueError("MONGODB_URI must not be empty.")

        # Derive DB name if needed
        if self.MONGO_DB_NAME is None:
            db_name = self.MONGODB_URI.split('//')[-1].partition('/')[2].split('?')[0]
            self.MONGO_DB_NAME = db_name or DEFAULT_MONGO_DB_NAME
            logger.info(f"Derived MONGO_DB_NAME: {self.MONGO_DB_NAME}")

        if not self.API_PREFIX.startswith("/"):
            self.API_PREFIX = f"/{self.API_PREFIX}"
        self.API_PREFIX = self.API_PREFIX.rstrip("/")

        return self

def redact_mongo_uri(uri: str) -> str:
    """Host part of a MongoDB URI, without credentials or database path."""
    hosts = uri.split('//')[-1]
    if '@' in hosts:
        hosts = hosts.split('@')[-1]
    return hosts.split('/')[0]

# --- Global Settings Instance ---
try:
    settings = Settings()
    logger.info(f"Settings loaded for {settings.APP_NAME}")
    logger.info(f"Log Level: {settings.LOG_LEVEL}")
    logger.info(f"MongoDB: {redact_mongo_uri(settings.MONGODB_URI)} / DB: {settings.MONGO_DB_NAME}")
    logger.info(f"CORS Origins: {settings.ALLOWED_ORIGINS}")
except ValueError as e:
    logger.critical(f"CONFIGURATION ERROR: {e}")
    sys.exit(f"Configuration Error: {e}")

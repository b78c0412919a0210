# delivery_dispatch/main.py
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager
from functools import partial

# --- Core Imports ---
from delivery_dispatch import __version__
from delivery_dispatch.core.config import settings
from delivery_dispatch.core.logging_setup import setup_logging, logger, trace_id_middleware
from delivery_dispatch.core.exceptions import RepositoryError
from delivery_dispatch.db.mongo_client import connect_to_mongo, close_mongo_connection
from delivery_dispatch.modules.delivery.exceptions import (
    DeliveryValidationError, DeliveryNotFoundError, DeliveryConflictError, DeliveryUpdateError,
)
from delivery_dispatch.modules.delivery.repository import DeliveryRepository
from delivery_dispatch.api.api import api_router
from delivery_dispatch.models.api_common import ErrorDetail

# --- Configure Logging ---
setup_logging()

# --- Custom Exception Handlers ---
def _request_logger(request: Request):
    return logger.bind(trace_id=getattr(request.state, 'trace_id', "N/A"))

async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    _request_logger(request).warning(f"HTTP Exception: Status={exc.status_code}, Detail={exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    _request_logger(request).warning(f"Validation Error: Path={request.url.path}, Errors={exc.errors()}")
    error_details = [
        ErrorDetail(loc=list(e.get('loc', [])), msg=e.get('msg', ''), type=e.get('type', 'validation_error')).model_dump()
        for e in exc.errors()
    ]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": error_details})

async def domain_exception_handler(request: Request, exc: Exception, status_code: int):
    """Handles delivery domain exceptions raised by the service layer."""
    _request_logger(request).warning(f"Domain Exception: Type={type(exc).__name__}, Detail={exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})

async def delivery_update_error_handler(request: Request, exc: DeliveryUpdateError):
    _request_logger(request).error(f"Delivery Update Error: {exc}")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Failed to update delivery request"})

async def repository_error_handler(request: Request, exc: RepositoryError):
    _request_logger(request).error(f"Repository/Database Error: {exc}")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Database operation failed."})

async def generic_unhandled_exception_handler(request: Request, exc: Exception):
    trace_id = getattr(request.state, 'trace_id', "N/A")
    logger.bind(trace_id=trace_id).exception(f"Unhandled Exception: Path={request.url.path}")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Internal Server Error"}, headers={"X-Trace-ID": trace_id})

# --- Application Lifespan ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Opens the MongoDB client, ensures indexes, and closes the client on shutdown."""
    logger.info(f"Starting up {settings.APP_NAME}...")
    mongo_client = None
    try:
        mongo_client = await connect_to_mongo(settings)
        db_instance = mongo_client[settings.MONGO_DB_NAME]

        logger.info("Ensuring database indexes...")
        await DeliveryRepository(db=db_instance).ensure_indexes()

        app.state.mongo_client = mongo_client
        app.state.mongo_db = db_instance
        logger.info("Startup sequence complete.")
    except Exception as e:
        logger.critical(f"Application startup failed: {e}")
        close_mongo_connection(mongo_client)
        raise RuntimeError(f"Startup error: {e}") from e

    yield # Application runs

    logger.info(f"Shutting down {settings.APP_NAME}...")
    app.state.mongo_db = None
    close_mongo_connection(app.state.mongo_client)
    app.state.mongo_client = None
    logger.info("Shutdown complete.")

# --- FastAPI App ---
app = FastAPI(
    title=settings.APP_NAME,
    version=__version__,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    exception_handlers={
        # FastAPI/Starlette Built-ins
        StarletteHTTPException: http_exception_handler,
        RequestValidationError: validation_exception_handler,
        # Delivery domain errors
        DeliveryValidationError: partial(domain_exception_handler, status_code=status.HTTP_400_BAD_REQUEST),
        DeliveryNotFoundError: partial(domain_exception_handler, status_code=status.HTTP_404_NOT_FOUND),
        DeliveryConflictError: partial(domain_exception_handler, status_code=status.HTTP_409_CONFLICT),
        DeliveryUpdateError: delivery_update_error_handler,
        RepositoryError: repository_error_handler,
        # Catch-all (must be last)
        Exception: generic_unhandled_exception_handler,
    }
)

# --- Apply Middlewares ---
# Order matters: the last one added runs first on the request.
app.add_middleware(BaseHTTPMiddleware, dispatch=trace_id_middleware)

if settings.ALLOWED_ORIGINS:
    logger.info(f"Configuring CORS for origins: {settings.ALLOWED_ORIGINS}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*", "X-Trace-ID"],
        expose_headers=["X-Trace-ID"],
    )

# --- Include API Routers ---
app.include_router(api_router, prefix=settings.API_PREFIX)

# --- Root Health Check Endpoint ---
@app.get("/health", tags=["Health Check"])
async def health_check():
    return {"status": "healthy", "service": settings.APP_NAME}

# --- Main Execution Block (for local dev only) ---
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "delivery_dispatch.main:app",
        host=settings.HOST, port=settings.PORT,
        reload=settings.RELOAD, log_level=settings.LOG_LEVEL.lower()
    )

"""Main FastAPI application"""
import logging
import logging.config
from typing import Optional
from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from motor.motor_asyncio import AsyncIOMotorClient
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from config import Settings, load_settings
from routes import router as api_router
from utils.receipt_storage import ReceiptStorage

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

APP_VERSION = "1.0.0"
API_PREFIX = "/api"
EXPENSE_WRITE_METHODS = {"POST", "PUT"}


def build_logging_config(level: str = "INFO") -> dict:
    """Unified logging configuration: app and uvicorn loggers share one RichHandler."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(name)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "default": {
                "class": "rich.logging.RichHandler",
                "formatter": "default",
                "level": "DEBUG",
                "rich_tracebacks": True,
                "show_time": True,
                "show_path": False,
                "log_time_format": "%Y-%m-%d %H:%M:%S",
                "markup": False,
            },
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "": {  # Root logger for our application
                "handlers": ["default"],
                "level": level,
                "propagate": False,
            },
        },
    }


logger = logging.getLogger(__name__)


# --- Middleware for Upload Size Limit ---
class LimitUploadSizeMiddleware(BaseHTTPMiddleware):
    """Rejects expense create/update bodies whose declared size exceeds the limit."""

    def __init__(self, app, max_upload_size: int, path_prefix: str):
        super().__init__(app)
        self.max_upload_size = max_upload_size
        self.path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next):
        if request.method in EXPENSE_WRITE_METHODS and request.url.path.startswith(self.path_prefix):
            content_length_header = request.headers.get("content-length")
            if content_length_header:
                try:
                    content_length = int(content_length_header)
                except ValueError:
                    logger.warning("Upload rejected: Invalid Content-Length header.")
                    return Response("Invalid Content-Length header.", status_code=400)
                if content_length > self.max_upload_size:
                    logger.warning(f"Upload rejected: size {content_length} exceeds limit {self.max_upload_size}.")
                    return Response(
                        f"Maximum upload size limit ({self.max_upload_size / (1024*1024):.1f} MB) exceeded.",
                        status_code=413,
                    )
        return await call_next(request)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings

    # Startup: receipt storage root is created once, here
    app.state.receipt_storage.initialize()

    logger.info(f"Connecting to MongoDB database '{settings.db_name}'...")
    app.state.db_client = None
    app.state.expenses_collection = None
    try:
        client = AsyncIOMotorClient(settings.mongodb_uri)
        await client.admin.command("ping")
        app.state.db_client = client
        app.state.expenses_collection = client[settings.db_name].get_collection(settings.expenses_collection)
        logger.info(f"Successfully connected to MongoDB database: {settings.db_name}")
    except Exception as e:
        logger.error(f"Failed to connect to MongoDB: {e}")

    yield  # Application runs here

    # Shutdown: Close MongoDB connection
    if app.state.db_client is not None:
        logger.info("Closing MongoDB connection...")
        app.state.db_client.close()
        logger.info("MongoDB connection closed.")


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or missing request fields, reported with the same {error} body as other failures."""
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"error": f"Invalid or missing fields: {', '.join(fields)}"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Builds the application. The receipt storage is created here and initialized during startup."""
    settings = settings or load_settings()

    app = FastAPI(
        title="Expense Tracker API",
        description="API for recording expenses with optional receipt attachments.",
        version=APP_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.receipt_storage = ReceiptStorage(settings.upload_dir, settings.upload_url_prefix)

    # --- Rate Limiter ---
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        enabled=settings.rate_limit_enabled,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # --- Middleware (Order Matters) ---
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        LimitUploadSizeMiddleware,
        max_upload_size=settings.max_upload_size,
        path_prefix=f"{API_PREFIX}/expenses",
    )

    app.include_router(api_router, prefix=API_PREFIX, tags=["expenses"])

    @app.get("/health")
    async def health_check():
        connected = getattr(app.state, "expenses_collection", None) is not None
        return {
            "status": "healthy" if connected else "degraded",
            "version": APP_VERSION,
        }

    # Stored receipts are served from the same root they are written to
    app.mount(
        settings.upload_url_prefix,
        StaticFiles(directory=settings.upload_dir, check_dir=False),
        name="receipts",
    )
    return app


_settings = load_settings()
logging.config.dictConfig(build_logging_config(_settings.log_level))
app = create_app(_settings)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )

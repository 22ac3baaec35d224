import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import ALLOWED_ORIGINS, DATABASE_URL, SECURITY_HEADERS_ENABLED
from .database import Database
from .domain.appointments import router as appointments_router
from .exceptions import ClinicError, ServerError
from .routes.admin import router as admin_router
from .routes.auth import router as auth_router
from .routes.users import router as users_router
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("passlib").setLevel(logging.ERROR)


def _error_response(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ClinicError)
    async def clinic_error_handler(request: Request, exc: ClinicError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} - {exc.message}")
        else:
            logger.warning(
                f"{request.method} {request.url.path} - {exc.status_code} {exc.message}"
            )
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return _error_response(exc.status_code, message, getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed bodies and query strings are reported as 400 in the common envelope"""
        errors = exc.errors()
        logger.warning(f"Validation error for {request.url.path}: {errors}")
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"Invalid {location}: {first.get('msg')}" if location else first.get("msg")
        else:
            message = "Invalid request"
        return _error_response(400, message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"{request.method} {request.url.path} - Unhandled error: {exc}")
        return _error_response(ServerError.status_code, ServerError.default_message)


def create_app(database: Optional[Database] = None) -> FastAPI:
    """Build the API around an explicitly constructed database handle"""
    if database is None:
        database = Database(DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application starting up...")
        try:
            database.create_all()
            logger.info("Database tables created successfully")
        except Exception as e:
            error_msg = str(e)
            if "already exists" in error_msg:
                logger.info("Database tables already exist (created by another worker)")
            else:
                logger.error(f"Failed to create database tables: {e}")
                raise

        yield
        logger.info("Application shutting down...")
        database.dispose()

    app = FastAPI(title="Clinic Scheduler API", version="1.0.0", lifespan=lifespan)
    app.state.database = database

    register_exception_handlers(app)

    if SECURITY_HEADERS_ENABLED:
        app.add_middleware(
            SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"]
        )
        logger.info("Security headers enabled")
    else:
        logger.warning("Security headers DISABLED - only use in development!")

    logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # Routes
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(appointments_router)
    app.include_router(admin_router)

    @app.get("/")
    def root():
        return {
            "message": "Welcome to Clinic Scheduler API",
            "version": app.version,
            "endpoints": {"health": "/health", "api": "/api"},
        }

    @app.get("/health")
    def health():
        return {
            "status": "OK",
            "message": "Clinic Scheduler API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


app = create_app()

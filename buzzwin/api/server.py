"""FastAPI application setup"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from buzzwin.api.routes import router
from buzzwin.api.middleware import setup_cors, setup_rate_limiting
from buzzwin.db.connection import db
from buzzwin.config import LOG_LEVEL, validate_config
from buzzwin.exceptions import BuzzwinError, ValidationError
from buzzwin.services.container import init_container

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL)
)

logger = logging.getLogger(__name__)


def error_response(exc: BuzzwinError) -> JSONResponse:
    """Standard error envelope; server errors only expose the user message"""
    return JSONResponse(
        status_code=exc.http_status,
        content={
            "success": False,
            "error": exc.message if exc.http_status < 500 else exc.user_message,
            "errorType": exc.__class__.__name__,
            "requestId": exc.request_id,
        }
    )


def validation_error_from_request(request: Request, exc: RequestValidationError) -> ValidationError:
    """Translate the first FastAPI validation error into a ValidationError"""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(location) or None

    message = first.get("msg", "Invalid request")
    return ValidationError(
        f"{field}: {message}" if field else message,
        field=field,
        value=first.get("input"),
        operation=f"{request.method} {request.url.path}",
        context={"error_count": len(errors)}
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for FastAPI application"""
    # Startup
    logger.info("Starting API server...")
    validate_config()
    await db.init_pool()
    logger.info("Database pool initialized")

    yield

    # Shutdown
    logger.info("Shutting down API server...")
    await db.close_pool()
    logger.info("Database pool closed")


def create_api_application() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Buzzwin Engagement API",
        description="Karma, levels and ritual streaks for Buzzwin",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.container = init_container(db)

    # Setup middleware
    setup_cors(app)
    setup_rate_limiting(app)

    # Include routes
    app.include_router(router)

    @app.exception_handler(BuzzwinError)
    async def buzzwin_exception_handler(request: Request, exc: BuzzwinError):
        # Already logged when the exception was created
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Malformed body or parameters are a 400 in the standard error envelope"""
        return error_response(validation_error_from_request(request, exc))

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error"}
        )

    logger.info("FastAPI application created")

    return app

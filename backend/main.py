"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1 import router as api_router
from app.core.config import settings
from app.core.database import close_db
from app.schemas.common import ErrorDetail, ErrorResponse
from app.services.uploads import UPLOADS_URL_PREFIX, ensure_upload_dirs, get_upload_root

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    ensure_upload_dirs()
    logger.info(f"Prakriti Setu API starting ({settings.app_env})")
    yield
    # Shutdown
    logger.info("Shutting down Prakriti Setu API")
    await close_db()


app = FastAPI(
    title="Prakriti Setu API",
    description="Donation matching between vendors, NGOs and customers",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _clean_message(message: str) -> str:
    return message.removeprefix("Value error, ")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Every HTTP error carries a ``message`` key."""
    message = exc.detail
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = "Route not found"
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=message).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Invalid input is a 400 with per-field messages."""
    errors = [
        ErrorDetail(
            field=".".join(str(part) for part in error["loc"] if part not in ("body", "query", "path")),
            message=_clean_message(error["msg"]),
        )
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(message="Validation failed", errors=errors).model_dump(),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "message": "Internal server error",
            "error": str(exc) if settings.app_env == "development" else "Something went wrong",
        },
    )


app.include_router(api_router, prefix=settings.api_prefix)

app.mount(
    UPLOADS_URL_PREFIX,
    StaticFiles(directory=get_upload_root(), check_dir=False),
    name="uploads",
)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "name": "Prakriti Setu API",
        "version": "0.1.0",
        "docs": "/docs",
    }

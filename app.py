"""
Stream Haven Backend - Unified Application Entry Point
Mounts the auth, user, media, admin and sync routers under one FastAPI app
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from database import init_database
from services.admin.app import router as admin_router
from services.auth_service import router as auth_router
from services.catalog.app import router as media_router
from services.library.app import router as user_router
from services.sync.app import router as sync_router
from services.sync.scheduler import SyncScheduler
from shared.rate_limit import rate_limiter
from shared.response_models import ErrorResponse
from shared.utils import config, ensure_directory, setup_logging

logger = setup_logging("stream-haven-backend")

scheduler = SyncScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_database()
    if config.get("auto_sync_enabled"):
        scheduler.start()
        # First pass right away; later passes follow the interval
        await scheduler.run_once()
    yield
    scheduler.stop()


app = FastAPI(
    title="Stream Haven Backend API",
    description="""
    Accounts, saved folders, watch history and a cached proxy over the movie metadata provider.

    All endpoints are documented below. Service routes are organized by tag.
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Authentication", "description": "Registration, verification, login and Google sign-in - mounted at /auth"},
        {"name": "User", "description": "Profile and avatar - mounted at /user"},
        {"name": "Library", "description": "Saved folders - mounted at /user"},
        {"name": "History", "description": "Watch history - mounted at /user"},
        {"name": "Media", "description": "Trending cache and upstream catalog proxy - mounted at /media"},
        {"name": "Admin", "description": "User management - mounted at /admin"},
        {"name": "Sync", "description": "Catalog refresh - mounted at /sync"},
        {"name": "Health", "description": "Service health and status endpoints"},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get("allowed_origins", ["*"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(rate_limiter)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=str(exc.detail)).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [{"loc": list(error.get("loc", [])), "msg": error.get("msg")} for error in exc.errors()]
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(message="Invalid request", errors=errors).model_dump(),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content=ErrorResponse().model_dump(exclude_none=True))


app.include_router(auth_router, prefix="/auth")
app.include_router(user_router, prefix="/user")
app.include_router(media_router, prefix="/media")
app.include_router(admin_router, prefix="/admin")
app.include_router(sync_router, prefix="/sync")

# Locally stored avatars
media_root = config.get("media_root")
ensure_directory(media_root)
app.mount("/static", StaticFiles(directory=media_root), name="static")


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint with service information and API navigation"""
    return {
        "service": "Stream Haven Backend API",
        "version": "1.0.0",
        "services": {
            "auth": {"base_url": "/auth"},
            "user": {"base_url": "/user"},
            "media": {"base_url": "/media"},
            "admin": {"base_url": "/admin"},
            "sync": {"base_url": "/sync"},
        },
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json",
        },
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "services": {
            "api_gateway": "operational",
            "scheduler": "running" if scheduler.is_running else "stopped",
        },
    }


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting Stream Haven Backend on http://0.0.0.0:8000")
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True, log_level="info")

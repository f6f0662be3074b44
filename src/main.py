"""
Main FastAPI application entry point.
Configures and initializes the Video Upload API.
"""
import time
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from mangum import Mangum
from src.core import dependencies
from src.core.config import settings
from src.core.exception_handler import register_exception_handlers
from src.core.logger import get_logger, setup_logging
from src.api.routes import health_routes, video_routes

setup_logging(settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    dependencies.get_asset_repository().close()
    logger.info("Asset provider client closed")


# Create FastAPI application
app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="Admin video upload service with live progress tracking",
    root_path=f"/{settings.environment}",
    lifespan=lifespan
)

# Register exception handlers
register_exception_handlers(app)

# Register routes
app.include_router(health_routes.router)
app.include_router(video_routes.router)

# Middleware to tag and time each request
@app.middleware("http")
async def log_request(request: Request, call_next):
    request_id = str(uuid.uuid4())
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000

    response.headers["x-request-id"] = request_id
    summary = f"{request.method} {request.url.path} -> {response.status_code} in {elapsed_ms:.0f}ms [{request_id}]"
    if elapsed_ms > settings.slow_request_ms:
        logger.warning(f"Slow request: {summary}")
    else:
        logger.info(summary)
    return response

# Lambda handler for AWS
handler = Mangum(app, lifespan="off")


# For local development
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

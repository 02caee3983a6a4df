"""Main application entry point."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
import logging
import json
from contextlib import asynccontextmanager

from .config import settings
from .api.connection import router as connection_router
from .api.drafts import router as drafts_router
from .api.functions import router as functions_router
from .api.models import router as models_router
from .api.profiles import router as profiles_router
from .api.prompts import router as prompts_router
from .api.templates import router as templates_router
from .api.usage import router as usage_router
from .database.init import init_database
from .services.connection_monitor import get_connection_monitor

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(),
    ],
)

logger = logging.getLogger(__name__)


async def log_requests_middleware(request: Request, call_next):
    """Log every request; prompt function POST bodies are logged in full."""
    logger.info(f"Incoming request: {request.method} {request.url.path}")

    # Streaming endpoints are passed straight through so the body stays unread
    if request.url.path.endswith("/stream"):
        response = await call_next(request)
        return response

    if "/functions/" in request.url.path and request.method == "POST":
        try:
            body = await request.body()
            if body:
                try:
                    body_json = json.loads(body.decode("utf-8"))
                    # Image payloads are too large to log
                    if isinstance(body_json, dict) and body_json.get("imageData"):
                        body_json["imageData"] = "<omitted>"
                    logger.info(
                        f"- Request body (JSON): {json.dumps(body_json, ensure_ascii=False)[:2000]}"
                    )
                except json.JSONDecodeError:
                    logger.info(
                        f"- Request body (raw): {body.decode('utf-8', errors='ignore')[:2000]}"
                    )
            else:
                logger.info("- Request body: Empty")

            # The body has been consumed; replay it for the route
            async def receive():
                return {"type": "http.request", "body": body}

            request._receive = receive

        except Exception as e:
            logger.error(f"Error reading request body: {e}")

    try:
        response = await call_next(request)
        logger.info(f"Response status: {response.status_code}")
        return response
    except Exception as e:
        logger.exception(f"Error processing request: {e}")
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    # Startup
    await init_database()
    monitor = get_connection_monitor() if settings.connection_monitor_enabled else None
    if monitor:
        monitor.start()
    yield
    # Shutdown
    if monitor:
        await monitor.stop()
    logger.info("Shutting down PromptPilot...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="PromptPilot",
        description="Prompt analysis and enhancement service",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure properly in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add request logging middleware
    app.middleware("http")(log_requests_middleware)

    # Include routers
    for router in (
        functions_router,
        prompts_router,
        drafts_router,
        templates_router,
        profiles_router,
        models_router,
        usage_router,
        connection_router,
    ):
        app.include_router(router, prefix=f"{settings.api_prefix}")

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"name": "PromptPilot", "version": "0.1.0", "status": "running"}

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "promptpilot.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
    )

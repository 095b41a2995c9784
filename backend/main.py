# backend/main.py
from fastapi import FastAPI, APIRouter
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
from typing import Optional

from docqa.core.config import settings
from docqa.core.errors import DocQAError
from docqa.api.endpoints import query, ingest # Import endpoint routers
from docqa.api.endpoints import status as status_endpoint
from docqa.services.container import RAGServices, build_services, run_ingestion

logger = logging.getLogger(__name__)

def create_app(services: Optional[RAGServices] = None) -> FastAPI:
    """
    Builds the API. When `services` is None the production collaborators are
    loaded from settings at startup.
    """

    # --- Lifespan Function ---
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # --- Startup ---
        logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
        logger.info("Starting up backend server...")
        app.state.services = services
        app.state.startup_error = None

        # Queries are refused until the first ingestion completes
        try:
            if app.state.services is None:
                app.state.services = build_services(settings)
            await run_ingestion(app.state.services)
        except (DocQAError, OSError) as e:
            logger.exception("[Lifespan] Initial ingestion failed; the knowledge base stays unavailable.")
            if app.state.services is None:
                app.state.startup_error = f"Startup failed: {e}"
        logger.info("[Lifespan] Backend setup complete.")
        yield # API ready

        # --- Shutdown ---
        logger.info("Shutting down backend server...")

    # --- FastAPI App Instance ---
    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan
    )

    # --- API Router Setup ---
    api_router = APIRouter()
    api_router.include_router(query.router, prefix="/ask", tags=["Query"])
    api_router.include_router(ingest.router, prefix="/ingest", tags=["Ingestion"])
    api_router.include_router(status_endpoint.router, prefix="/status", tags=["Status"])

    app.include_router(api_router, prefix=settings.API_V1_STR)

    # --- Root Endpoint ---
    @app.get("/", tags=["Root"])
    async def read_root():
        return {"message": f"Welcome to {settings.PROJECT_NAME}"}

    # --- CORS Middleware ---
    origins = [
        "http://localhost",
        "http://localhost:8501",
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app

app = create_app()

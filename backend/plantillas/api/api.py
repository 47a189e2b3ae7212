from contextlib import asynccontextmanager
from datetime import datetime
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from plantillas.api.endpoints import plantillas as plantillas_endpoints
from plantillas.config.settings import settings
from plantillas.modules.validators.registry import ValidatorRegistry
from plantillas.services.api_client import ReportesApiClient

# Configurar logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Cliente y registro de validadores compartidos por toda la aplicación"""
    if not hasattr(app.state, "api_client"):
        app.state.api_client = ReportesApiClient()
    if not hasattr(app.state, "registry"):
        app.state.registry = ValidatorRegistry(app.state.api_client)
    await app.state.registry.load()
    logger.info(f"Plantillas API lista ({len(app.state.registry.validators)} validadores)")
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Plantillas API",
        description="Descarga y carga de plantillas de reporte en Excel",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint for container health checks.

        Returns:
            dict: Simple health status.
        """
        return {"status": "healthy", "timestamp": datetime.now().isoformat()}

    app.include_router(plantillas_endpoints.router, prefix="/plantillas", tags=["plantillas"])
    return app


app = create_app()

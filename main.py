"""API Gateway X-trafik - Punto de entrada de la aplicación"""
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
import os
import sys
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx

from app.core.config import Settings, settings as default_settings
from services.ticket_gateway.services.gateway_service import TicketGatewayService
from services.ticket_gateway.services.xtrafik_client import create_xtrafik_client
from shared.utils.validation_errors import request_validation_exception_handler

# Configurar logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> FastAPI:
    """Crear la aplicación; `transport` permite inyectar un backend falso en tests"""
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifecycle events de la aplicación"""
        # Startup: los certificados se cargan aquí; si fallan, la app no arranca
        logger.info("Iniciando gateway X-trafik...")
        client = create_xtrafik_client(settings, transport=transport)
        app.state.settings = settings
        app.state.gateway_service = TicketGatewayService(client, settings)
        logger.info(f"Gateway iniciado (APP_ENV={settings.APP_ENV})")
        yield
        # Shutdown
        logger.info("Cerrando gateway...")
        if client is not None:
            await client.aclose()
        logger.info("Gateway cerrado")

    app = FastAPI(
        title="X-trafik Ticket Gateway",
        description="Gateway para validar y registrar biljetter contra X-trafik con TLS mutuo",
        version="1.0.0",
        lifespan=lifespan
    )

    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

    from services.ticket_gateway.routes.tickets import router as tickets_router

    app.include_router(tickets_router, prefix="/api", tags=["tickets"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    if not default_settings.XTRAFIK_BASE_URL:
        logger.error("Missing required environment variables: ['XTRAFIK_BASE_URL']")
        sys.exit(1)

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=default_settings.PORT,
        reload=os.getenv("APP_DEBUG", "False").lower() == "true"
    )

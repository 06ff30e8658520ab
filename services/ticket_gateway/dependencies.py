"""Dependencies de FastAPI para el gateway de tickets"""
from fastapi import HTTPException, Request, status

from app.core.config import Settings
from services.ticket_gateway.services.gateway_service import TicketGatewayService


def get_gateway_service(request: Request) -> TicketGatewayService:
    '''Obtener el orquestador creado en el startup (solo lectura, compartido entre requests)'''
    service = getattr(request.app.state, "gateway_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Gateway not initialized"
        )
    return service


def get_settings(request: Request) -> Settings:
    '''Obtener la configuración cargada en el startup'''
    return request.app.state.settings

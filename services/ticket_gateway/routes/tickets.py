"""Rutas del gateway de tickets X-trafik"""
from fastapi import APIRouter, Depends, Request, Response, status
from starlette.responses import JSONResponse
import logging

from app.core.config import Settings
from services.ticket_gateway.dependencies import get_gateway_service, get_settings
from services.ticket_gateway.errors import ConfigurationError, ExternalApiError, GatewayError, InvalidPriceError
from services.ticket_gateway.models.ticket import (
    ErrorResponse,
    RegisterTicketRequest,
    RegisterTicketResponse,
    UpdateTicketPriceRequest,
    ValidateTicketRequest,
    ValidateTicketResponse,
)
from services.ticket_gateway.services.gateway_service import (
    CONFIGURATION_ERROR_MESSAGE,
    GatewayOperation,
    TicketGatewayService,
    http_status_for,
)
from shared.utils.cancellation import ClientDisconnected, run_unless_disconnected

logger = logging.getLogger(__name__)

router = APIRouter()

# Status no estándar (nginx) para "el cliente cerró la conexión"
CLIENT_CLOSED_REQUEST = 499


def _error_message(error: GatewayError) -> str:
    if isinstance(error, ExternalApiError):
        return error.detail
    if isinstance(error, ConfigurationError):
        return CONFIGURATION_ERROR_MESSAGE
    return str(error)


def _error_response(
    error: GatewayError,
    operation: GatewayOperation,
    settings: Settings,
    content: dict = None
) -> JSONResponse:
    """Armar la respuesta de error según la política de status"""
    if content is None:
        content = ErrorResponse(message=_error_message(error)).model_dump(by_alias=True, exclude_none=True)

    if not settings.is_production:
        content["errorDetails"] = repr(error)

    return JSONResponse(status_code=http_status_for(error, operation), content=content)


@router.get("/test-connection")
async def test_connection(
    request: Request,
    service: TicketGatewayService = Depends(get_gateway_service)
):
    """
    Diagnóstico: muestra la configuración y prueba una consulta real a X-trafik

    200 si X-trafik respondió, 500 con el error si no.
    """
    try:
        status_code, body = await run_unless_disconnected(request, service.test_connection())
    except ClientDisconnected:
        return Response(status_code=CLIENT_CLOSED_REQUEST)

    return JSONResponse(status_code=status_code, content=body)


@router.post(
    "/validate-ticket",
    response_model=ValidateTicketResponse,
    response_model_exclude_none=True
)
async def validate_ticket(
    request: Request,
    validate_request: ValidateTicketRequest,
    service: TicketGatewayService = Depends(get_gateway_service),
    settings: Settings = Depends(get_settings)
):
    """
    Validar ticket contra X-trafik

    Compatible con: RegisterTicket.validateTicketWithXTrafik()
    """
    ticket_id = validate_request.ticket_id
    logger.info(f"Ticket validation request - ticket_id: {ticket_id}")

    try:
        outcome = await run_unless_disconnected(request, service.validate(ticket_id))
    except ClientDisconnected:
        return Response(status_code=CLIENT_CLOSED_REQUEST)

    if outcome.success:
        return outcome.to_response()

    content = outcome.to_response().model_dump(by_alias=True, mode="json", exclude_none=True)
    return _error_response(outcome.error, GatewayOperation.VALIDATE, settings, content)


@router.post(
    "/register-ticket",
    response_model=RegisterTicketResponse,
    status_code=status.HTTP_201_CREATED
)
async def register_ticket(
    request: Request,
    register_request: RegisterTicketRequest,
    service: TicketGatewayService = Depends(get_gateway_service),
    settings: Settings = Depends(get_settings)
):
    """
    Registrar ticket en X-trafik

    No valida el ticket antes: el caller debe llamar a /validate-ticket.
    """
    logger.info(
        f"Ticket registration request - ticket_id: {register_request.ticket_id}, "
        f"price: {register_request.price}"
    )

    try:
        return await run_unless_disconnected(
            request,
            service.register(register_request.ticket_id, register_request.price)
        )
    except ClientDisconnected:
        return Response(status_code=CLIENT_CLOSED_REQUEST)
    except (ExternalApiError, ConfigurationError, InvalidPriceError) as e:
        logger.error(f"Ticket registration failed - ticket_id: {register_request.ticket_id}, error: {e!r}")
        return _error_response(e, GatewayOperation.REGISTER, settings)


@router.put("/update-ticket/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_ticket_price(
    ticket_id: str,
    request: Request,
    update_request: UpdateTicketPriceRequest,
    service: TicketGatewayService = Depends(get_gateway_service),
    settings: Settings = Depends(get_settings)
):
    """Actualizar el precio de un ticket registrado (idempotente)"""
    logger.info(f"Ticket price update request - ticket_id: {ticket_id}, price: {update_request.price}")

    try:
        await run_unless_disconnected(request, service.update_price(ticket_id, update_request.price))
    except ClientDisconnected:
        return Response(status_code=CLIENT_CLOSED_REQUEST)
    except (ExternalApiError, ConfigurationError, InvalidPriceError) as e:
        logger.error(f"Ticket price update failed - ticket_id: {ticket_id}, error: {e!r}")
        return _error_response(e, GatewayOperation.UPDATE_PRICE, settings)

    return Response(status_code=status.HTTP_204_NO_CONTENT)

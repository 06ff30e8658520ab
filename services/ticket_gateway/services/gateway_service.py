"""Servicio orquestador del gateway de tickets X-trafik"""
import time
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Tuple, Union
import logging

from pydantic import TypeAdapter, ValidationError

from app.core.config import Settings
from services.ticket_gateway.errors import (
    ConfigurationError,
    ExternalApiError,
    ExternalErrorKind,
    GatewayError,
    InvalidPriceError,
)
from services.ticket_gateway.models.ticket import (
    Price,
    RegisterTicketResponse,
    TicketId,
    TicketRecord,
    TicketResult,
    ValidateTicketResponse,
)
from services.ticket_gateway.services.xtrafik_client import XTrafikClient
from shared.utils.ticket_ids import derive_external_id

logger = logging.getLogger(__name__)

CONFIGURATION_ERROR_MESSAGE = "Server configuration error"

# Ticket fijo usado para probar la conexión (ya tiene forma de UUID, no se deriva)
CONNECTION_PROBE_TICKET_ID = "4b2f5e56-7d3e-4a9d-8e6e-0f7e2d9d3e8f"


class GatewayOperation(str, Enum):
    VALIDATE = "validate"
    REGISTER = "register"
    UPDATE_PRICE = "update_price"


def http_status_for(error: GatewayError, operation: GatewayOperation) -> int:
    """
    Política de traducción de errores a status HTTP

    - CertificateError: siempre falla del lado del gateway (502)
    - BadRequest / precio inválido: falla del input del caller (400)
    - NotFound: 404 solo para validate y update_price
    - El resto (ServerError, NetworkError, configuración...): 500
    """
    if isinstance(error, InvalidPriceError):
        return 400

    if not isinstance(error, ExternalApiError):
        return 500

    if error.kind == ExternalErrorKind.CERTIFICATE_ERROR:
        return 502

    if error.kind == ExternalErrorKind.NOT_FOUND and operation in (
        GatewayOperation.VALIDATE,
        GatewayOperation.UPDATE_PRICE,
    ):
        return 404

    if error.kind == ExternalErrorKind.BAD_REQUEST and operation in (
        GatewayOperation.REGISTER,
        GatewayOperation.UPDATE_PRICE,
    ):
        return 400

    return 500


_price_adapter = TypeAdapter(Price)


def normalize_price(price: Union[Decimal, int, float, str, None]) -> Decimal:
    """Convertir y validar precio con las mismas reglas que la API (>= 0, precisión acotada)"""
    if price is None:
        raise InvalidPriceError("Missing required field: price")

    try:
        return _price_adapter.validate_python(str(price) if isinstance(price, float) else price)
    except ValidationError:
        raise InvalidPriceError("price must be a non-negative number") from None


@dataclass
class ValidationOutcome:
    """Resultado de validate: éxito o fallo clasificado (nunca lanza)"""
    ticket_id: TicketId
    status: TicketResult
    success: bool
    message: Optional[str] = None
    error: Optional[GatewayError] = None

    def to_response(self) -> ValidateTicketResponse:
        return ValidateTicketResponse(
            success=self.success,
            ticket_id=self.ticket_id,
            status=self.status,
            message=self.message
        )


class TicketGatewayService:
    """
    Orquestador: deriva el identificador externo y llama a X-trafik

    No reintenta, no cachea y no guarda estado entre requests. Las
    operaciones son independientes: register no re-valida el ticket.
    """

    def __init__(self, client: Optional[XTrafikClient], settings: Settings):
        self.client = client
        self.settings = settings

    def _require_client(self) -> XTrafikClient:
        if self.client is None:
            logger.error("X-trafik API base URL not configured")
            raise ConfigurationError(CONFIGURATION_ERROR_MESSAGE)
        return self.client

    async def validate(self, ticket_id: TicketId) -> ValidationOutcome:
        """
        Validar ticket contra X-trafik

        Un 404 de X-trafik se reporta como Rejected (ticket inexistente y
        ticket rechazado se tratan igual); cualquier otro fallo es
        NotValidated.
        """
        started = time.monotonic()

        try:
            client = self._require_client()
            external_id = derive_external_id(ticket_id)
            ticket_status = await client.get_ticket_status(external_id)
        except ConfigurationError as e:
            return ValidationOutcome(
                ticket_id=ticket_id,
                status=TicketResult.NOT_VALIDATED,
                success=False,
                message=CONFIGURATION_ERROR_MESSAGE,
                error=e
            )
        except ExternalApiError as e:
            duration_ms = int((time.monotonic() - started) * 1000)
            logger.error(
                f"Ticket validation failed - ticket_id: {ticket_id}, "
                f"kind: {e.kind.value}, error: {e.detail}, duration: {duration_ms}ms"
            )
            status = (
                TicketResult.REJECTED
                if e.kind == ExternalErrorKind.NOT_FOUND
                else TicketResult.NOT_VALIDATED
            )
            return ValidationOutcome(
                ticket_id=ticket_id,
                status=status,
                success=False,
                message=e.detail,
                error=e
            )

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"Ticket validation completed - ticket_id: {ticket_id}, "
            f"status: {ticket_status.result.value}, duration: {duration_ms}ms"
        )

        return ValidationOutcome(
            ticket_id=ticket_id,
            status=ticket_status.result,
            success=True
        )

    async def register(self, ticket_id: TicketId, price) -> RegisterTicketResponse:
        """
        Registrar ticket en X-trafik

        No hay idempotencia en esta capa: dos llamadas con el mismo ticket
        generan dos POST. Quien necesite validar antes debe llamar a
        validate() por su cuenta.

        Raises:
            InvalidPriceError: precio negativo, antes de cualquier llamada de red
            ConfigurationError: XTRAFIK_BASE_URL no configurado
            ExternalApiError: fallo clasificado de X-trafik
        """
        value = normalize_price(price)
        client = self._require_client()

        record = TicketRecord(
            id=derive_external_id(ticket_id),
            ticket_id=ticket_id,
            price=value
        )
        await client.create_ticket(record)

        logger.info(f"Ticket registrado - ticket_id: {ticket_id}, external_id: {record.id}, price: {value}")

        return RegisterTicketResponse(
            ticket_id=ticket_id,
            external_id=record.id,
            price=value
        )

    async def update_price(self, ticket_id: TicketId, price) -> None:
        """Actualizar solo el precio de un ticket ya registrado"""
        value = normalize_price(price)
        client = self._require_client()

        external_id = derive_external_id(ticket_id)
        await client.update_ticket_price(external_id, value)

        logger.info(f"Precio actualizado - ticket_id: {ticket_id}, external_id: {external_id}, price: {value}")

    async def test_connection(self) -> Tuple[int, Dict]:
        """
        Probar la conexión con X-trafik usando un ticket fijo

        Returns:
            (status HTTP, body con diagnóstico de configuración y resultado)
        """
        base_url = self.settings.XTRAFIK_BASE_URL
        test_url = (
            self.client.ticket_url(CONNECTION_PROBE_TICKET_ID)
            if self.client
            else f"{base_url}{self.settings.XTRAFIK_TICKETS_PATH}/{CONNECTION_PROBE_TICKET_ID}"
        )

        diagnostics = {
            "configuration": {
                "baseUrl": base_url or "NOT SET",
                "hasClientCert": bool(self.settings.XTRAFIK_CLIENT_CERT),
                "hasClientKey": bool(self.settings.XTRAFIK_CLIENT_KEY),
                "fullTestUrl": test_url,
            },
            "test": {
                "ticketId": CONNECTION_PROBE_TICKET_ID,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        }

        logger.info(f"Test connection request - base_url: {diagnostics['configuration']['baseUrl']}")
        started = time.monotonic()

        try:
            if self.client is None:
                raise ConfigurationError("XTRAFIK_BASE_URL not configured")
            ticket_status = await self.client.get_ticket_status(CONNECTION_PROBE_TICKET_ID)
        except GatewayError as e:
            duration = f"{int((time.monotonic() - started) * 1000)}ms"
            error_message = e.detail if isinstance(e, ExternalApiError) else str(e)
            logger.error(f"Test connection failed - error: {error_message}, duration: {duration}")

            body = {
                **diagnostics,
                "success": False,
                "error": error_message,
                "duration": duration,
                "message": "Connection test failed",
            }
            if not self.settings.is_production:
                body["errorDetails"] = "".join(
                    traceback.format_exception(type(e), e, e.__traceback__)
                )
            return 500, body

        duration = f"{int((time.monotonic() - started) * 1000)}ms"
        logger.info(f"Test connection succeeded - result: {ticket_status.result.value}, duration: {duration}")

        return 200, {
            **diagnostics,
            "success": True,
            "result": ticket_status.model_dump(by_alias=True, mode="json"),
            "duration": duration,
            "message": "Connection successful!",
        }

"""Cliente de la API de X-trafik - Async con httpx y TLS mutuo"""
import os
import ssl
from decimal import Decimal
from typing import Optional

import httpx
import logging

from app.core.config import Settings
from services.ticket_gateway.errors import (
    CertificateLoadError,
    ConfigurationError,
    ExternalApiError,
    ExternalErrorKind,
)
from services.ticket_gateway.models.ticket import TicketRecord, TicketStatus

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


def build_ssl_context(client_cert: Optional[str], client_key: Optional[str]) -> ssl.SSLContext:
    """
    Construir el contexto TLS para hablar con X-trafik

    Si hay par certificado/llave se carga de inmediato (TLS mutuo); si no,
    TLS normal sin autenticación de cliente (útil para pruebas locales).
    La verificación del certificado del servidor queda siempre activa.

    Raises:
        ConfigurationError: si solo se configuró una mitad del par
        CertificateLoadError: si los archivos no existen o no se pueden parsear
    """
    ssl_context = ssl.create_default_context()

    if not client_cert and not client_key:
        logger.warning("X-trafik: sin certificado cliente, usando TLS sin autenticación de cliente")
        return ssl_context

    if not client_cert or not client_key:
        raise ConfigurationError(
            "XTRAFIK_CLIENT_CERT y XTRAFIK_CLIENT_KEY deben configurarse juntos"
        )

    for path in (client_cert, client_key):
        if not os.path.isfile(path):
            logger.error(f"X-trafik: archivo de certificado no encontrado: {path}")
            raise CertificateLoadError(f"Client certificate file not found: {path}")

    try:
        ssl_context.load_cert_chain(certfile=client_cert, keyfile=client_key)
    except (ssl.SSLError, OSError) as e:
        # No loggear el contenido del certificado, solo el tipo de error
        logger.error(f"X-trafik: no se pudo cargar el certificado cliente ({type(e).__name__})")
        raise CertificateLoadError("Failed to load client certificate") from e

    logger.info("Client certificate loaded for X-trafik API")
    return ssl_context


def _problem_detail(response: httpx.Response) -> str:
    """Extraer título/detalle de un ProblemDetails de X-trafik, si viene"""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]

    if isinstance(body, dict):
        return str(body.get("detail") or body.get("title") or "")
    return ""


class XTrafikClient:
    """Único componente autorizado a abrir conexiones hacia X-trafik"""

    def __init__(
        self,
        base_url: str,
        client_cert: Optional[str] = None,
        client_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        tickets_path: str = "/api/Tickets",
        update_method: str = "PUT",
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not base_url or not base_url.strip():
            raise ConfigurationError("XTRAFIK_BASE_URL not configured")

        self.base_url = base_url.strip().rstrip("/")
        self.timeout = timeout
        self.tickets_path = "/" + tickets_path.strip("/")
        self.update_method = update_method.upper()
        self.has_client_certificate = bool(client_cert and client_key)

        if self.update_method not in ("PUT", "PATCH"):
            raise ConfigurationError(
                f"XTRAFIK_UPDATE_METHOD inválido: {update_method} (usar PUT o PATCH)"
            )

        # Carga eager: un certificado roto debe fallar al arrancar, no en el primer request
        ssl_context = build_ssl_context(client_cert, client_key)

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            verify=ssl_context,
            timeout=timeout,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            transport=transport
        )

        logger.info(
            f"X-trafik client configurado: base_url={self.base_url}, "
            f"mTLS={'sí' if self.has_client_certificate else 'no'}, timeout={timeout}s"
        )

    def ticket_url(self, external_id: str) -> str:
        """URL absoluta del recurso ticket (para diagnóstico)"""
        return f"{self.base_url}{self.tickets_path}/{external_id}"

    async def aclose(self):
        await self._client.aclose()

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Enviar request; cualquier fallo sin respuesta HTTP es NetworkError"""
        logger.info(f"X-trafik API request: {method} {path}")

        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"X-trafik API: Timeout ({self.timeout}s) en {method} {path}")
            raise ExternalApiError(
                ExternalErrorKind.NETWORK_ERROR,
                f"Network error: timeout after {self.timeout}s"
            ) from e
        except httpx.RequestError as e:
            logger.error(f"X-trafik API: Network error en {method} {path}: {e}")
            raise ExternalApiError(
                ExternalErrorKind.NETWORK_ERROR,
                f"Network error: {e}"
            ) from e

        logger.info(f"X-trafik API response: {response.status_code} {method} {path}")
        return response

    def _raise_for_status(self, response: httpx.Response, path: str, classify_bad_request: bool):
        """Traducir un status no exitoso a la taxonomía de errores"""
        status_code = response.status_code

        if status_code == 403:
            logger.error("X-trafik API: Invalid client certificate (403)")
            raise ExternalApiError(
                ExternalErrorKind.CERTIFICATE_ERROR,
                "Invalid client certificate - access denied",
                status_code
            )

        if status_code == 404:
            logger.warning(f"X-trafik API: Ticket not found ({path})")
            raise ExternalApiError(ExternalErrorKind.NOT_FOUND, "Ticket not found", status_code)

        if status_code == 500:
            logger.error("X-trafik API: Server error (500)")
            raise ExternalApiError(ExternalErrorKind.SERVER_ERROR, "X-trafik API server error", status_code)

        if classify_bad_request and 400 <= status_code < 500:
            detail = _problem_detail(response)
            logger.warning(f"X-trafik API: Bad request ({status_code}) {path}: {detail}")
            raise ExternalApiError(
                ExternalErrorKind.BAD_REQUEST,
                f"Bad request: {detail}" if detail else "Bad request",
                status_code
            )

        logger.error(f"X-trafik API: Unexpected response status {status_code} ({path})")
        raise ExternalApiError(
            ExternalErrorKind.UNEXPECTED_RESPONSE,
            f"Unexpected response status: {status_code}",
            status_code
        )

    async def get_ticket_status(self, external_id: str) -> TicketStatus:
        """
        Consultar el estado de un ticket en X-trafik

        Args:
            external_id: Identificador externo (forma UUID)

        Returns:
            TicketStatus con id y result (OK | Rejected | NotValidated)

        Raises:
            ExternalApiError: con el kind correspondiente
        """
        path = f"{self.tickets_path}/{external_id}"
        response = await self._send("GET", path)

        if response.status_code != 200:
            self._raise_for_status(response, path, classify_bad_request=False)

        if not response.content:
            logger.error(f"X-trafik API: respuesta 200 sin body ({path})")
            raise ExternalApiError(
                ExternalErrorKind.UNEXPECTED_RESPONSE,
                "Unexpected response status: 200 (empty body)",
                200
            )

        try:
            return TicketStatus.model_validate(response.json())
        except ValueError as e:  # JSON inválido o ValidationError
            logger.error(f"X-trafik API: body inválido en {path}: {e}")
            raise ExternalApiError(
                ExternalErrorKind.UNEXPECTED_RESPONSE,
                "Unexpected response body from X-trafik",
                200
            ) from e

    async def create_ticket(self, record: TicketRecord) -> None:
        """Crear ticket en X-trafik (POST /api/Tickets)"""
        response = await self._send("POST", self.tickets_path, json=record.to_payload())

        if response.status_code not in (200, 201):
            self._raise_for_status(response, self.tickets_path, classify_bad_request=True)

    async def update_ticket_price(self, external_id: str, price: Decimal) -> None:
        """Actualizar solo el precio de un ticket existente"""
        path = f"{self.tickets_path}/{external_id}"
        response = await self._send(self.update_method, path, json={"price": float(price)})

        if response.status_code not in (200, 204):
            self._raise_for_status(response, path, classify_bad_request=True)


def create_xtrafik_client(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> Optional[XTrafikClient]:
    """
    Inicialización explícita del cliente a partir de la configuración

    Returns:
        XTrafikClient, o None si XTRAFIK_BASE_URL no está configurado
        (las operaciones responderán con error de configuración)

    Raises:
        ConfigurationError / CertificateLoadError: certificados mal configurados
    """
    if not settings.XTRAFIK_BASE_URL:
        logger.error("XTRAFIK_BASE_URL no configurado; el gateway no podrá validar tickets")
        return None

    return XTrafikClient(
        base_url=settings.XTRAFIK_BASE_URL,
        client_cert=settings.XTRAFIK_CLIENT_CERT or None,
        client_key=settings.XTRAFIK_CLIENT_KEY or None,
        timeout=settings.XTRAFIK_TIMEOUT_SECONDS,
        tickets_path=settings.XTRAFIK_TICKETS_PATH,
        update_method=settings.XTRAFIK_UPDATE_METHOD,
        transport=transport
    )

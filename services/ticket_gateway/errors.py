"""Taxonomía de errores del gateway de tickets"""
from enum import Enum
from typing import Optional


class ExternalErrorKind(str, Enum):
    CERTIFICATE_ERROR = "CertificateError"  # 403: certificado cliente rechazado
    NOT_FOUND = "NotFound"
    BAD_REQUEST = "BadRequest"
    SERVER_ERROR = "ServerError"
    NETWORK_ERROR = "NetworkError"  # Sin respuesta HTTP (conexión, DNS, timeout)
    UNEXPECTED_RESPONSE = "UnexpectedResponse"  # Status no clasificado o body inválido


class GatewayError(Exception):
    """Base de los errores del gateway"""


class ConfigurationError(GatewayError):
    """Configuración inválida o incompleta (ej. XTRAFIK_BASE_URL vacío)"""


class CertificateLoadError(ConfigurationError):
    """No se pudo leer o parsear el par certificado/llave del cliente"""


class InvalidPriceError(GatewayError):
    """Precio negativo o no numérico"""


class ExternalApiError(GatewayError):
    """
    Fallo de una llamada a X-trafik

    El campo `kind` es el que decide el status HTTP de la respuesta;
    `detail` es solo para logs y para el mensaje al usuario.
    """

    def __init__(
        self,
        kind: ExternalErrorKind,
        detail: str,
        status_code: Optional[int] = None
    ):
        super().__init__(detail)
        self.kind = kind
        self.detail = detail
        self.status_code = status_code

    def __repr__(self) -> str:
        return (
            f"ExternalApiError(kind={self.kind.value!r}, "
            f"status_code={self.status_code!r}, detail={self.detail!r})"
        )

"""Modelos Pydantic para el gateway de tickets X-trafik"""
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, StrictInt, StrictStr, field_validator
from pydantic.alias_generators import to_camel

# Precio >= 0 con precisión acotada: viaja como número (float) en JSON y
# debe sobrevivir la conversión sin perder dígitos ni desbordar.
PRICE_MAX_DIGITS = 15
PRICE_DECIMAL_PLACES = 6

Price = Annotated[
    Decimal,
    Field(ge=0, max_digits=PRICE_MAX_DIGITS, decimal_places=PRICE_DECIMAL_PLACES),
    PlainSerializer(float, return_type=float, when_used="json"),
]

# Strict: JSON true/false no se convierte en 1/0
TicketId = Union[StrictStr, StrictInt]


class TicketResult(str, Enum):
    """Resultado de validación según X-trafik (enum TicketResult del Swagger)"""
    OK = "OK"
    REJECTED = "Rejected"
    NOT_VALIDATED = "NotValidated"


class CamelModel(BaseModel):
    """Base: campos snake_case en Python, camelCase en JSON"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TicketIdMixin(CamelModel):
    ticket_id: TicketId

    @field_validator("ticket_id")
    @classmethod
    def ticket_id_not_empty(cls, value: TicketId) -> TicketId:
        if (isinstance(value, str) and not value.strip()) or value == 0:
            raise ValueError("Missing required field: ticketId")
        return value


# ============ CONTRATO CON X-TRAFIK ============

class TicketStatus(CamelModel):
    """Respuesta de GET /api/Tickets/{id}"""
    id: Optional[str] = None
    result: TicketResult


class TicketRecord(TicketIdMixin):
    """Registro de ticket tal como se crea en X-trafik"""
    id: str
    price: Price

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# ============ API DEL GATEWAY ============

class ValidateTicketRequest(TicketIdMixin):
    pass


class ValidateTicketResponse(CamelModel):
    success: bool
    ticket_id: TicketId
    status: TicketResult
    message: Optional[str] = None


class RegisterTicketRequest(TicketIdMixin):
    price: Price


class RegisterTicketResponse(CamelModel):
    success: bool = True
    ticket_id: TicketId
    external_id: str
    price: Price


class UpdateTicketPriceRequest(CamelModel):
    price: Price


class ErrorResponse(CamelModel):
    success: bool = False
    message: str
    error_details: Optional[str] = None  # Solo fuera de producción

"""Utilidades para derivar identificadores externos de tickets"""
import hashlib
from typing import Union

# Sal fija del espacio de nombres. Cambiarla re-mapea TODOS los tickets.
TICKET_ID_NAMESPACE = "collaktiv:xtrafik:ticket:"


def derive_external_id(ticket_id: Union[str, int]) -> str:
    """
    Derivar el identificador de X-trafik a partir del ticket interno

    X-trafik exige identificadores con forma de UUID; internamente usamos
    códigos cortos. La derivación es:
    - SHA-256 sobre namespace + str(ticket_id)
    - primeros 32 caracteres hexadecimales
    - formato 8-4-4-4-12

    No es un UUID v5 (no se ajustan bits de versión/variante) y no es
    reversible. Es pura: mismo ticket_id => mismo resultado, siempre.

    Args:
        ticket_id: Identificador interno (string o número)

    Returns:
        String con forma de UUID en minúsculas
    """
    digest = hashlib.sha256(
        f"{TICKET_ID_NAMESPACE}{ticket_id}".encode("utf-8")
    ).hexdigest()[:32]

    return f"{digest[:8]}-{digest[8:12]}-{digest[12:16]}-{digest[16:20]}-{digest[20:32]}"

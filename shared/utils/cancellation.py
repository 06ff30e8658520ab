"""Cancelar llamadas externas cuando el cliente HTTP se desconecta"""
import asyncio
from typing import Any, Awaitable
import logging

from fastapi import Request

logger = logging.getLogger(__name__)

DISCONNECT_POLL_INTERVAL = 0.5  # segundos


class ClientDisconnected(Exception):
    """El caller cerró la conexión antes de recibir la respuesta"""


async def run_unless_disconnected(
    request: Request,
    awaitable: Awaitable[Any],
    poll_interval: float = DISCONNECT_POLL_INTERVAL
) -> Any:
    """
    Ejecutar `awaitable` y cancelarlo si el caller se desconecta

    Sin desconexión, el único límite es el timeout propio de la llamada.

    Raises:
        ClientDisconnected: si se canceló la llamada por desconexión
    """
    task = asyncio.ensure_future(awaitable)

    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval)
            if done:
                return task.result()

            if await request.is_disconnected():
                logger.warning(f"Cliente desconectado, cancelando llamada a X-trafik ({request.url.path})")
                task.cancel()
                raise ClientDisconnected(request.url.path)
    finally:
        if not task.done():
            task.cancel()

"""
Trasporto verso il servizio push di Expo
Progetto: Gestionale Interventi

Invia i messaggi a https://exp.host/--/api/v2/push/send e restituisce i
ticket di risposta, uno per messaggio e nello stesso ordine.
"""

import logging
from typing import Any, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

# Limite di messaggi per singola richiesta imposto da Expo
EXPO_BATCH_SIZE = 100

DEVICE_NOT_REGISTERED = "DeviceNotRegistered"


def is_device_not_registered(ticket: dict[str, Any]) -> bool:
    """Un ticket con questo errore indica un token da deregistrare."""
    if ticket.get("status") != "error":
        return False
    details = ticket.get("details") or {}
    return details.get("error") == DEVICE_NOT_REGISTERED


class ExpoPushTransport:
    """Client HTTP asincrono per l'API push di Expo."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.url = url or settings.expo_push_url
        self.timeout = timeout if timeout is not None else settings.push_timeout_seconds

    async def send(self, messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """
        Invia i messaggi a blocchi di EXPO_BATCH_SIZE.

        Raises:
            httpx.HTTPError: Errori di rete o risposta HTTP non 2xx
        """
        tickets: list[dict[str, Any]] = []
        if not messages:
            return tickets

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for start in range(0, len(messages), EXPO_BATCH_SIZE):
                batch = messages[start:start + EXPO_BATCH_SIZE]
                response = await client.post(
                    self.url,
                    json=batch,
                    headers={
                        "Accept": "application/json",
                        "Accept-Encoding": "gzip, deflate",
                        "Content-Type": "application/json",
                    },
                )
                response.raise_for_status()
                data = response.json().get("data") or []
                if len(data) != len(batch):
                    logger.warning(
                        "Expo ha restituito %d ticket per %d messaggi",
                        len(data), len(batch),
                    )
                tickets.extend(data)

        return tickets

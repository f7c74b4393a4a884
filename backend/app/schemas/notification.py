"""
Schemas per le notifiche push
Progetto: Gestionale Interventi
"""

from pydantic import BaseModel, ConfigDict, Field


class NotificationPayload(BaseModel):
    """
    Messaggio consegnato al trasporto push.

    Attributes:
        title: Titolo della notifica
        body: Testo della notifica
        data: Dati accessori per il client (solo stringhe)
    """
    model_config = ConfigDict(frozen=True)

    title: str
    body: str
    data: dict[str, str] = Field(default_factory=dict)

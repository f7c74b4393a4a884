"""
Schemas Pydantic per i token JWT
Progetto: Gestionale Interventi

Payload dei token ricevuti dal servizio di autenticazione esterno.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class TokenPayload(BaseModel):
    """
    Schema per il payload contenuto nei token JWT.

    Attributes:
        sub: Subject - ID dell'utente come stringa
        role: Ruolo dichiarato nel token (informativo: fa fede il database)
        exp: Expiration - Data/ora di scadenza
        type: Tipo di token ("access" o "refresh")
    """

    sub: str = Field(..., description="ID utente")
    role: str = Field(default="", description="Ruolo dell'utente")
    exp: datetime = Field(..., description="Data/ora di scadenza")
    type: str = Field(..., description="Tipo di token (access/refresh)")


__all__ = ["TokenPayload"]

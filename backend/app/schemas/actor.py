"""
Identità dell'utente autenticato
Progetto: Gestionale Interventi

L'Actor è l'unica forma di identità consumata dai service: viene costruito
dal resolver in app.core.deps a partire dal token già verificato.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.models.user import UserRole


class Actor(BaseModel):
    """
    Utente che esegue l'operazione.

    Attributes:
        id: ID utente
        name: Nome completo (usato nei messaggi di notifica)
        role: Ruolo normalizzato
        company_id: NULL per i Master; la ditta posseduta per i Ditta;
            la ditta datrice di lavoro per i Tecnici
    """
    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    name: str
    role: UserRole
    company_id: Optional[uuid.UUID] = None

    @property
    def is_master(self) -> bool:
        return self.role == UserRole.MASTER

    @property
    def is_ditta(self) -> bool:
        return self.role == UserRole.DITTA

    @property
    def is_tecnico(self) -> bool:
        return self.role == UserRole.TECNICO

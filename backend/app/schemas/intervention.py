"""
Schemas Pydantic per gli Interventi
Progetto: Gestionale Interventi

Definisce enum di dominio, matrice delle transizioni per ruolo e gli
schemi di validazione e serializzazione per l'API.
"""

import datetime
import uuid
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)

from app.models.user import UserRole


# -------------------------------------------------------------------
# Enum di dominio
# -------------------------------------------------------------------

class InterventionStatus(str, Enum):
    """Stati del ciclo di vita di un intervento."""
    ASSIGNED = "assigned"
    APPOINTMENT_SET = "appointment_set"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CLOSED = "closed"

    @property
    def label(self) -> str:
        """Etichetta leggibile usata nelle notifiche."""
        return STATUS_LABELS[self]


class InterventionCategory(str, Enum):
    """Tipologia di lavoro."""
    SURVEY = "survey"
    INSTALLATION = "installation"
    MAINTENANCE = "maintenance"


class InterventionPriority(str, Enum):
    """Priorità dell'intervento."""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


STATUS_LABELS: dict[InterventionStatus, str] = {
    InterventionStatus.ASSIGNED: "Assegnato",
    InterventionStatus.APPOINTMENT_SET: "Appuntamento Fissato",
    InterventionStatus.IN_PROGRESS: "In Corso",
    InterventionStatus.COMPLETED: "Completato",
    InterventionStatus.CLOSED: "Chiuso",
}


# -------------------------------------------------------------------
# Matrice delle transizioni di stato per ruolo
# -------------------------------------------------------------------

# Unica source of truth: letta da app.services.status_service.allowed_transitions.
# Una coppia (ruolo, stato) assente o con insieme vuoto non ammette alcuna transizione.
ROLE_TRANSITIONS: dict[UserRole, dict[InterventionStatus, frozenset[InterventionStatus]]] = {
    UserRole.MASTER: {
        InterventionStatus.ASSIGNED: frozenset({
            InterventionStatus.APPOINTMENT_SET,
            InterventionStatus.IN_PROGRESS,
            InterventionStatus.COMPLETED,
            InterventionStatus.CLOSED,
        }),
        InterventionStatus.APPOINTMENT_SET: frozenset({
            InterventionStatus.ASSIGNED,
            InterventionStatus.IN_PROGRESS,
            InterventionStatus.COMPLETED,
            InterventionStatus.CLOSED,
        }),
        InterventionStatus.IN_PROGRESS: frozenset({
            InterventionStatus.ASSIGNED,
            InterventionStatus.APPOINTMENT_SET,
            InterventionStatus.COMPLETED,
            InterventionStatus.CLOSED,
        }),
        InterventionStatus.COMPLETED: frozenset({
            InterventionStatus.IN_PROGRESS,
            InterventionStatus.CLOSED,
        }),
        # Correzione: solo il Master può riaprire un intervento chiuso
        InterventionStatus.CLOSED: frozenset({InterventionStatus.COMPLETED}),
    },
    UserRole.DITTA: {
        InterventionStatus.ASSIGNED: frozenset({InterventionStatus.APPOINTMENT_SET}),
        InterventionStatus.APPOINTMENT_SET: frozenset({
            InterventionStatus.ASSIGNED,
            InterventionStatus.IN_PROGRESS,
        }),
        InterventionStatus.IN_PROGRESS: frozenset({
            InterventionStatus.APPOINTMENT_SET,
            InterventionStatus.COMPLETED,
        }),
        InterventionStatus.COMPLETED: frozenset({
            InterventionStatus.IN_PROGRESS,
            InterventionStatus.CLOSED,
        }),
    },
    UserRole.TECNICO: {
        InterventionStatus.ASSIGNED: frozenset({InterventionStatus.APPOINTMENT_SET}),
        InterventionStatus.APPOINTMENT_SET: frozenset({InterventionStatus.IN_PROGRESS}),
        InterventionStatus.IN_PROGRESS: frozenset({InterventionStatus.COMPLETED}),
    },
}


# -------------------------------------------------------------------
# Campi modificabili via PATCH, per ruolo
# -------------------------------------------------------------------

PATCHABLE_FIELDS: dict[UserRole, frozenset[str]] = {
    UserRole.MASTER: frozenset({
        "client_name",
        "client_phone",
        "client_email",
        "client_address",
        "client_civic_number",
        "client_city",
        "client_province",
        "client_postal_code",
        "category",
        "priority",
        "description",
    }),
    UserRole.DITTA: frozenset({
        "appointment_date",
        "appointment_notes",
        "documentation_notes",
        "closed_notes",
    }),
    UserRole.TECNICO: frozenset({
        "appointment_date",
        "appointment_notes",
        "location_latitude",
        "location_longitude",
        "location_address",
        "documentation_notes",
    }),
}


def _strip_required(v: Optional[str]) -> Optional[str]:
    if v is not None:
        v = v.strip()
        if not v:
            raise ValueError("Il campo non può essere vuoto")
    return v


# -------------------------------------------------------------------
# Schemas di input
# -------------------------------------------------------------------

class ClientInfo(BaseModel):
    """
    Dati del cliente copiati sull'intervento.

    Nome, indirizzo e città sono obbligatori.
    """
    client_name: str = Field(..., min_length=1, max_length=255)
    client_phone: Optional[str] = Field(None, max_length=50)
    client_email: Optional[EmailStr] = None
    client_address: str = Field(..., min_length=1)
    client_civic_number: Optional[str] = Field(None, max_length=20)
    client_city: str = Field(..., min_length=1, max_length=100)
    client_province: Optional[str] = Field(None, max_length=10)
    client_postal_code: Optional[str] = Field(None, max_length=10)

    @field_validator("client_name", "client_address", "client_city")
    @classmethod
    def validate_required_text(cls, v: str) -> str:
        """Rifiuta stringhe composte da soli spazi."""
        return _strip_required(v)


class InterventionCreate(ClientInfo):
    """
    Schema per la creazione di un intervento (solo Master).

    Il numero viene assegnato dal servizio di numerazione; lo stato
    iniziale è sempre 'assigned'.
    """
    category: InterventionCategory
    priority: InterventionPriority = InterventionPriority.NORMAL
    description: str = Field(..., min_length=1, max_length=10000)
    company_id: Optional[uuid.UUID] = Field(None, description="Ditta a cui pre-assegnare l'intervento")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        return _strip_required(v)


class InterventionUpdate(BaseModel):
    """
    Schema per l'aggiornamento parziale di un intervento.

    Quali campi siano effettivamente modificabili dipende dal ruolo
    (vedi PATCHABLE_FIELDS); stato e assegnazione hanno endpoint dedicati.
    """
    model_config = ConfigDict(extra="forbid")

    client_name: Optional[str] = Field(None, min_length=1, max_length=255)
    client_phone: Optional[str] = Field(None, max_length=50)
    client_email: Optional[EmailStr] = None
    client_address: Optional[str] = Field(None, min_length=1)
    client_civic_number: Optional[str] = Field(None, max_length=20)
    client_city: Optional[str] = Field(None, min_length=1, max_length=100)
    client_province: Optional[str] = Field(None, max_length=10)
    client_postal_code: Optional[str] = Field(None, max_length=10)
    category: Optional[InterventionCategory] = None
    priority: Optional[InterventionPriority] = None
    description: Optional[str] = Field(None, min_length=1, max_length=10000)

    appointment_date: Optional[datetime.datetime] = None
    appointment_notes: Optional[str] = None
    location_latitude: Optional[float] = Field(None, ge=-90, le=90)
    location_longitude: Optional[float] = Field(None, ge=-180, le=180)
    location_address: Optional[str] = None
    documentation_notes: Optional[str] = None
    closed_notes: Optional[str] = None

    @field_validator("client_name", "client_address", "client_city", "description")
    @classmethod
    def validate_required_text(cls, v: Optional[str]) -> Optional[str]:
        return _strip_required(v)


class InterventionFilters(BaseModel):
    """Filtri opzionali per la lista interventi."""
    status: Optional[InterventionStatus] = None
    category: Optional[InterventionCategory] = None
    company_id: Optional[uuid.UUID] = None
    technician_id: Optional[uuid.UUID] = None


class AssignCompanyRequest(BaseModel):
    """Assegnazione dell'intervento a una ditta (Master)."""
    company_id: uuid.UUID


class AssignTechnicianRequest(BaseModel):
    """
    Assegnazione dell'intervento a un tecnico della ditta (Ditta).

    technician_id null rimuove il tecnico senza cambiare lo stato.
    """
    technician_id: Optional[uuid.UUID] = None


class StatusTransitionRequest(BaseModel):
    """
    Richiesta di cambio stato con i dati accessori della transizione.

    - appointment_set: appointment_date obbligatoria, appointment_notes opzionali
    - in_progress: coordinate GPS opzionali (entrambe o nessuna)
    - completed: documentation_notes opzionali
    - closed: closed_notes opzionali
    """
    status: InterventionStatus = Field(..., description="Nuovo stato dell'intervento")
    appointment_date: Optional[datetime.datetime] = None
    appointment_notes: Optional[str] = None
    location_latitude: Optional[float] = Field(None, ge=-90, le=90)
    location_longitude: Optional[float] = Field(None, ge=-180, le=180)
    location_address: Optional[str] = None
    documentation_notes: Optional[str] = None
    closed_notes: Optional[str] = None

    @model_validator(mode="after")
    def validate_coordinates(self) -> "StatusTransitionRequest":
        """Le coordinate GPS vanno fornite in coppia."""
        if (self.location_latitude is None) != (self.location_longitude is None):
            raise ValueError("Latitudine e longitudine vanno fornite insieme")
        return self

    @property
    def has_location(self) -> bool:
        return self.location_latitude is not None and self.location_longitude is not None


class BulkDeleteRequest(BaseModel):
    """Eliminazione multipla di interventi (Master)."""
    ids: list[uuid.UUID] = Field(..., min_length=1)


class BulkDeleteResponse(BaseModel):
    deleted_count: int


class ReportSentRequest(BaseModel):
    """Conferma dell'invio del report PDF al cliente."""
    recipient_email: EmailStr


# -------------------------------------------------------------------
# Schemas di output
# -------------------------------------------------------------------

class CompanyBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str


class TechnicianBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    full_name: str
    phone: Optional[str] = None


class InterventionRead(BaseModel):
    """Schema per la lettura di un intervento."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    number: str

    client_name: str
    client_phone: Optional[str] = None
    client_email: Optional[str] = None
    client_address: str
    client_civic_number: Optional[str] = None
    client_city: str
    client_province: Optional[str] = None
    client_postal_code: Optional[str] = None

    category: InterventionCategory
    priority: InterventionPriority
    description: str
    status: InterventionStatus

    company_id: Optional[uuid.UUID] = None
    technician_id: Optional[uuid.UUID] = None
    company: Optional[CompanyBrief] = None
    technician: Optional[TechnicianBrief] = None
    assigned_by_id: Optional[uuid.UUID] = None
    assigned_at: Optional[datetime.datetime] = None

    appointment_date: Optional[datetime.datetime] = None
    appointment_notes: Optional[str] = None
    appointment_confirmed_at: Optional[datetime.datetime] = None

    location_latitude: Optional[float] = None
    location_longitude: Optional[float] = None
    location_address: Optional[str] = None
    location_captured_at: Optional[datetime.datetime] = None

    documentation_notes: Optional[str] = None
    started_at: Optional[datetime.datetime] = None
    completed_at: Optional[datetime.datetime] = None
    closed_at: Optional[datetime.datetime] = None
    closed_notes: Optional[str] = None

    created_at: datetime.datetime
    updated_at: datetime.datetime


class InterventionStats(BaseModel):
    """Conteggi per stato, limitati agli interventi visibili dall'utente."""
    total: int = 0
    assigned: int = 0
    appointment_set: int = 0
    in_progress: int = 0
    completed: int = 0
    closed: int = 0

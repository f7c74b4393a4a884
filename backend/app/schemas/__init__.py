"""
Schemas Pydantic per il progetto Gestionale Interventi

Questo modulo contiene tutti gli schemi Pydantic utilizzati per la validazione
e serializzazione delle richieste e delle risposte API.
"""

from app.schemas.actor import Actor
from app.schemas.company import CompanyDetail, CompanyRead, CompanyUpdate
from app.schemas.intervention import (
    PATCHABLE_FIELDS,
    ROLE_TRANSITIONS,
    AssignCompanyRequest,
    AssignTechnicianRequest,
    BulkDeleteRequest,
    BulkDeleteResponse,
    InterventionCategory,
    InterventionCreate,
    InterventionFilters,
    InterventionPriority,
    InterventionRead,
    InterventionStats,
    InterventionStatus,
    InterventionUpdate,
    ReportSentRequest,
    StatusTransitionRequest,
)
from app.schemas.notification import NotificationPayload
from app.schemas.photo import PhotoCreate, PhotoRead
from app.schemas.push_token import PushTokenRegister, PushTokenRemove
from app.schemas.report import InterventionReport
from app.schemas.token import TokenPayload

__all__ = [
    "Actor",
    "CompanyDetail",
    "CompanyRead",
    "CompanyUpdate",
    "PATCHABLE_FIELDS",
    "ROLE_TRANSITIONS",
    "AssignCompanyRequest",
    "AssignTechnicianRequest",
    "BulkDeleteRequest",
    "BulkDeleteResponse",
    "InterventionCategory",
    "InterventionCreate",
    "InterventionFilters",
    "InterventionPriority",
    "InterventionRead",
    "InterventionStats",
    "InterventionStatus",
    "InterventionUpdate",
    "ReportSentRequest",
    "StatusTransitionRequest",
    "NotificationPayload",
    "PhotoCreate",
    "PhotoRead",
    "PushTokenRegister",
    "PushTokenRemove",
    "InterventionReport",
    "TokenPayload",
]

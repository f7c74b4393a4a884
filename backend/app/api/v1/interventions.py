"""
Router FastAPI per gli Interventi
Progetto: Gestionale Interventi

Definisce gli endpoint API per lettura, creazione, assegnazione,
cambio di stato, foto ed eliminazione degli interventi.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import CurrentActor, DittaActor, MasterActor
from app.schemas.intervention import (
    AssignCompanyRequest,
    AssignTechnicianRequest,
    BulkDeleteRequest,
    BulkDeleteResponse,
    InterventionCategory,
    InterventionCreate,
    InterventionFilters,
    InterventionRead,
    InterventionStats,
    InterventionStatus,
    InterventionUpdate,
    ReportSentRequest,
    StatusTransitionRequest,
)
from app.schemas.photo import PhotoCreate, PhotoRead
from app.schemas.report import InterventionReport
from app.services.assignment_service import assignment_service
from app.services.intervention_service import intervention_service
from app.services.photo_service import photo_service
from app.services.status_service import status_service

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Router con prefix e tag
router = APIRouter(
    prefix="/interventions",
    tags=["Interventi"],
)


# -------------------------------------------------------------------
# Letture
# -------------------------------------------------------------------

@router.get(
    "/",
    name="interventi_lista",
    summary="Lista interventi",
    description="Recupera gli interventi visibili all'utente con eventuali filtri.",
    response_model=list[InterventionRead],
    status_code=status.HTTP_200_OK,
)
async def get_interventions(
    actor: CurrentActor,
    status_filter: Optional[InterventionStatus] = Query(
        None,
        alias="status",
        description="Filtro per stato",
    ),
    category: Optional[InterventionCategory] = Query(None, description="Filtro per categoria"),
    company_id: Optional[uuid.UUID] = Query(None, description="Filtro per ditta"),
    technician_id: Optional[uuid.UUID] = Query(None, description="Filtro per tecnico"),
    db: AsyncSession = Depends(get_db),
) -> list[InterventionRead]:
    """
    Recupera la lista degli interventi.

    Per Ditta e Tecnico i filtri restringono il perimetro visibile,
    non lo allargano.
    """
    filters = InterventionFilters(
        status=status_filter,
        category=category,
        company_id=company_id,
        technician_id=technician_id,
    )
    interventions = await intervention_service.get_all(db, actor, filters)
    return [InterventionRead.model_validate(i) for i in interventions]


@router.get(
    "/stats",
    name="interventi_statistiche",
    summary="Statistiche interventi",
    description="Conteggio degli interventi visibili, per stato.",
    response_model=InterventionStats,
    status_code=status.HTTP_200_OK,
)
async def get_intervention_stats(
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
) -> InterventionStats:
    return await intervention_service.get_stats(db, actor)


@router.get(
    "/{intervention_id}",
    name="intervento_dettaglio",
    summary="Dettaglio intervento",
    description="Recupera un intervento. Gli interventi fuori perimetro risultano inesistenti (404).",
    response_model=InterventionRead,
    status_code=status.HTTP_200_OK,
)
async def get_intervention(
    actor: CurrentActor,
    intervention_id: uuid.UUID = Path(..., description="UUID dell'intervento"),
    db: AsyncSession = Depends(get_db),
) -> InterventionRead:
    intervention = await intervention_service.get_by_id(db, actor, intervention_id)
    return InterventionRead.model_validate(intervention)


# -------------------------------------------------------------------
# Creazione, modifica ed eliminazione
# -------------------------------------------------------------------

@router.post(
    "/",
    name="intervento_crea",
    summary="Crea intervento",
    description="Crea un nuovo intervento, opzionalmente già assegnato a una ditta (solo Master).",
    response_model=InterventionRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_intervention(
    data: InterventionCreate,
    actor: MasterActor,
    db: AsyncSession = Depends(get_db),
) -> InterventionRead:
    """
    Crea un nuovo intervento.

    Raises:
        NotFoundError: Se la ditta indicata non esiste
        ConflictError: Se la numerazione non riesce dopo i tentativi previsti
    """
    intervention = await intervention_service.create(db, actor, data)
    await db.commit()
    return InterventionRead.model_validate(intervention)


@router.patch(
    "/{intervention_id}",
    name="intervento_aggiorna",
    summary="Aggiorna intervento",
    description="Aggiorna i campi consentiti al ruolo. "
               "NOTA: per cambiare lo stato usare l'endpoint POST /status.",
    response_model=InterventionRead,
    status_code=status.HTTP_200_OK,
)
async def update_intervention(
    actor: CurrentActor,
    intervention_id: uuid.UUID = Path(..., description="UUID dell'intervento"),
    data: InterventionUpdate = ...,
    db: AsyncSession = Depends(get_db),
) -> InterventionRead:
    intervention = await intervention_service.update(db, actor, intervention_id, data)
    await db.commit()
    return InterventionRead.model_validate(intervention)


@router.delete(
    "/{intervention_id}",
    name="intervento_elimina",
    summary="Elimina intervento",
    description="Elimina definitivamente un intervento e le sue foto (solo Master).",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_intervention(
    actor: MasterActor,
    intervention_id: uuid.UUID = Path(..., description="UUID dell'intervento"),
    db: AsyncSession = Depends(get_db),
) -> None:
    await intervention_service.delete(db, actor, intervention_id)
    await db.commit()


@router.post(
    "/bulk-delete",
    name="interventi_elimina_multipli",
    summary="Eliminazione multipla",
    description="Elimina più interventi in un'unica operazione (solo Master).",
    response_model=BulkDeleteResponse,
    status_code=status.HTTP_200_OK,
)
async def bulk_delete_interventions(
    data: BulkDeleteRequest,
    actor: MasterActor,
    db: AsyncSession = Depends(get_db),
) -> BulkDeleteResponse:
    deleted = await intervention_service.bulk_delete(db, actor, data.ids)
    await db.commit()
    return BulkDeleteResponse(deleted_count=deleted)


# -------------------------------------------------------------------
# Assegnazioni e stato
# -------------------------------------------------------------------

@router.post(
    "/{intervention_id}/assign-company",
    name="intervento_assegna_ditta",
    summary="Assegna a una ditta",
    description="Assegna l'intervento a una ditta: rimuove il tecnico e riporta lo stato ad 'assigned'.",
    response_model=InterventionRead,
    status_code=status.HTTP_200_OK,
)
async def assign_company(
    actor: MasterActor,
    intervention_id: uuid.UUID = Path(..., description="UUID dell'intervento"),
    data: AssignCompanyRequest = ...,
    db: AsyncSession = Depends(get_db),
) -> InterventionRead:
    intervention = await assignment_service.assign_company(
        db, actor, intervention_id, data.company_id
    )
    await db.commit()
    return InterventionRead.model_validate(intervention)


@router.post(
    "/{intervention_id}/assign-technician",
    name="intervento_assegna_tecnico",
    summary="Assegna a un tecnico",
    description="Assegna l'intervento a un tecnico della propria ditta, o lo rimuove con null.",
    response_model=InterventionRead,
    status_code=status.HTTP_200_OK,
)
async def assign_technician(
    actor: DittaActor,
    intervention_id: uuid.UUID = Path(..., description="UUID dell'intervento"),
    data: AssignTechnicianRequest = ...,
    db: AsyncSession = Depends(get_db),
) -> InterventionRead:
    intervention = await assignment_service.assign_technician(
        db, actor, intervention_id, data.technician_id
    )
    await db.commit()
    return InterventionRead.model_validate(intervention)


@router.post(
    "/{intervention_id}/status",
    name="intervento_cambia_stato",
    summary="Cambia stato intervento",
    description="Cambia lo stato secondo la matrice delle transizioni del ruolo.",
    response_model=InterventionRead,
    status_code=status.HTTP_200_OK,
)
async def change_intervention_status(
    actor: CurrentActor,
    intervention_id: uuid.UUID = Path(..., description="UUID dell'intervento"),
    data: StatusTransitionRequest = ...,
    db: AsyncSession = Depends(get_db),
) -> InterventionRead:
    """
    Cambia lo stato di un intervento.

    Le notifiche ai Master partono solo dopo il commit.

    Raises:
        NotFoundError: Se l'intervento non esiste
        IllegalTransitionError: Se la transizione non è ammessa per il ruolo
        AuthorizationError: Se l'intervento è fuori perimetro
        ValidationError: Se mancano data appuntamento o foto
    """
    intervention = await status_service.transition(db, actor, intervention_id, data)
    await db.commit()
    return InterventionRead.model_validate(intervention)


# -------------------------------------------------------------------
# Foto e report
# -------------------------------------------------------------------

@router.get(
    "/{intervention_id}/photos",
    name="intervento_foto_lista",
    summary="Foto dell'intervento",
    response_model=list[PhotoRead],
    status_code=status.HTTP_200_OK,
)
async def get_intervention_photos(
    actor: CurrentActor,
    intervention_id: uuid.UUID = Path(..., description="UUID dell'intervento"),
    db: AsyncSession = Depends(get_db),
) -> list[PhotoRead]:
    photos = await photo_service.list_for(db, actor, intervention_id)
    return [PhotoRead.model_validate(p) for p in photos]


@router.post(
    "/{intervention_id}/photos",
    name="intervento_foto_aggiungi",
    summary="Aggiungi foto",
    description="Registra il riferimento di una foto già caricata nello storage.",
    response_model=PhotoRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_intervention_photo(
    actor: CurrentActor,
    intervention_id: uuid.UUID = Path(..., description="UUID dell'intervento"),
    data: PhotoCreate = ...,
    db: AsyncSession = Depends(get_db),
) -> PhotoRead:
    photo = await photo_service.add(db, actor, intervention_id, data)
    await db.commit()
    return PhotoRead.model_validate(photo)


@router.get(
    "/{intervention_id}/report",
    name="intervento_report",
    summary="Dati per il report",
    description="Snapshot di sola lettura usato dal generatore di report PDF.",
    response_model=InterventionReport,
    status_code=status.HTTP_200_OK,
)
async def get_intervention_report(
    actor: CurrentActor,
    intervention_id: uuid.UUID = Path(..., description="UUID dell'intervento"),
    db: AsyncSession = Depends(get_db),
) -> InterventionReport:
    return await intervention_service.get_report(db, actor, intervention_id)


@router.post(
    "/{intervention_id}/report-sent",
    name="intervento_report_inviato",
    summary="Conferma invio report",
    description="Segnala l'invio del report PDF al cliente e avvisa i Master.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def report_sent(
    actor: CurrentActor,
    intervention_id: uuid.UUID = Path(..., description="UUID dell'intervento"),
    data: ReportSentRequest = ...,
    db: AsyncSession = Depends(get_db),
) -> None:
    await intervention_service.mark_report_sent(db, actor, intervention_id, data.recipient_email)

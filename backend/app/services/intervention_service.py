"""
Service Layer per gli Interventi
Progetto: Gestionale Interventi

Definisce la logica di business per lettura, creazione, modifica parziale
ed eliminazione degli interventi. Assegnazioni e cambi di stato vivono in
assignment_service e status_service.
"""

import datetime
import logging
import uuid
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    AuthorizationError,
    BusinessValidationError,
    ConflictError,
    NotFoundError,
)
from app.models.company import Company
from app.models.intervention import NUMBER_CONSTRAINT, Intervention
from app.models.photo import Photo
from app.schemas.actor import Actor
from app.schemas.intervention import (
    PATCHABLE_FIELDS,
    InterventionCreate,
    InterventionFilters,
    InterventionRead,
    InterventionStats,
    InterventionStatus,
    InterventionUpdate,
    TechnicianBrief,
)
from app.schemas.photo import PhotoRead
from app.schemas.report import InterventionReport
from app.services.notification_service import (
    notification_dispatcher,
    report_sent_notification,
)
from app.services.numbering_service import numbering_service
from app.services.visibility import can_view, ensure_can_act, scope_conditions

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Campi che non possono essere svuotati con una PATCH
REQUIRED_FIELDS = frozenset({
    "client_name",
    "client_address",
    "client_city",
    "category",
    "priority",
    "description",
})

LOCATION_FIELDS = frozenset({"location_latitude", "location_longitude"})


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def is_number_collision(error: IntegrityError) -> bool:
    """True se la violazione riguarda il vincolo di unicità del numero."""
    return NUMBER_CONSTRAINT in str(error.orig)


async def get_intervention_or_404(db: AsyncSession, intervention_id: uuid.UUID) -> Intervention:
    """
    Carica un intervento senza applicare il perimetro di visibilità.

    Usato dai percorsi di modifica, che verificano il perimetro dopo
    la matrice delle transizioni.

    Raises:
        NotFoundError: Se l'intervento non esiste
    """
    result = await db.execute(select(Intervention).where(Intervention.id == intervention_id))
    intervention = result.scalar_one_or_none()
    if intervention is None:
        logger.warning("Intervento non trovato: %s", intervention_id)
        raise NotFoundError(f"Intervento con ID {intervention_id} non trovato")
    return intervention


class InterventionService:
    """
    Service per la gestione delle operazioni CRUD sugli interventi.

    Fornisce metodi asincroni senza dipendenze da FastAPI; il commit
    della transazione resta a carico del router.
    """

    def __init__(self) -> None:
        pass

    def _ensure_master(self, actor: Actor, action: str) -> None:
        if not actor.is_master:
            logger.warning("Utente %s (%s) non autorizzato a %s", actor.id, actor.role.value, action)
            raise AuthorizationError(f"Solo i Master possono {action}")

    async def get_all(
        self,
        db: AsyncSession,
        actor: Actor,
        filters: Optional[InterventionFilters] = None,
    ) -> list[Intervention]:
        """
        Recupera gli interventi visibili all'utente, dal più recente.

        Args:
            db: Sessione database
            actor: Utente corrente
            filters: Filtri opzionali (stato, categoria, ditta, tecnico)
        """
        query = (
            select(Intervention)
            .where(*scope_conditions(actor, filters))
            .order_by(Intervention.created_at.desc())
        )
        result = await db.execute(query)
        interventions = list(result.scalars().all())

        logger.debug("Recuperati %d interventi per l'utente %s", len(interventions), actor.id)
        return interventions

    async def get_stats(self, db: AsyncSession, actor: Actor) -> InterventionStats:
        """Conteggio degli interventi visibili, per stato."""
        query = (
            select(Intervention.status, func.count(Intervention.id))
            .where(*scope_conditions(actor))
            .group_by(Intervention.status)
        )
        result = await db.execute(query)

        counts = {status_value: count for status_value, count in result.all()}
        stats = InterventionStats(
            total=sum(counts.values()),
            **{s.value: counts.get(s.value, 0) for s in InterventionStatus},
        )
        return stats

    async def get_by_id(self, db: AsyncSession, actor: Actor, intervention_id: uuid.UUID) -> Intervention:
        """
        Recupera un intervento nel perimetro dell'utente.

        Un intervento esistente ma non visibile produce lo stesso 404 di un
        intervento inesistente.

        Raises:
            NotFoundError: Se l'intervento non esiste o non è visibile
        """
        result = await db.execute(select(Intervention).where(Intervention.id == intervention_id))
        intervention = result.scalar_one_or_none()

        if intervention is None or not can_view(actor, intervention):
            logger.warning(
                "Intervento %s non trovato nel perimetro dell'utente %s", intervention_id, actor.id
            )
            raise NotFoundError(f"Intervento con ID {intervention_id} non trovato")

        return intervention

    async def create(self, db: AsyncSession, actor: Actor, data: InterventionCreate) -> Intervention:
        """
        Crea un nuovo intervento in stato 'assigned'.

        Il numero viene riservato dal NumberingService. In caso di collisione
        sul vincolo di unicità (es. numeri inseriti a mano) l'inserimento viene
        ritentato con il numero successivo, fino a settings.numbering_max_retries
        volte. I numeri scartati restano buchi nella sequenza.

        Raises:
            AuthorizationError: Se l'utente non è Master
            NotFoundError: Se la ditta indicata non esiste o non è attiva
            ConflictError: Se non è stato possibile ottenere un numero univoco
        """
        self._ensure_master(actor, "creare interventi")

        now = utcnow()
        if data.company_id is not None:
            await self._get_active_company(db, data.company_id)

        values = data.model_dump(exclude={"category", "priority", "company_id"})

        for attempt in range(1, settings.numbering_max_retries + 1):
            # Il contatore avanza fuori dal savepoint: ogni tentativo usa un numero nuovo
            number = await numbering_service.next_number(db)
            try:
                async with db.begin_nested():
                    intervention = Intervention(
                        **values,
                        number=number,
                        category=data.category.value,
                        priority=data.priority.value,
                        status=InterventionStatus.ASSIGNED.value,
                        company_id=data.company_id,
                        created_by_id=actor.id,
                        assigned_by_id=actor.id if data.company_id else None,
                        assigned_at=now if data.company_id else None,
                    )
                    db.add(intervention)
                    await db.flush()
            except IntegrityError as e:
                if not is_number_collision(e):
                    raise
                logger.warning(
                    "Collisione numerazione (tentativo %d/%d): %s",
                    attempt, settings.numbering_max_retries, e.orig,
                )
                continue

            await db.refresh(intervention)
            logger.info("Creato intervento %s (%s)", intervention.number, intervention.id)
            return intervention

        logger.error("Numerazione interventi esaurita dopo %d tentativi", settings.numbering_max_retries)
        raise ConflictError(
            "Impossibile assegnare un numero univoco all'intervento, riprovare",
            error_code="NUMBERING_CONFLICT",
        )

    async def update(
        self,
        db: AsyncSession,
        actor: Actor,
        intervention_id: uuid.UUID,
        data: InterventionUpdate,
    ) -> Intervention:
        """
        Aggiorna parzialmente un intervento.

        I campi modificabili dipendono dal ruolo (PATCHABLE_FIELDS).
        Stato e assegnazioni hanno endpoint dedicati.

        Raises:
            NotFoundError: Se l'intervento non esiste
            AuthorizationError: Se l'intervento è fuori perimetro o un campo
                non è modificabile dal ruolo
            ValidationError: Se non ci sono campi o si svuota un campo obbligatorio
        """
        intervention = await get_intervention_or_404(db, intervention_id)
        ensure_can_act(actor, intervention)

        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            raise BusinessValidationError("Nessun campo da aggiornare")

        forbidden = sorted(set(update_data) - PATCHABLE_FIELDS[actor.role])
        if forbidden:
            logger.warning(
                "Utente %s (%s) ha tentato di modificare campi non consentiti: %s",
                actor.id, actor.role.value, forbidden,
            )
            raise AuthorizationError(
                "Non puoi modificare i campi: " + ", ".join(forbidden),
                extra={"fields": forbidden},
            )

        emptied = sorted(k for k in REQUIRED_FIELDS & set(update_data) if update_data[k] is None)
        if emptied:
            raise BusinessValidationError(
                "Campi obbligatori: " + ", ".join(emptied),
                error_code="MISSING_REQUIRED_FIELD",
                extra={"fields": emptied},
            )

        for key, value in update_data.items():
            if key in ("category", "priority"):
                value = value.value
            setattr(intervention, key, value)

        if LOCATION_FIELDS & set(update_data):
            intervention.location_captured_at = utcnow()

        await db.flush()
        await db.refresh(intervention)

        logger.info("Aggiornato intervento %s: %s", intervention.number, sorted(update_data))
        return intervention

    async def delete(self, db: AsyncSession, actor: Actor, intervention_id: uuid.UUID) -> None:
        """
        Elimina definitivamente un intervento e le sue foto.

        Raises:
            AuthorizationError: Se l'utente non è Master
            NotFoundError: Se l'intervento non esiste
        """
        self._ensure_master(actor, "eliminare gli interventi")
        intervention = await get_intervention_or_404(db, intervention_id)
        number = intervention.number

        await self._delete_ids(db, [intervention_id])
        logger.info("Eliminato intervento %s", number)

    async def bulk_delete(self, db: AsyncSession, actor: Actor, ids: list[uuid.UUID]) -> int:
        """
        Elimina più interventi in un'unica transazione.

        Gli ID inesistenti vengono ignorati.

        Returns:
            int: Numero di interventi effettivamente eliminati
        """
        self._ensure_master(actor, "eliminare gli interventi")
        unique_ids = list(dict.fromkeys(ids))
        deleted = await self._delete_ids(db, unique_ids)
        logger.info("Eliminazione multipla: %d interventi su %d richiesti", deleted, len(unique_ids))
        return deleted

    async def _delete_ids(self, db: AsyncSession, ids: list[uuid.UUID]) -> int:
        await db.execute(delete(Photo).where(Photo.intervention_id.in_(ids)))
        result = await db.execute(
            delete(Intervention).where(Intervention.id.in_(ids)).returning(Intervention.id)
        )
        return len(result.scalars().all())

    async def get_report(self, db: AsyncSession, actor: Actor, intervention_id: uuid.UUID) -> InterventionReport:
        """Snapshot di sola lettura per il generatore di report PDF."""
        intervention = await self.get_by_id(db, actor, intervention_id)

        result = await db.execute(
            select(Photo)
            .where(Photo.intervention_id == intervention.id)
            .order_by(Photo.created_at)
        )
        photos = list(result.scalars().all())

        return InterventionReport(
            intervention=InterventionRead.model_validate(intervention),
            company_name=intervention.company.name if intervention.company else None,
            technician=(
                TechnicianBrief.model_validate(intervention.technician)
                if intervention.technician else None
            ),
            photos=[PhotoRead.model_validate(p) for p in photos],
        )

    async def mark_report_sent(
        self,
        db: AsyncSession,
        actor: Actor,
        intervention_id: uuid.UUID,
        recipient_email: str,
    ) -> Intervention:
        """
        Registra l'invio del report al cliente e avvisa i Master.

        Non modifica l'intervento: la notifica viene pubblicata subito.
        """
        intervention = await self.get_by_id(db, actor, intervention_id)
        notification_dispatcher.publish(
            report_sent_notification(intervention.number, actor, recipient_email)
        )
        logger.info("Report dell'intervento %s inviato a %s", intervention.number, recipient_email)
        return intervention

    async def _get_active_company(self, db: AsyncSession, company_id: uuid.UUID) -> Company:
        result = await db.execute(
            select(Company).where(Company.id == company_id, Company.is_active == True)
        )
        company = result.scalar_one_or_none()
        if company is None:
            logger.warning("Ditta non trovata: %s", company_id)
            raise NotFoundError(f"Ditta con ID {company_id} non trovata")
        return company


intervention_service = InterventionService()

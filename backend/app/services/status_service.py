"""
Motore delle transizioni di stato degli interventi
Progetto: Gestionale Interventi

Tutte le decisioni su quali cambi di stato siano ammessi passano da
allowed_transitions(), che legge la matrice ROLE_TRANSITIONS.
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BusinessValidationError, IllegalTransitionError
from app.models.intervention import Intervention
from app.models.user import UserRole
from app.schemas.actor import Actor
from app.schemas.intervention import (
    ROLE_TRANSITIONS,
    InterventionStatus,
    StatusTransitionRequest,
)
from app.services.intervention_service import get_intervention_or_404, utcnow
from app.services.notification_service import (
    appointment_notification,
    queue_notification,
    status_change_notification,
)
from app.services.photo_service import photo_service
from app.services.visibility import ensure_can_act

logger = logging.getLogger(__name__)


def allowed_transitions(role: UserRole, current: InterventionStatus) -> frozenset[InterventionStatus]:
    """Stati raggiungibili da `current` per il ruolo (insieme vuoto se nessuno)."""
    return ROLE_TRANSITIONS.get(role, {}).get(current, frozenset())


def ensure_transition_allowed(
    role: UserRole,
    current: InterventionStatus,
    target: InterventionStatus,
) -> None:
    """
    Raises:
        IllegalTransitionError: Se la coppia (ruolo, stato corrente) non
            ammette il passaggio a `target`
    """
    allowed = allowed_transitions(role, current)
    if target in allowed:
        return

    logger.warning(
        "Transizione non consentita per %s: %s -> %s", role.value, current.value, target.value
    )
    raise IllegalTransitionError(
        f"Transizione da '{current.value}' a '{target.value}' non consentita per il ruolo {role.value}",
        extra={
            "current_status": current.value,
            "target_status": target.value,
            "allowed": sorted(s.value for s in allowed),
        },
    )


class StatusService:
    """
    Applica i cambi di stato con i relativi effetti collaterali.

    Ordine dei controlli:
    1. L'intervento esiste (NotFoundError)
    2. La transizione è nella matrice per il ruolo (IllegalTransitionError)
    3. L'intervento è nel perimetro dell'utente (AuthorizationError)
    4. Dati obbligatori della transizione (BusinessValidationError)
    """

    def __init__(self) -> None:
        pass

    async def transition(
        self,
        db: AsyncSession,
        actor: Actor,
        intervention_id: uuid.UUID,
        data: StatusTransitionRequest,
    ) -> Intervention:
        """
        Cambia lo stato di un intervento.

        Args:
            db: Sessione database
            actor: Utente corrente
            intervention_id: ID intervento
            data: Stato di destinazione e dati accessori

        Returns:
            Intervention: Intervento aggiornato

        Raises:
            NotFoundError, IllegalTransitionError, AuthorizationError,
            BusinessValidationError
        """
        intervention = await get_intervention_or_404(db, intervention_id)

        current = InterventionStatus(intervention.status)
        target = data.status

        ensure_transition_allowed(actor.role, current, target)
        ensure_can_act(actor, intervention)

        if target == InterventionStatus.APPOINTMENT_SET and data.appointment_date is None:
            raise BusinessValidationError(
                "Data appuntamento obbligatoria",
                error_code="MISSING_REQUIRED_FIELD",
                extra={"fields": ["appointment_date"]},
            )

        if target == InterventionStatus.COMPLETED:
            photo_count = await photo_service.count(db, intervention.id)
            if photo_count == 0:
                logger.warning(
                    "Completamento rifiutato per %s: nessuna foto di documentazione",
                    intervention.number,
                )
                raise BusinessValidationError(
                    "Impossibile completare l'intervento senza foto di documentazione",
                    error_code="MISSING_DOCUMENTATION",
                )

        self._apply_side_effects(intervention, target, data)
        intervention.status = target.value

        await db.flush()
        await db.refresh(intervention)

        logger.info(
            "Intervento %s: %s -> %s (%s %s)",
            intervention.number, current.value, target.value, actor.role.value, actor.id,
        )

        # Nessuna notifica ai Master per le proprie azioni
        if not actor.is_master:
            queue_notification(
                db, status_change_notification(intervention.number, actor, current, target)
            )
            if target == InterventionStatus.APPOINTMENT_SET:
                queue_notification(
                    db, appointment_notification(intervention.number, actor, data.appointment_date)
                )

        return intervention

    def _apply_side_effects(
        self,
        intervention: Intervention,
        target: InterventionStatus,
        data: StatusTransitionRequest,
    ) -> None:
        now = utcnow()

        if target == InterventionStatus.APPOINTMENT_SET:
            intervention.appointment_date = data.appointment_date
            intervention.appointment_confirmed_at = now
            if data.appointment_notes is not None:
                intervention.appointment_notes = data.appointment_notes

        elif target == InterventionStatus.IN_PROGRESS:
            if intervention.started_at is None:
                intervention.started_at = now
            if data.has_location:
                intervention.location_latitude = data.location_latitude
                intervention.location_longitude = data.location_longitude
                intervention.location_address = data.location_address
                intervention.location_captured_at = now

        elif target == InterventionStatus.COMPLETED:
            intervention.completed_at = now
            if data.documentation_notes is not None:
                intervention.documentation_notes = data.documentation_notes

        elif target == InterventionStatus.CLOSED:
            intervention.closed_at = now
            if data.closed_notes is not None:
                intervention.closed_notes = data.closed_notes


status_service = StatusService()

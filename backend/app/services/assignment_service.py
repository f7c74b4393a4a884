"""
Service per l'assegnazione degli interventi
Progetto: Gestionale Interventi

Delega a cascata:
- il Master assegna l'intervento a una ditta
- la Ditta titolare lo assegna a uno dei propri tecnici
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthorizationError, NotFoundError
from app.models.company import Company
from app.models.intervention import Intervention
from app.models.user import User, UserRole
from app.schemas.actor import Actor
from app.schemas.intervention import InterventionStatus
from app.services.intervention_service import get_intervention_or_404, utcnow

logger = logging.getLogger(__name__)


class AssignmentService:

    def __init__(self) -> None:
        pass

    async def assign_company(
        self,
        db: AsyncSession,
        actor: Actor,
        intervention_id: uuid.UUID,
        company_id: uuid.UUID,
    ) -> Intervention:
        """
        Assegna l'intervento a una ditta (solo Master).

        Riparte sempre dallo stato 'assigned' e rimuove il tecnico.
        Appuntamento, posizione e documentazione precedenti restano sul
        record: verranno sovrascritti dalle transizioni successive.

        Raises:
            AuthorizationError: Se l'utente non è Master
            NotFoundError: Se l'intervento o la ditta non esistono
        """
        if not actor.is_master:
            raise AuthorizationError("Solo i Master possono assegnare gli interventi alle ditte")

        intervention = await get_intervention_or_404(db, intervention_id)

        result = await db.execute(
            select(Company).where(Company.id == company_id, Company.is_active == True)
        )
        company = result.scalar_one_or_none()
        if company is None:
            logger.warning("Ditta non trovata: %s", company_id)
            raise NotFoundError(f"Ditta con ID {company_id} non trovata")

        previous_status = intervention.status
        intervention.company_id = company.id
        intervention.technician_id = None
        intervention.status = InterventionStatus.ASSIGNED.value
        intervention.assigned_by_id = actor.id
        intervention.assigned_at = utcnow()

        await db.flush()
        await db.refresh(intervention)

        logger.info(
            "Intervento %s assegnato alla ditta %s (stato precedente: %s)",
            intervention.number, company.name, previous_status,
        )
        return intervention

    async def assign_technician(
        self,
        db: AsyncSession,
        actor: Actor,
        intervention_id: uuid.UUID,
        technician_id: Optional[uuid.UUID],
    ) -> Intervention:
        """
        Assegna l'intervento a un tecnico della ditta (solo Ditta titolare).

        technician_id None rimuove il tecnico. Lo stato non cambia.

        Raises:
            AuthorizationError: Se l'utente non è Ditta o non possiede la
                ditta dell'intervento
            NotFoundError: Se l'intervento non esiste o il tecnico non
                appartiene alla ditta
        """
        if not actor.is_ditta:
            raise AuthorizationError("Solo le ditte possono assegnare i tecnici")

        intervention = await get_intervention_or_404(db, intervention_id)

        if actor.company_id is None or intervention.company_id != actor.company_id:
            logger.warning(
                "Ditta %s non titolare dell'intervento %s", actor.id, intervention.number
            )
            raise AuthorizationError("Puoi assegnare solo gli interventi della tua ditta")

        if technician_id is None:
            intervention.technician_id = None
            await db.flush()
            await db.refresh(intervention)
            logger.info("Rimosso il tecnico dall'intervento %s", intervention.number)
            return intervention

        result = await db.execute(
            select(User).where(
                User.id == technician_id,
                User.company_id == actor.company_id,
                User.role == UserRole.TECNICO.value,
                User.is_active == True,
            )
        )
        technician = result.scalar_one_or_none()
        if technician is None:
            logger.warning(
                "Tecnico %s non trovato nella ditta %s", technician_id, actor.company_id
            )
            raise NotFoundError("Tecnico non trovato o non appartiene alla tua ditta")

        intervention.technician_id = technician.id
        intervention.assigned_by_id = actor.id
        intervention.assigned_at = utcnow()

        await db.flush()
        await db.refresh(intervention)

        logger.info("Intervento %s assegnato al tecnico %s", intervention.number, technician.full_name)
        return intervention


assignment_service = AssignmentService()

"""
Service Layer per le Ditte
Progetto: Gestionale Interventi

Consultazione e modifica delle ditte subappaltatrici. Una ditta disattivata
non riceve nuove assegnazioni; gli interventi già assegnati restano invariati.
"""

import logging
import uuid
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthorizationError, BusinessValidationError, NotFoundError
from app.models.company import Company
from app.models.intervention import Intervention
from app.models.user import User, UserRole
from app.schemas.actor import Actor
from app.schemas.company import CompanyDetail, CompanyRead, CompanyUpdate
from app.schemas.intervention import TechnicianBrief

logger = logging.getLogger(__name__)


class CompanyService:
    """
    Gestione delle ditte e dei loro tecnici.

    Il Master vede e modifica tutte le ditte; la Ditta solo quella di cui
    è titolare.
    """

    def __init__(self) -> None:
        pass

    async def get_all(self, db: AsyncSession) -> List[CompanyRead]:
        """Recupera le ditte attive con il numero di tecnici e di interventi."""
        technicians_count = (
            select(func.count(User.id))
            .where(
                User.company_id == Company.id,
                User.role == UserRole.TECNICO.value,
                User.is_active == True,
            )
            .correlate(Company)
            .scalar_subquery()
        )
        interventions_count = (
            select(func.count(Intervention.id))
            .where(Intervention.company_id == Company.id)
            .correlate(Company)
            .scalar_subquery()
        )
        query = (
            select(Company, technicians_count, interventions_count)
            .where(Company.is_active == True)
            .order_by(Company.name)
        )
        result = await db.execute(query)

        return [
            CompanyRead.model_validate(company).model_copy(
                update={"technicians_count": technicians, "interventions_count": interventions}
            )
            for company, technicians, interventions in result.all()
        ]

    async def get_by_id(self, db: AsyncSession, actor: Actor, company_id: uuid.UUID) -> Company:
        """
        Recupera una ditta, anche se disattivata.

        Raises:
            NotFoundError: Se la ditta non esiste
            AuthorizationError: Se la Ditta non è titolare o l'utente è un Tecnico
        """
        if not (actor.is_master or actor.is_ditta):
            raise AuthorizationError("Non hai i permessi per questa azione")

        result = await db.execute(select(Company).where(Company.id == company_id))
        company = result.scalar_one_or_none()
        if company is None:
            logger.warning("Ditta non trovata: %s", company_id)
            raise NotFoundError(f"Ditta con ID {company_id} non trovata")

        if actor.is_ditta and actor.company_id != company.id:
            logger.warning("Utente %s non titolare della ditta %s", actor.id, company_id)
            raise AuthorizationError("Puoi accedere solo alla tua ditta")

        return company

    async def get_detail(self, db: AsyncSession, actor: Actor, company_id: uuid.UUID) -> CompanyDetail:
        """Dettaglio della ditta con i tecnici attivi."""
        company = await self.get_by_id(db, actor, company_id)
        technicians = await self._active_technicians(db, company.id)

        return CompanyDetail.model_validate(company).model_copy(
            update={
                "technicians": [TechnicianBrief.model_validate(t) for t in technicians],
                "technicians_count": len(technicians),
            }
        )

    async def get_technicians(
        self,
        db: AsyncSession,
        actor: Actor,
        company_id: uuid.UUID,
    ) -> List[User]:
        """
        Tecnici attivi di una ditta.

        Consentito al Master e alla Ditta titolare.

        Raises:
            NotFoundError: Se la ditta non esiste
            AuthorizationError: Se la Ditta non è titolare
        """
        company = await self.get_by_id(db, actor, company_id)
        return await self._active_technicians(db, company.id)

    async def update(
        self,
        db: AsyncSession,
        actor: Actor,
        company_id: uuid.UUID,
        data: CompanyUpdate,
    ) -> Company:
        """
        Aggiorna i dati anagrafici della ditta.

        Il titolare modifica nome e contatti; attivazione e disattivazione
        sono riservate al Master.

        Raises:
            NotFoundError: Se la ditta non esiste
            AuthorizationError: Se la Ditta non è titolare o modifica is_active
            BusinessValidationError: Se non ci sono campi o il nome viene svuotato
        """
        company = await self.get_by_id(db, actor, company_id)

        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            raise BusinessValidationError("Nessun campo da aggiornare")

        if "is_active" in update_data and not actor.is_master:
            raise AuthorizationError(
                "Solo i Master possono attivare o disattivare una ditta",
                extra={"fields": ["is_active"]},
            )

        for key in ("name", "is_active"):
            if key in update_data and update_data[key] is None:
                raise BusinessValidationError(
                    f"Il campo {key} non può essere vuoto",
                    error_code="MISSING_REQUIRED_FIELD",
                    extra={"fields": [key]},
                )

        for key, value in update_data.items():
            setattr(company, key, value)

        await db.flush()
        await db.refresh(company)

        logger.info("Aggiornata ditta %s: %s", company.name, sorted(update_data))
        return company

    async def _active_technicians(self, db: AsyncSession, company_id: uuid.UUID) -> List[User]:
        query = (
            select(User)
            .where(
                User.company_id == company_id,
                User.role == UserRole.TECNICO.value,
                User.is_active == True,
            )
            .order_by(User.full_name)
        )
        result = await db.execute(query)
        return list(result.scalars().all())


company_service = CompanyService()

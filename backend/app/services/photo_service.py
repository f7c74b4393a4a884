"""
Service Layer per le foto di documentazione
Progetto: Gestionale Interventi

Le foto sono solo in aggiunta: non esistono modifica o eliminazione
singola. Vengono eliminate insieme all'intervento.
"""

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.photo import Photo
from app.schemas.actor import Actor
from app.schemas.photo import PhotoCreate
from app.services.intervention_service import get_intervention_or_404, intervention_service
from app.services.visibility import ensure_can_act

logger = logging.getLogger(__name__)


class PhotoService:

    def __init__(self) -> None:
        pass

    async def add(
        self,
        db: AsyncSession,
        actor: Actor,
        intervention_id: uuid.UUID,
        data: PhotoCreate,
    ) -> Photo:
        """
        Aggiunge una foto all'intervento.

        Stesso perimetro delle transizioni di stato: il Tecnico deve essere
        l'assegnatario, la Ditta la titolare.

        Raises:
            NotFoundError: Se l'intervento non esiste
            AuthorizationError: Se l'intervento è fuori perimetro
        """
        intervention = await get_intervention_or_404(db, intervention_id)
        ensure_can_act(actor, intervention)

        photo = Photo(
            intervention_id=intervention.id,
            reference=data.reference,
            mime_type=data.mime_type,
            caption=data.caption,
            uploaded_by_id=actor.id,
        )
        db.add(photo)
        await db.flush()
        await db.refresh(photo)

        logger.info("Aggiunta foto %s all'intervento %s", photo.id, intervention.number)
        return photo

    async def list_for(self, db: AsyncSession, actor: Actor, intervention_id: uuid.UUID) -> list[Photo]:
        """Foto di un intervento visibile all'utente, in ordine di caricamento."""
        intervention = await intervention_service.get_by_id(db, actor, intervention_id)
        result = await db.execute(
            select(Photo)
            .where(Photo.intervention_id == intervention.id)
            .order_by(Photo.created_at)
        )
        return list(result.scalars().all())

    async def count(self, db: AsyncSession, intervention_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.count(Photo.id)).where(Photo.intervention_id == intervention_id)
        )
        return result.scalar() or 0


photo_service = PhotoService()

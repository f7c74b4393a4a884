"""
Service Layer per i token push dei dispositivi
Progetto: Gestionale Interventi
"""

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.push_token import TOKEN_CONSTRAINT, PushToken
from app.models.user import User, UserRole
from app.schemas.actor import Actor
from app.schemas.push_token import PushTokenRegister

logger = logging.getLogger(__name__)


class PushTokenService:
    """
    Registro degli endpoint di notifica push.
    """

    def __init__(self) -> None:
        pass

    async def register(self, db: AsyncSession, actor: Actor, data: PushTokenRegister) -> PushToken:
        """
        Registra il token per l'utente corrente.

        Upsert su (user_id, token): se il token è già registrato per lo
        stesso utente aggiorna soltanto la piattaforma. Due registrazioni
        concorrenti dello stesso token non violano il vincolo di unicità.
        """
        stmt = (
            pg_insert(PushToken)
            .values(user_id=actor.id, token=data.token, platform=data.platform)
            .on_conflict_do_update(
                constraint=TOKEN_CONSTRAINT,
                set_={"platform": data.platform, "updated_at": func.now()},
            )
            .returning(PushToken)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        push_token = result.scalar_one()

        logger.info("Registrato token push per l'utente %s (%s)", actor.id, data.platform)
        return push_token

    async def remove(self, db: AsyncSession, actor: Actor, token: str) -> int:
        """Rimuove il token dell'utente corrente. Restituisce i record eliminati."""
        result = await db.execute(
            delete(PushToken)
            .where(PushToken.user_id == actor.id, PushToken.token == token)
            .returning(PushToken.id)
        )
        removed = len(result.scalars().all())
        logger.info("Rimossi %d token push per l'utente %s", removed, actor.id)
        return removed

    async def get_master_tokens(self, db: AsyncSession) -> list[str]:
        """Token distinti di tutti i Master attivi."""
        query = (
            select(PushToken.token)
            .join(User, User.id == PushToken.user_id)
            .where(User.role == UserRole.MASTER.value, User.is_active == True)
            .distinct()
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def remove_tokens(self, db: AsyncSession, tokens: list[str]) -> int:
        """Elimina i token indicati per tutti gli utenti (endpoint non più registrati)."""
        if not tokens:
            return 0
        result = await db.execute(
            delete(PushToken).where(PushToken.token.in_(tokens)).returning(PushToken.id)
        )
        removed = len(result.scalars().all())
        logger.info("Deregistrati %d token push non più validi", removed)
        return removed


push_token_service = PushTokenService()

"""
Router FastAPI per la registrazione dei token push
Progetto: Gestionale Interventi
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import CurrentActor
from app.schemas.push_token import PushTokenRegister, PushTokenRemove
from app.services.push_token_service import push_token_service

router = APIRouter(
    prefix="/push-tokens",
    tags=["Notifiche"],
)


@router.post(
    "/",
    name="push_token_registra",
    summary="Registra token push",
    description="Registra il token del dispositivo per l'utente corrente.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def register_push_token(
    data: PushTokenRegister,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
) -> None:
    await push_token_service.register(db, actor, data)
    await db.commit()


@router.delete(
    "/",
    name="push_token_rimuovi",
    summary="Rimuovi token push",
    description="Rimuove il token del dispositivo (es. al logout).",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_push_token(
    data: PushTokenRemove,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
) -> None:
    await push_token_service.remove(db, actor, data.token)
    await db.commit()

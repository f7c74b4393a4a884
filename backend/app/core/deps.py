"""
Dependency Injection per autenticazione
Progetto: Gestionale Interventi

Risolve l'identità dell'utente autenticato in un Actor {id, ruolo, ditta}
consumato da tutti i service. Non esiste alcun percorso che accetti
un'identità dichiarata dal client senza token verificato.
"""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import decode_token
from app.models.company import Company
from app.models.user import User, UserRole
from app.schemas.actor import Actor

# OAuth2 scheme - estrae il token dall'header Authorization.
# Il token è emesso dal servizio di autenticazione esterno.
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/v1/auth/login",
    auto_error=False,
)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def resolve_actor(db: AsyncSession, user: User) -> Actor:
    """
    Costruisce l'Actor a partire dall'utente caricato dal database.

    Per i Ditta la ditta di riferimento è quella di cui l'utente è titolare
    (companies.owner_id), non il campo users.company_id.

    Raises:
        HTTPException 401: Se il ruolo memorizzato non è riconosciuto
    """
    try:
        role = UserRole.parse(user.role)
    except ValueError:
        raise _unauthorized("Ruolo utente non riconosciuto")

    company_id: Optional[UUID] = None
    if role == UserRole.DITTA:
        result = await db.execute(
            select(Company.id).where(Company.owner_id == user.id)
        )
        company_id = result.scalar_one_or_none()
    elif role == UserRole.TECNICO:
        company_id = user.company_id

    return Actor(
        id=user.id,
        name=user.full_name,
        role=role,
        company_id=company_id,
    )


async def get_current_actor(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Actor:
    """
    Dependency per ottenere l'utente corrente dal token JWT.

    Args:
        token: Token JWT estratto dall'header Authorization
        db: Sessione database

    Returns:
        Actor dell'utente corrente

    Raises:
        HTTPException 401: Se il token è invalido, scaduto o l'utente non è attivo
    """
    if not token:
        raise _unauthorized("Token di autenticazione non fornito")

    token_data = decode_token(token)

    if token_data.type != "access":
        raise _unauthorized("Token di refresh non valido per questa operazione")

    try:
        user_id = UUID(token_data.sub)
    except ValueError:
        raise _unauthorized("ID utente invalido nel token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise _unauthorized("Utente non trovato")

    if not user.is_active:
        raise _unauthorized("Utente disattivato")

    return await resolve_actor(db, user)


def require_role(*allowed_roles: UserRole):
    """
    Factory function per creare una dependency che verifica il ruolo.

    Example:
        @router.post("/")
        async def create(actor: Actor = Depends(require_role(UserRole.MASTER))):
            ...
    """
    async def role_checker(
        actor: Annotated[Actor, Depends(get_current_actor)]
    ) -> Actor:
        if actor.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Non hai i permessi per questa azione",
            )
        return actor

    return role_checker


# Type aliases per uso comune
CurrentActor = Annotated[Actor, Depends(get_current_actor)]
MasterActor = Annotated[Actor, Depends(require_role(UserRole.MASTER))]
DittaActor = Annotated[Actor, Depends(require_role(UserRole.DITTA))]
ManagerActor = Annotated[Actor, Depends(require_role(UserRole.MASTER, UserRole.DITTA))]


__all__ = [
    "get_current_actor",
    "resolve_actor",
    "require_role",
    "oauth2_scheme",
    "CurrentActor",
    "MasterActor",
    "DittaActor",
    "ManagerActor",
]

"""
Modulo di sicurezza per la verifica dei token JWT
Progetto: Gestionale Interventi

L'emissione dei token e la gestione delle password appartengono al servizio
di autenticazione esterno: qui si verifica soltanto il token ricevuto.
`create_access_token` esiste per script di servizio e test.
"""

from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status
from jose import JWTError, jwt

from app.core.config import settings
from app.schemas.token import TokenPayload


def create_access_token(user_id: str, role: str) -> str:
    """
    Crea un token di accesso JWT.

    Args:
        user_id: ID dell'utente
        role: Ruolo dell'utente

    Returns:
        Token JWT codificato
    """
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.access_token_expire_minutes
    )

    payload = {
        "sub": user_id,
        "role": role,
        "exp": expire,
        "type": "access",
    }

    return jwt.encode(
        payload,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> TokenPayload:
    """
    Decodifica e valida un token JWT.

    Args:
        token: Token JWT da decodificare

    Returns:
        TokenPayload con i dati del token

    Raises:
        HTTPException: Se il token è invalido o scaduto
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token invalido o scaduto: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not payload.get("sub") or payload.get("exp") is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token invalido: missing subject o scadenza",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return TokenPayload(
        sub=payload["sub"],
        role=payload.get("role") or "",
        exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        type=payload.get("type") or "access",
    )


# Export delle funzioni
__all__ = [
    "create_access_token",
    "decode_token",
]

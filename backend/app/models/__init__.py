"""
Modelli Database SQLAlchemy
Progetto: Gestionale Interventi

Import centralizzato di tutti i modelli per reset_db e usage generico.

Modelli:
- User: Utenti (Master, Ditta, Tecnico)
- Company: Ditte subappaltatrici
- Intervention: Interventi sul campo
- InterventionCounter: Contatore annuale per la numerazione
- Photo: Foto di documentazione
- PushToken: Endpoint di notifica push registrati
"""

# SQLAlchemy 2.0 Base declarativa
# Importato qui per essere disponibile per tutti i modelli
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class per tutti i modelli SQLAlchemy."""
    pass


from app.models.user import User, UserRole
from app.models.company import Company
from app.models.intervention import Intervention, InterventionCounter
from app.models.photo import Photo
from app.models.push_token import PushToken

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Company",
    "Intervention",
    "InterventionCounter",
    "Photo",
    "PushToken",
]

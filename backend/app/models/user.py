"""
Modello SQLAlchemy per l'entità User
Progetto: Gestionale Interventi

Utenti del sistema nei tre livelli organizzativi: Master (operatore della
piattaforma), Ditta (titolare di una ditta subappaltatrice) e Tecnico.
"""

from __future__ import annotations
from enum import Enum
from typing import TYPE_CHECKING, List, Optional
import uuid

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import SoftDeleteMixin, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from app.models.company import Company
    from app.models.push_token import PushToken


class UserRole(str, Enum):
    """Ruoli utente nel sistema."""
    MASTER = "master"
    DITTA = "ditta"
    TECNICO = "tecnico"

    @classmethod
    def parse(cls, value: str) -> "UserRole":
        """
        Converte una stringa di ruolo indipendentemente dal maiuscolo/minuscolo.

        Raises:
            ValueError: Se il ruolo non è riconosciuto
        """
        return cls(value.strip().lower())


class User(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """
    Modello per gli utenti del sistema.

    Attributes:
        id: UUID primary key
        username: Nome utente univoco
        full_name: Nome completo (usato nei messaggi di notifica)
        email: Email di contatto
        phone: Telefono di contatto
        role: Ruolo (master, ditta, tecnico)
        company_id: Ditta di appartenenza (NULL per i Master; per i tecnici la ditta datrice di lavoro)
        is_active: Indica se l'utente è attivo
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        doc="Nome utente univoco",
    )

    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Nome completo dell'utente",
    )

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserRole.TECNICO.value,
        doc="Ruolo dell'utente",
    )

    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="SET NULL", use_alter=True, name="fk_users_company"),
        nullable=True,
        index=True,
        doc="Ditta di appartenenza",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    company: Mapped[Optional["Company"]] = relationship(
        "Company",
        foreign_keys=[company_id],
        back_populates="members",
        lazy="noload",
    )

    push_tokens: Mapped[List["PushToken"]] = relationship(
        "PushToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload",
    )

    __table_args__ = (
        Index("ix_users_role", "role"),
        CheckConstraint(
            "role IN ('master', 'ditta', 'tecnico')",
            name="ck_users_role",
        ),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, role={self.role})>"

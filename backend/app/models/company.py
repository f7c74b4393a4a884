"""
Modello SQLAlchemy per le Ditte
Progetto: Gestionale Interventi
"""

from __future__ import annotations
import uuid
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import SoftDeleteMixin, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from app.models.user import User


class Company(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """
    Ditta subappaltatrice.

    Ha esattamente un titolare con ruolo Ditta (owner_id, univoco) e
    zero o più tecnici (utenti con company_id uguale all'id della ditta).
    """

    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="RESTRICT"),
        unique=True,
        nullable=False,
        doc="Utente Ditta titolare",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    owner: Mapped["User"] = relationship(
        "User",
        foreign_keys=[owner_id],
        lazy="noload",
    )

    members: Mapped[List["User"]] = relationship(
        "User",
        foreign_keys="User.company_id",
        back_populates="company",
        lazy="noload",
    )

    def __repr__(self) -> str:
        return f"Company(name={self.name!r}, owner_id={self.owner_id!r})"

"""
Modello SQLAlchemy per le foto di documentazione
Progetto: Gestionale Interventi

Il contenuto dell'immagine vive nello storage foto esterno: qui si conserva
solo il riferimento opaco restituito dallo storage.
"""

from __future__ import annotations
import uuid
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from app.models.intervention import Intervention


class Photo(Base, UUIDMixin, TimestampMixin):
    """Foto di documentazione associata a un intervento."""

    __tablename__ = "photos"

    intervention_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("interventions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    reference: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        doc="Riferimento opaco nello storage foto",
    )

    mime_type: Mapped[str] = mapped_column(String(100), nullable=False, default="image/jpeg")
    caption: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    uploaded_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    intervention: Mapped["Intervention"] = relationship(
        "Intervention",
        back_populates="photos",
    )

    def __repr__(self) -> str:
        return f"<Photo(id={self.id}, intervention_id={self.intervention_id})>"

import datetime
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.schemas.intervention import TechnicianBrief


class CompanyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    owner_id: uuid.UUID
    is_active: bool
    created_at: datetime.datetime
    technicians_count: int = 0
    interventions_count: int = 0


class CompanyDetail(CompanyRead):
    """Ditta con l'elenco dei tecnici attivi."""

    technicians: list[TechnicianBrief] = Field(default_factory=list)


class CompanyUpdate(BaseModel):
    """
    Modifica parziale di una ditta.

    is_active può essere cambiato solo dal Master.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Il nome della ditta non può essere vuoto")
        return v.strip() if v is not None else v

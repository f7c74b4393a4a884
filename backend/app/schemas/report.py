"""
Snapshot di sola lettura consumato dal generatore di report esterno
Progetto: Gestionale Interventi
"""

from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.intervention import InterventionRead, TechnicianBrief
from app.schemas.photo import PhotoRead


class InterventionReport(BaseModel):
    intervention: InterventionRead
    company_name: Optional[str] = None
    technician: Optional[TechnicianBrief] = None
    photos: list[PhotoRead] = Field(default_factory=list)

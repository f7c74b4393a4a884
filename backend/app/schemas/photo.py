import datetime
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PhotoCreate(BaseModel):
    reference: str = Field(..., min_length=1, description="Riferimento opaco restituito dallo storage foto")
    mime_type: str = Field(default="image/jpeg", max_length=100)
    caption: Optional[str] = Field(None, max_length=1000)


class PhotoRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    intervention_id: uuid.UUID
    reference: str
    mime_type: str
    caption: Optional[str] = None
    uploaded_by_id: Optional[uuid.UUID] = None
    created_at: datetime.datetime

"""
Router FastAPI per le Ditte
Progetto: Gestionale Interventi
"""

import uuid

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import ManagerActor, MasterActor
from app.schemas.company import CompanyDetail, CompanyRead, CompanyUpdate
from app.schemas.intervention import TechnicianBrief
from app.services.company_service import company_service

router = APIRouter(
    prefix="/companies",
    tags=["Ditte"],
)


@router.get(
    "/",
    name="ditte_lista",
    summary="Lista ditte",
    description="Ditte attive con numero di tecnici e interventi (solo Master).",
    response_model=list[CompanyRead],
    status_code=status.HTTP_200_OK,
)
async def get_companies(
    actor: MasterActor,
    db: AsyncSession = Depends(get_db),
) -> list[CompanyRead]:
    return await company_service.get_all(db)


@router.get(
    "/{company_id}/technicians",
    name="ditta_tecnici",
    summary="Tecnici della ditta",
    description="Tecnici attivi di una ditta (Master o Ditta titolare).",
    response_model=list[TechnicianBrief],
    status_code=status.HTTP_200_OK,
)
async def get_company_technicians(
    actor: ManagerActor,
    company_id: uuid.UUID = Path(..., description="UUID della ditta"),
    db: AsyncSession = Depends(get_db),
) -> list[TechnicianBrief]:
    technicians = await company_service.get_technicians(db, actor, company_id)
    return [TechnicianBrief.model_validate(t) for t in technicians]


@router.get(
    "/{company_id}",
    name="ditta_dettaglio",
    summary="Dettaglio ditta",
    description="Dati della ditta e tecnici attivi (Master o Ditta titolare).",
    response_model=CompanyDetail,
    status_code=status.HTTP_200_OK,
)
async def get_company(
    actor: ManagerActor,
    company_id: uuid.UUID = Path(..., description="UUID della ditta"),
    db: AsyncSession = Depends(get_db),
) -> CompanyDetail:
    return await company_service.get_detail(db, actor, company_id)


@router.patch(
    "/{company_id}",
    name="ditta_modifica",
    summary="Modifica ditta",
    description=(
        "Aggiorna nome e contatti della ditta (Master o Ditta titolare). "
        "Solo il Master può attivare o disattivare la ditta."
    ),
    response_model=CompanyRead,
    status_code=status.HTTP_200_OK,
)
async def update_company(
    actor: ManagerActor,
    data: CompanyUpdate,
    company_id: uuid.UUID = Path(..., description="UUID della ditta"),
    db: AsyncSession = Depends(get_db),
) -> CompanyRead:
    company = await company_service.update(db, actor, company_id, data)
    await db.commit()
    return CompanyRead.model_validate(company)

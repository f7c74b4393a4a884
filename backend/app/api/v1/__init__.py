"""
API v1 Routes
Progetto: Gestionale Interventi

Router versione 1 dell'API.
"""

from fastapi import APIRouter

from app.api.v1 import companies, interventions, push_tokens

# Router aggregato per v1
api_v1_router = APIRouter(prefix="/api/v1")

# Includi i router dei moduli
api_v1_router.include_router(interventions.router)
api_v1_router.include_router(companies.router)
api_v1_router.include_router(push_tokens.router)

# Esportazione
__all__ = ["api_v1_router"]

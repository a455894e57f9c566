"""
API v1 Routes
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)

Router versione 1 dell'API.
"""

from fastapi import APIRouter

from repairdesk.api.v1 import customers, inventory, pricing, repairs

# Router aggregato per v1
api_v1_router = APIRouter(prefix="/api/v1")

# Includi i router dei moduli
api_v1_router.include_router(repairs.router)
api_v1_router.include_router(inventory.router)
api_v1_router.include_router(customers.router)
api_v1_router.include_router(pricing.router)

# Esportazione
__all__ = ["api_v1_router"]

"""
Router FastAPI per il Calcolatore Prezzi
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)

Il calcolo è puro: nessun accesso al database.
"""

import logging

from fastapi import APIRouter

from repairdesk.core.config import settings
from repairdesk.schemas.pricing import CalculateRequest, PriceSnapshot, PricingSettingsRead, TvaMode
from repairdesk.services import price_calculator

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/pricing",
    tags=["Calcolatore Prezzi"],
)


@router.post(
    "/calculate",
    name="pricing_calculate",
    summary="Ricalcolo prezzi",
    description="Ricalcola tutti i campi a partire dal campo modificato (campo attivo).",
    response_model=PriceSnapshot,
)
async def calculate(data: CalculateRequest) -> PriceSnapshot:
    return price_calculator.calculate(data.active_field, data.values)


@router.get(
    "/settings",
    name="pricing_settings",
    summary="Configurazione calcolatore",
    description="Aliquote IVA selezionabili e valori proposti di default.",
    response_model=PricingSettingsRead,
)
async def get_pricing_settings() -> PricingSettingsRead:
    return PricingSettingsRead(
        tva_rates=settings.tva_rates,
        default_tva_rate=settings.default_tva_rate,
        default_margin_percent=settings.default_margin_percent,
        default_shipping_cost=settings.default_shipping_cost,
        tva_modes=list(TvaMode),
    )

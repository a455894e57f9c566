"""
Router FastAPI per il Magazzino
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)

NOTE: GET /low-stock è dichiarato prima di GET /{item_id}
per evitare conflitti di routing.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from repairdesk.core.deps import get_inventory_service
from repairdesk.schemas.inventory import (
    InventoryItemCreate,
    InventoryItemList,
    InventoryItemRead,
    QuantityUpdate,
)
from repairdesk.services.inventory_service import InventoryService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/inventory",
    tags=["Magazzino"],
)


@router.get(
    "/low-stock",
    name="inventory_low_stock",
    summary="Alert scorte basse",
    description="Articoli con giacenza pari o inferiore alla soglia.",
    response_model=InventoryItemList,
)
async def list_low_stock(
    threshold: Optional[int] = Query(None, ge=0, description="Soglia (default da configurazione)"),
    service: InventoryService = Depends(get_inventory_service),
) -> InventoryItemList:
    items = await service.list_low_stock(threshold)
    return InventoryItemList(
        items=[InventoryItemRead.model_validate(i) for i in items],
        total=len(items),
    )


@router.get(
    "/",
    name="inventory_list",
    summary="Lista articoli",
    response_model=InventoryItemList,
)
async def list_items(
    service: InventoryService = Depends(get_inventory_service),
) -> InventoryItemList:
    items = await service.list_items()
    return InventoryItemList(
        items=[InventoryItemRead.model_validate(i) for i in items],
        total=len(items),
    )


@router.post(
    "/",
    name="inventory_create",
    summary="Crea articolo",
    response_model=InventoryItemRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_item(
    data: InventoryItemCreate,
    service: InventoryService = Depends(get_inventory_service),
) -> InventoryItemRead:
    item = await service.create_item(data)
    return InventoryItemRead.model_validate(item)


@router.get(
    "/{item_id}",
    name="inventory_detail",
    summary="Dettaglio articolo",
    response_model=InventoryItemRead,
)
async def get_item(
    item_id: uuid.UUID,
    service: InventoryService = Depends(get_inventory_service),
) -> InventoryItemRead:
    item = await service.get_item(item_id)
    return InventoryItemRead.model_validate(item)


@router.patch(
    "/{item_id}/quantity",
    name="inventory_set_quantity",
    summary="Rettifica giacenza",
    description="Imposta la giacenza al valore indicato.",
    response_model=InventoryItemRead,
)
async def set_quantity(
    item_id: uuid.UUID,
    data: QuantityUpdate,
    service: InventoryService = Depends(get_inventory_service),
) -> InventoryItemRead:
    item = await service.set_quantity(item_id, data.quantity)
    return InventoryItemRead.model_validate(item)

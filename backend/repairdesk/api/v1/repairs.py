"""
Router FastAPI per le Riparazioni
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)

Definisce gli endpoint API per il ciclo di vita delle schede di
riparazione e per la riserva dei ricambi di magazzino.

Le operazioni composte aprono la propria transazione nel service:
i router non eseguono commit.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from repairdesk.core.deps import get_repair_service
from repairdesk.schemas.repair import (
    RepairCancel,
    RepairComplete,
    RepairCostUpdate,
    RepairCreate,
    RepairDescriptionUpdate,
    RepairDiagnosticsUpdate,
    RepairList,
    RepairPartCreate,
    RepairPartList,
    RepairPartRead,
    RepairRead,
    RepairStatus,
    RepairStatusUpdate,
)
from repairdesk.services.repair_service import RepairService

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Router con prefix e tag
router = APIRouter(
    prefix="/repairs",
    tags=["Riparazioni"],
)


# ------------------------------------------------------------
# Endpoint: Schede
# ------------------------------------------------------------

@router.get(
    "/",
    name="repairs_list",
    summary="Lista riparazioni",
    description="Riparazioni attive (o archiviate con archived=true), dalla più recente.",
    response_model=RepairList,
)
async def list_repairs(
    archived: bool = Query(False, description="Solo riparazioni archiviate"),
    repair_status: Optional[RepairStatus] = Query(None, alias="status", description="Filtro per stato"),
    service: RepairService = Depends(get_repair_service),
) -> RepairList:
    repairs = await service.list_repairs(status=repair_status, archived=archived)
    return RepairList(
        items=[RepairRead.model_validate(r) for r in repairs],
        total=len(repairs),
    )


@router.post(
    "/",
    name="repair_create",
    summary="Accettazione riparazione",
    description="Cerca o crea il cliente, registra il dispositivo e apre la scheda in stato pending.",
    response_model=RepairRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_repair(
    data: RepairCreate,
    service: RepairService = Depends(get_repair_service),
) -> RepairRead:
    repair = await service.create_repair(data)
    return RepairRead.model_validate(repair)


@router.get(
    "/{repair_id}",
    name="repair_detail",
    summary="Dettaglio riparazione",
    response_model=RepairRead,
)
async def get_repair(
    repair_id: uuid.UUID,
    service: RepairService = Depends(get_repair_service),
) -> RepairRead:
    repair = await service.get_repair(repair_id)
    return RepairRead.model_validate(repair)


@router.delete(
    "/{repair_id}",
    name="repair_delete",
    summary="Elimina riparazione",
    description="Elimina la scheda e i ricambi riservati, ripristinando le giacenze.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_repair(
    repair_id: uuid.UUID,
    service: RepairService = Depends(get_repair_service),
) -> None:
    await service.delete_repair(repair_id)


# ------------------------------------------------------------
# Endpoint: Stati
# ------------------------------------------------------------

@router.patch(
    "/{repair_id}/status",
    name="repair_set_status",
    summary="Imposta stato",
    description="Imposta uno stato qualsiasi; completed valorizza completed_at, delivered/archived archived_at.",
    response_model=RepairRead,
)
async def set_repair_status(
    repair_id: uuid.UUID,
    data: RepairStatusUpdate,
    service: RepairService = Depends(get_repair_service),
) -> RepairRead:
    repair = await service.set_status(repair_id, data.status)
    return RepairRead.model_validate(repair)


@router.post(
    "/{repair_id}/advance",
    name="repair_advance",
    summary="Stato successivo",
    response_model=RepairRead,
)
async def advance_repair(
    repair_id: uuid.UUID,
    service: RepairService = Depends(get_repair_service),
) -> RepairRead:
    repair = await service.advance_status(repair_id)
    return RepairRead.model_validate(repair)


@router.post(
    "/{repair_id}/cancel",
    name="repair_cancel",
    summary="Annulla riparazione",
    response_model=RepairRead,
)
async def cancel_repair(
    repair_id: uuid.UUID,
    data: Optional[RepairCancel] = None,
    service: RepairService = Depends(get_repair_service),
) -> RepairRead:
    repair = await service.cancel_repair(repair_id, data.reason if data else None)
    return RepairRead.model_validate(repair)


@router.post(
    "/{repair_id}/archive",
    name="repair_archive",
    summary="Archivia riparazione",
    response_model=RepairRead,
)
async def archive_repair(
    repair_id: uuid.UUID,
    service: RepairService = Depends(get_repair_service),
) -> RepairRead:
    repair = await service.archive_repair(repair_id)
    return RepairRead.model_validate(repair)


@router.post(
    "/{repair_id}/unarchive",
    name="repair_unarchive",
    summary="Ripristina dall'archivio",
    response_model=RepairRead,
)
async def unarchive_repair(
    repair_id: uuid.UUID,
    service: RepairService = Depends(get_repair_service),
) -> RepairRead:
    repair = await service.unarchive_repair(repair_id)
    return RepairRead.model_validate(repair)


@router.post(
    "/{repair_id}/complete",
    name="repair_complete",
    summary="Completa riparazione",
    response_model=RepairRead,
)
async def complete_repair(
    repair_id: uuid.UUID,
    data: Optional[RepairComplete] = None,
    service: RepairService = Depends(get_repair_service),
) -> RepairRead:
    repair = await service.complete_repair(repair_id, data.notes if data else None)
    return RepairRead.model_validate(repair)


# ------------------------------------------------------------
# Endpoint: Aggiornamento campi
# ------------------------------------------------------------

@router.patch(
    "/{repair_id}/description",
    name="repair_update_description",
    summary="Aggiorna descrizione",
    response_model=RepairRead,
)
async def update_description(
    repair_id: uuid.UUID,
    data: RepairDescriptionUpdate,
    service: RepairService = Depends(get_repair_service),
) -> RepairRead:
    repair = await service.update_description(repair_id, data.description)
    return RepairRead.model_validate(repair)


@router.patch(
    "/{repair_id}/cost",
    name="repair_update_cost",
    summary="Aggiorna costo stimato",
    response_model=RepairRead,
)
async def update_cost(
    repair_id: uuid.UUID,
    data: RepairCostUpdate,
    service: RepairService = Depends(get_repair_service),
) -> RepairRead:
    repair = await service.update_cost(repair_id, data.estimated_cost)
    return RepairRead.model_validate(repair)


@router.patch(
    "/{repair_id}/diagnostics",
    name="repair_update_diagnostics",
    summary="Aggiorna scheda diagnostica",
    response_model=RepairRead,
)
async def update_diagnostics(
    repair_id: uuid.UUID,
    data: RepairDiagnosticsUpdate,
    service: RepairService = Depends(get_repair_service),
) -> RepairRead:
    repair = await service.update_diagnostics(repair_id, data.diagnostics)
    return RepairRead.model_validate(repair)


# ------------------------------------------------------------
# Endpoint: Ricambi riservati
# ------------------------------------------------------------

@router.get(
    "/{repair_id}/parts",
    name="repair_parts_list",
    summary="Ricambi della riparazione",
    response_model=RepairPartList,
)
async def list_parts(
    repair_id: uuid.UUID,
    service: RepairService = Depends(get_repair_service),
) -> RepairPartList:
    parts = await service.list_parts(repair_id)
    return RepairPartList(
        items=[RepairPartRead.from_part(p) for p in parts],
        total=len(parts),
    )


@router.post(
    "/{repair_id}/parts",
    name="repair_part_add",
    summary="Riserva ricambio",
    description="Riserva un articolo di magazzino sulla riparazione scalandone la giacenza.",
    response_model=RepairPartRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_part(
    repair_id: uuid.UUID,
    data: RepairPartCreate,
    service: RepairService = Depends(get_repair_service),
) -> RepairPartRead:
    part = await service.add_repair_part(repair_id, data.inventory_item_id, data.quantity)
    return RepairPartRead.from_part(part)


@router.delete(
    "/{repair_id}/parts/{part_id}",
    name="repair_part_remove",
    summary="Rimuovi ricambio",
    description="Rimuove il ricambio dalla riparazione ripristinando la giacenza.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_part(
    repair_id: uuid.UUID,
    part_id: uuid.UUID,
    service: RepairService = Depends(get_repair_service),
) -> None:
    await service.remove_repair_part(repair_id, part_id)

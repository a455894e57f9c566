"""
Schemas Pydantic per le Riparazioni
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)

Contiene tutti gli schemi per la validazione e serializzazione
dei dati relativi a schede di riparazione e ricambi riservati.
"""

import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from repairdesk.schemas.customer import CustomerBase, DeviceBase
from repairdesk.schemas.pricing import PriceSnapshot


class RepairStatus(str, Enum):
    """Stati di una scheda di riparazione."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    ARCHIVED = "archived"


# Percorso lineare usato da "passa allo stato successivo"
NEXT_STATUS: dict[RepairStatus, RepairStatus] = {
    RepairStatus.PENDING: RepairStatus.IN_PROGRESS,
    RepairStatus.IN_PROGRESS: RepairStatus.COMPLETED,
    RepairStatus.COMPLETED: RepairStatus.DELIVERED,
}


# ------------------------------------------------------------
# Schemas di creazione
# ------------------------------------------------------------

class CustomerData(CustomerBase):
    """Cliente indicato in accettazione (cercato per nome e telefono, o creato)."""
    pass


class DeviceData(DeviceBase):
    pass


class RepairCreate(BaseModel):
    """
    Dati per l'accettazione di una nuova riparazione.

    Se `pricing` è presente, il costo stimato è il prezzo TTC
    dello snapshot e `estimated_cost` viene ignorato.
    """
    customer: CustomerData
    device: DeviceData
    description: Optional[str] = Field(None, description="Descrizione del guasto")
    estimated_cost: Decimal = Field(default=Decimal("0"), ge=0, description="Costo stimato")
    diagnostics: Optional[dict[str, Any]] = Field(None, description="Scheda diagnostica")
    pricing: Optional[PriceSnapshot] = Field(None, description="Snapshot del calcolatore prezzi")

    @field_validator("estimated_cost", mode="before")
    @classmethod
    def convert_decimal_from_string(cls, v):
        if v is None:
            return Decimal("0")
        if isinstance(v, str):
            v = v.strip().replace(",", ".")
            return v or Decimal("0")
        return v


# ------------------------------------------------------------
# Schemas di aggiornamento
# ------------------------------------------------------------

class RepairStatusUpdate(BaseModel):
    status: RepairStatus


class RepairCancel(BaseModel):
    reason: Optional[str] = Field(None, description="Motivo dell'annullamento")


class RepairComplete(BaseModel):
    notes: Optional[str] = Field(None, description="Note di fine lavorazione")


class RepairDescriptionUpdate(BaseModel):
    description: Optional[str] = None


class RepairCostUpdate(BaseModel):
    # Il limite >= 0 è verificato dal service
    estimated_cost: Decimal


class RepairDiagnosticsUpdate(BaseModel):
    diagnostics: Optional[dict[str, Any]] = None


# ------------------------------------------------------------
# Schemas di lettura
# ------------------------------------------------------------

class CustomerSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None


class DeviceSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    brand: str
    model: str
    serial_number: Optional[str] = None
    customer: CustomerSummary


class RepairRead(BaseModel):
    """Scheda di riparazione con dispositivo e cliente."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    device_id: uuid.UUID
    status: RepairStatus
    description: Optional[str] = None
    estimated_cost: Decimal
    completed_at: Optional[datetime.datetime] = None
    archived_at: Optional[datetime.datetime] = None
    diagnostics: Optional[dict[str, Any]] = None
    cancel_reason: Optional[str] = None
    created_at: datetime.datetime
    updated_at: datetime.datetime
    device: DeviceSummary


class RepairList(BaseModel):
    items: list[RepairRead]
    total: int


# ------------------------------------------------------------
# Schemas Ricambi riservati
# ------------------------------------------------------------

class RepairPartCreate(BaseModel):
    inventory_item_id: uuid.UUID
    quantity: int = Field(default=1, description="Quantità da riservare")


class RepairPartRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    repair_id: uuid.UUID
    inventory_item_id: uuid.UUID
    quantity: int
    item_name: Optional[str] = None
    created_at: datetime.datetime

    @classmethod
    def from_part(cls, part: Any) -> "RepairPartRead":
        """Costruisce lo schema includendo il nome dell'articolo riservato."""
        item = part.inventory_item
        data = cls.model_validate(part)
        return data.model_copy(update={"item_name": item.name if item is not None else None})


class RepairPartList(BaseModel):
    items: list[RepairPartRead]
    total: int

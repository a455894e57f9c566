"""
Schemas Pydantic per il Magazzino
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)
"""

import datetime
import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InventoryItemBase(BaseModel):
    """Schema base per gli articoli di magazzino."""
    name: str = Field(..., min_length=1, max_length=255, description="Nome dell'articolo")
    description: Optional[str] = Field(None, description="Descrizione")
    price: Optional[Decimal] = Field(None, ge=0, description="Prezzo di vendita")

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("price", mode="before")
    @classmethod
    def convert_decimal_from_string(cls, v):
        """Gestisce input con virgola; vuoto → None."""
        if isinstance(v, str):
            v = v.strip().replace(",", ".")
            return v or None
        return v


class InventoryItemCreate(InventoryItemBase):
    quantity: int = Field(default=0, ge=0, description="Giacenza iniziale")


class InventoryItemRead(InventoryItemBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    quantity: int
    is_low_stock: bool
    created_at: datetime.datetime
    updated_at: datetime.datetime


class InventoryItemList(BaseModel):
    items: list[InventoryItemRead]
    total: int


class QuantityUpdate(BaseModel):
    """Rettifica assoluta della giacenza."""
    quantity: int = Field(..., ge=0, description="Nuova giacenza")

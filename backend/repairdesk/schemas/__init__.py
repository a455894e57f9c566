"""
Schemas Pydantic per il progetto Repair Desk

Questo modulo contiene tutti gli schemi Pydantic utilizzati per la validazione
e serializzazione delle risposte API.
"""

# Import degli schemi per renderli disponibili tramite import diretto
# es: from repairdesk.schemas import RepairRead, CustomerRead, etc.

from repairdesk.schemas.customer import (
    CustomerCreate,
    CustomerDetail,
    CustomerList,
    CustomerRead,
    DeviceCreate,
    DeviceRead,
)
from repairdesk.schemas.inventory import (
    InventoryItemCreate,
    InventoryItemList,
    InventoryItemRead,
    QuantityUpdate,
)
from repairdesk.schemas.pricing import (
    CalculateRequest,
    PriceField,
    PriceInputs,
    PriceSnapshot,
    PricingSettingsRead,
    TvaMode,
)
from repairdesk.schemas.repair import (
    NEXT_STATUS,
    CustomerData,
    DeviceData,
    RepairCreate,
    RepairList,
    RepairPartCreate,
    RepairPartList,
    RepairPartRead,
    RepairRead,
    RepairStatus,
)

__all__ = [
    # Clienti
    "CustomerCreate",
    "CustomerDetail",
    "CustomerList",
    "CustomerRead",
    "DeviceCreate",
    "DeviceRead",
    # Magazzino
    "InventoryItemCreate",
    "InventoryItemList",
    "InventoryItemRead",
    "QuantityUpdate",
    # Calcolatore
    "CalculateRequest",
    "PriceField",
    "PriceInputs",
    "PriceSnapshot",
    "PricingSettingsRead",
    "TvaMode",
    # Riparazioni
    "NEXT_STATUS",
    "CustomerData",
    "DeviceData",
    "RepairCreate",
    "RepairList",
    "RepairPartCreate",
    "RepairPartList",
    "RepairPartRead",
    "RepairRead",
    "RepairStatus",
]

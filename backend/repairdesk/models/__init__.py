"""
Modelli Database SQLAlchemy
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)

Import centralizzato di tutti i modelli per la creazione dello schema e usage generico.

Modelli:
- Customer: Anagrafica clienti
- Device: Dispositivi consegnati dai clienti
- RepairTicket: Schede di riparazione
- RepairPart: Ricambi riservati su una riparazione
- InventoryItem: Articoli di magazzino
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class per tutti i modelli SQLAlchemy."""
    pass


from repairdesk.models.customer import Customer
from repairdesk.models.device import Device
from repairdesk.models.inventory import InventoryItem
from repairdesk.models.repair import RepairPart, RepairTicket

__all__ = [
    "Base",
    "Customer",
    "Device",
    "InventoryItem",
    "RepairPart",
    "RepairTicket",
]

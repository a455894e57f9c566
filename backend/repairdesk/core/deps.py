"""
Dependency Injection per i service
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)

I service vengono costruiti per ogni richiesta con la porta di
persistenza (legata alla sessione della richiesta) e l'Event Bus
dell'applicazione.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from repairdesk.core.database import get_db
from repairdesk.core.events import EventBus
from repairdesk.core.persistence import PersistencePort, SqlAlchemyPersistence
from repairdesk.services.customer_service import CustomerService
from repairdesk.services.inventory_service import InventoryService
from repairdesk.services.repair_service import RepairService


def get_persistence(db: AsyncSession = Depends(get_db)) -> PersistencePort:
    """Porta di persistenza sulla sessione della richiesta."""
    return SqlAlchemyPersistence(db)


def get_event_bus(request: Request) -> EventBus:
    """Event Bus condiviso, creato all'avvio dell'applicazione."""
    return request.app.state.event_bus


def get_repair_service(
    port: PersistencePort = Depends(get_persistence),
    events: EventBus = Depends(get_event_bus),
) -> RepairService:
    return RepairService(port, events)


def get_inventory_service(
    port: PersistencePort = Depends(get_persistence),
    events: EventBus = Depends(get_event_bus),
) -> InventoryService:
    return InventoryService(port, events)


def get_customer_service(
    repair_service: RepairService = Depends(get_repair_service),
) -> CustomerService:
    return CustomerService(repair_service.port, repair_service)

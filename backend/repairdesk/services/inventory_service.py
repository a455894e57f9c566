"""
Servizi per la gestione del Magazzino
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)

Contiene le funzioni di business logic per:
- CRUD articoli di magazzino
- Rettifica della giacenza
- Alert scorte basse

Le variazioni dovute alle riparazioni sono gestite dal RepairService.
"""

import logging
import uuid
from typing import Optional

from repairdesk.core.config import settings
from repairdesk.core.events import EventBus, StockChanged
from repairdesk.core.exceptions import BusinessValidationError
from repairdesk.core.persistence import PersistencePort
from repairdesk.models import InventoryItem
from repairdesk.schemas.inventory import InventoryItemCreate

logger = logging.getLogger(__name__)


class InventoryService:
    """
    Service per la gestione degli articoli di magazzino.

    Fornisce metodi asincroni sulla porta di persistenza,
    senza dipendenze da FastAPI.
    """

    def __init__(self, port: PersistencePort, events: Optional[EventBus] = None) -> None:
        self.port = port
        self.events = events if events is not None else EventBus()

    async def list_items(self) -> list[InventoryItem]:
        """Articoli ordinati per nome."""
        return await self.port.query(InventoryItem, order_by="name")

    async def get_item(self, item_id: uuid.UUID) -> InventoryItem:
        return await self.port.get(InventoryItem, item_id)

    async def create_item(self, data: InventoryItemCreate) -> InventoryItem:
        """
        Crea un nuovo articolo.

        Raises:
            BusinessValidationError: Nome vuoto o giacenza negativa
        """
        if not data.name.strip():
            raise BusinessValidationError("Il nome dell'articolo è obbligatorio")
        if data.quantity < 0:
            raise BusinessValidationError(
                "La giacenza non può essere negativa",
                extra={"quantity": data.quantity},
            )

        async with self.port.transaction():
            item = await self.port.insert(InventoryItem, data.model_dump())

        logger.info("Creato articolo %s (%s), giacenza %d", item.id, item.name, item.quantity)
        return item

    async def set_quantity(self, item_id: uuid.UUID, quantity: int) -> InventoryItem:
        """
        Rettifica assoluta della giacenza.

        Emette StockChanged con la differenza rispetto alla giacenza precedente.

        Raises:
            BusinessValidationError: Se la quantità è negativa
            NotFoundError: Se l'articolo non esiste
        """
        if quantity < 0:
            raise BusinessValidationError(
                "La giacenza non può essere negativa",
                extra={"quantity": quantity},
            )

        async with self.port.transaction():
            item = await self.port.get(InventoryItem, item_id, for_update=True)
            delta = quantity - item.quantity
            await self.port.update(InventoryItem, item_id, {"quantity": quantity})

        logger.info("Rettifica giacenza %s: %+d (ora %d)", item.name, delta, quantity)
        if delta:
            await self.events.publish(
                StockChanged(
                    inventory_item_id=item_id,
                    delta=delta,
                    quantity=quantity,
                    reason="adjustment",
                )
            )
        return item

    async def list_low_stock(self, threshold: Optional[int] = None) -> list[InventoryItem]:
        """Articoli con giacenza pari o inferiore alla soglia (default da configurazione)."""
        if threshold is None:
            threshold = settings.low_stock_threshold
        items = await self.port.query(InventoryItem, order_by="quantity", quantity__lte=threshold)
        logger.debug("Articoli in esaurimento (soglia %d): %d", threshold, len(items))
        return items

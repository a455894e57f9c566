"""
Eventi di dominio ed Event Bus
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)

Eventi emessi dal core verso i collaboratori esterni:
- RepairStatusChanged: cambio di stato di una riparazione
- StockChanged: variazione di giacenza di un articolo di magazzino

Gli eventi vengono pubblicati dai service solo dopo il commit
della transazione che li ha generati.
"""

import logging
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from repairdesk.core.config import settings

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DomainEvent(BaseModel):
    """Base per gli eventi di dominio (immutabili)."""

    model_config = ConfigDict(frozen=True)

    occurred_at: datetime = Field(default_factory=_utcnow, description="Istante dell'evento")


class RepairStatusChanged(DomainEvent):
    """Stato di una riparazione modificato."""

    repair_id: uuid.UUID
    previous_status: str
    new_status: str


class StockChanged(DomainEvent):
    """
    Giacenza di un articolo modificata.

    `delta` è la variazione applicata (negativa per una riserva),
    `quantity` la giacenza risultante.
    """

    inventory_item_id: uuid.UUID
    delta: int
    quantity: int
    reason: str = Field(..., description="Causa: reserve, release o adjustment")
    repair_id: Optional[uuid.UUID] = None


EventHandler = Callable[[DomainEvent], Union[None, Awaitable[None]]]


class EventBus:
    """
    Bus di eventi in-process.

    Gli handler sono invocati in ordine di registrazione; possono essere
    sincroni o coroutine. Un errore in un handler viene propagato al chiamante.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None:
        """Registra un handler per un tipo di evento (e i suoi sottotipi)."""
        self._handlers[event_type].append(handler)
        logger.debug("Handler %s registrato per %s", getattr(handler, "__name__", handler), event_type.__name__)

    async def publish(self, event: DomainEvent) -> None:
        """Notifica l'evento a tutti gli handler interessati."""
        logger.debug("Pubblicazione evento %s", type(event).__name__)
        for event_type, handlers in list(self._handlers.items()):
            if not isinstance(event, event_type):
                continue
            for handler in list(handlers):
                result = handler(event)
                if result is not None:
                    await result

    async def publish_all(self, events: list[DomainEvent]) -> None:
        for event in events:
            await self.publish(event)


# ------------------------------------------------------------
# Observer di default
# ------------------------------------------------------------

def log_low_stock(event: DomainEvent) -> None:
    """Segnala nel log gli articoli rimasti pari o sotto la soglia di esaurimento."""
    if isinstance(event, StockChanged) and event.quantity <= settings.low_stock_threshold:
        logger.warning(
            "Scorta bassa per l'articolo %s: giacenza %d (soglia %d)",
            event.inventory_item_id,
            event.quantity,
            settings.low_stock_threshold,
        )


def build_event_bus() -> EventBus:
    """Crea l'Event Bus dell'applicazione con gli observer di default."""
    bus = EventBus()
    bus.subscribe(StockChanged, log_low_stock)
    return bus

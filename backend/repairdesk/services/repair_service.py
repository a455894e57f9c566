"""
Servizi per la gestione delle Riparazioni
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)

Contiene le funzioni di business logic per:
- Accettazione di una nuova riparazione (cliente, dispositivo, scheda)
- Cambi di stato e relativi effetti (completed_at, archived_at)
- Riserva e rilascio dei ricambi di magazzino
- Eliminazione della scheda con ripristino delle giacenze

Ogni operazione composta avviene in una transazione della porta di
persistenza; gli eventi vengono pubblicati solo a transazione conclusa.
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from repairdesk.core.events import EventBus, RepairStatusChanged, StockChanged
from repairdesk.core.exceptions import (
    BusinessValidationError,
    ConflictError,
    InsufficientStockError,
    NotFoundError,
)
from repairdesk.core.persistence import PersistencePort
from repairdesk.models import Device, InventoryItem, RepairPart, RepairTicket
from repairdesk.schemas.repair import NEXT_STATUS, RepairCreate, RepairStatus
from repairdesk.services.customer_service import (
    find_or_create_customer,
    validate_customer_data,
    validate_device_data,
)

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _checked_cost(value: Optional[Decimal]) -> Optional[Decimal]:
    if value is None:
        return None
    value = Decimal(value)
    if value < 0:
        raise BusinessValidationError(
            "Il costo stimato non può essere negativo",
            extra={"estimated_cost": str(value)},
        )
    return value


def _parse_status(value: Any) -> RepairStatus:
    try:
        return RepairStatus(value)
    except ValueError as exc:
        raise BusinessValidationError(
            f"Stato non valido: {value}",
            extra={"allowed": [s.value for s in RepairStatus]},
        ) from exc


class RepairService:
    """
    Service per il ciclo di vita delle schede di riparazione.

    La macchina a stati è permissiva: qualsiasi stato può essere impostato
    da qualsiasi altro; gli effetti dipendono solo dallo stato di arrivo e
    i timestamp già valorizzati non vengono mai azzerati (salvo unarchive).
    """

    def __init__(self, port: PersistencePort, events: Optional[EventBus] = None) -> None:
        self.port = port
        self.events = events if events is not None else EventBus()

    # ------------------------------------------------------------
    # Lettura
    # ------------------------------------------------------------

    async def get_repair(self, repair_id: uuid.UUID) -> RepairTicket:
        return await self.port.get(RepairTicket, repair_id)

    async def list_repairs(
        self,
        status: Optional[RepairStatus] = None,
        archived: bool = False,
    ) -> list[RepairTicket]:
        """
        Recupera le schede, dalla più recente.

        Args:
            status: Filtro per stato
            archived: Se True solo le archiviate, altrimenti tutte le altre
        """
        if archived:
            filters = {"status": RepairStatus.ARCHIVED.value}
        elif status is not None:
            filters = {"status": _parse_status(status).value}
        else:
            filters = {"status__ne": RepairStatus.ARCHIVED.value}
        return await self.port.query(RepairTicket, order_by="-created_at", **filters)

    async def list_parts(self, repair_id: uuid.UUID) -> list[RepairPart]:
        await self.port.get(RepairTicket, repair_id)
        return await self.port.query(RepairPart, order_by="created_at", repair_id=repair_id)

    # ------------------------------------------------------------
    # Accettazione
    # ------------------------------------------------------------

    async def create_repair(self, data: RepairCreate) -> RepairTicket:
        """
        Accetta una nuova riparazione.

        In un'unica transazione: cerca o crea il cliente, registra il
        dispositivo e crea la scheda in stato pending.

        Raises:
            BusinessValidationError: Nome cliente o marca/modello mancanti,
                oppure costo stimato negativo
        """
        validate_customer_data(data.customer)
        validate_device_data(data.device)

        estimated_cost = _checked_cost(
            data.pricing.price_ttc if data.pricing is not None else data.estimated_cost
        )

        async with self.port.transaction():
            customer = await find_or_create_customer(self.port, data.customer)
            device = await self.port.insert(
                Device,
                {"customer": customer, **data.device.model_dump()},
            )
            repair = await self.port.insert(
                RepairTicket,
                {
                    "device": device,
                    "status": RepairStatus.PENDING.value,
                    "description": data.description,
                    "estimated_cost": estimated_cost,
                    "diagnostics": data.diagnostics,
                },
            )

        logger.info(
            "Nuova riparazione %s per %s %s (cliente %s), costo stimato %s",
            repair.id,
            device.brand,
            device.model,
            customer.id,
            estimated_cost,
        )
        return repair

    # ------------------------------------------------------------
    # Stati
    # ------------------------------------------------------------

    async def _change_status(
        self,
        repair: RepairTicket,
        new_status: RepairStatus,
        extra_fields: Optional[dict[str, Any]] = None,
    ) -> RepairStatusChanged:
        """Applica stato ed effetti collegati; da chiamare dentro una transazione."""
        previous_status = repair.status
        now = _now()
        fields: dict[str, Any] = {"status": new_status.value}

        if new_status == RepairStatus.COMPLETED:
            fields["completed_at"] = now
        elif new_status in (RepairStatus.DELIVERED, RepairStatus.ARCHIVED):
            fields["archived_at"] = now

        fields.update(extra_fields or {})
        await self.port.update(RepairTicket, repair.id, fields)

        return RepairStatusChanged(
            repair_id=repair.id,
            previous_status=previous_status,
            new_status=new_status.value,
            occurred_at=now,
        )

    async def set_status(self, repair_id: uuid.UUID, new_status: RepairStatus) -> RepairTicket:
        """
        Imposta lo stato della riparazione.

        - completed: completed_at = adesso
        - delivered / archived: archived_at = adesso
        - altri stati: nessun timestamp modificato

        Raises:
            NotFoundError: Se la riparazione non esiste
            StorageError: Se il database fallisce (nessun retry)
        """
        new_status = _parse_status(new_status)
        async with self.port.transaction():
            repair = await self.port.get(RepairTicket, repair_id)
            event = await self._change_status(repair, new_status)

        logger.info(
            "Riparazione %s: stato %s → %s",
            repair_id,
            event.previous_status,
            event.new_status,
        )
        await self.events.publish(event)
        return repair

    async def advance_status(self, repair_id: uuid.UUID) -> RepairTicket:
        """
        Passa allo stato successivo del percorso lineare
        pending → in_progress → completed → delivered.

        Raises:
            ConflictError: Se lo stato corrente non ha un successivo
        """
        async with self.port.transaction():
            repair = await self.port.get(RepairTicket, repair_id)
            next_status = NEXT_STATUS.get(RepairStatus(repair.status))
            if next_status is None:
                logger.warning("Nessuno stato successivo per la riparazione %s (%s)", repair_id, repair.status)
                raise ConflictError(
                    f"La riparazione in stato '{repair.status}' non ha uno stato successivo",
                    extra={"status": repair.status},
                )
            event = await self._change_status(repair, next_status)

        logger.info("Riparazione %s avanzata: %s → %s", repair_id, event.previous_status, event.new_status)
        await self.events.publish(event)
        return repair

    async def cancel_repair(self, repair_id: uuid.UUID, reason: Optional[str] = None) -> RepairTicket:
        """Annulla la riparazione registrando il motivo; la descrizione resta invariata."""
        reason = (reason or "").strip() or None
        async with self.port.transaction():
            repair = await self.port.get(RepairTicket, repair_id)
            event = await self._change_status(repair, RepairStatus.CANCELLED, {"cancel_reason": reason})

        logger.info("Riparazione %s annullata (motivo: %s)", repair_id, reason or "-")
        await self.events.publish(event)
        return repair

    async def archive_repair(self, repair_id: uuid.UUID) -> RepairTicket:
        return await self.set_status(repair_id, RepairStatus.ARCHIVED)

    async def unarchive_repair(self, repair_id: uuid.UUID) -> RepairTicket:
        """Riporta la riparazione in pending azzerando archived_at."""
        async with self.port.transaction():
            repair = await self.port.get(RepairTicket, repair_id)
            event = await self._change_status(repair, RepairStatus.PENDING, {"archived_at": None})

        logger.info("Riparazione %s ripristinata dall'archivio", repair_id)
        await self.events.publish(event)
        return repair

    async def complete_repair(self, repair_id: uuid.UUID, notes: Optional[str] = None) -> RepairTicket:
        """Completa la riparazione aggiungendo le note finali alla descrizione."""
        notes = (notes or "").strip()
        async with self.port.transaction():
            repair = await self.port.get(RepairTicket, repair_id)
            extra_fields = {}
            if notes:
                note_line = f"Note di completamento: {notes}"
                extra_fields["description"] = (
                    f"{repair.description}\n\n{note_line}" if repair.description else note_line
                )
            event = await self._change_status(repair, RepairStatus.COMPLETED, extra_fields)

        logger.info("Riparazione %s completata", repair_id)
        await self.events.publish(event)
        return repair

    # ------------------------------------------------------------
    # Aggiornamento campi
    # ------------------------------------------------------------

    async def _update_fields(self, repair_id: uuid.UUID, fields: dict[str, Any]) -> RepairTicket:
        async with self.port.transaction():
            await self.port.update(RepairTicket, repair_id, fields)
            repair = await self.port.get(RepairTicket, repair_id)
        logger.info("Riparazione %s aggiornata: %s", repair_id, ", ".join(fields))
        return repair

    async def update_description(self, repair_id: uuid.UUID, description: Optional[str]) -> RepairTicket:
        return await self._update_fields(repair_id, {"description": description})

    async def update_cost(self, repair_id: uuid.UUID, estimated_cost: Decimal) -> RepairTicket:
        """
        Raises:
            BusinessValidationError: Se il costo è negativo
        """
        return await self._update_fields(repair_id, {"estimated_cost": _checked_cost(estimated_cost)})

    async def update_diagnostics(
        self,
        repair_id: uuid.UUID,
        diagnostics: Optional[dict[str, Any]],
    ) -> RepairTicket:
        return await self._update_fields(repair_id, {"diagnostics": diagnostics})

    # ------------------------------------------------------------
    # Ricambi
    # ------------------------------------------------------------

    async def _stock_event(
        self,
        item_id: uuid.UUID,
        delta: int,
        reason: str,
        repair_id: Optional[uuid.UUID],
    ) -> StockChanged:
        # Rilettura della giacenza dopo l'UPDATE atomico
        item = await self.port.get(InventoryItem, item_id, for_update=True)
        return StockChanged(
            inventory_item_id=item_id,
            delta=delta,
            quantity=item.quantity,
            reason=reason,
            repair_id=repair_id,
        )

    async def add_repair_part(
        self,
        repair_id: uuid.UUID,
        inventory_item_id: uuid.UUID,
        quantity: int,
    ) -> RepairPart:
        """
        Riserva un ricambio di magazzino sulla riparazione.

        La riga dell'articolo viene bloccata (SELECT ... FOR UPDATE); inserimento
        del ricambio e decremento della giacenza avvengono nella stessa transazione.

        Raises:
            BusinessValidationError: Se la quantità non è positiva
            NotFoundError: Se riparazione o articolo non esistono
            InsufficientStockError: Se la giacenza non è sufficiente (nulla viene scritto)
        """
        if quantity is None or quantity <= 0:
            raise BusinessValidationError(
                "La quantità deve essere maggiore di zero",
                extra={"quantity": quantity},
            )

        async with self.port.transaction():
            await self.port.get(RepairTicket, repair_id)
            item = await self.port.get(InventoryItem, inventory_item_id, for_update=True)

            if quantity > item.quantity:
                logger.warning(
                    "Giacenza insufficiente per %s: disponibili %d, richiesti %d",
                    item.name,
                    item.quantity,
                    quantity,
                )
                raise InsufficientStockError(
                    f"Giacenza insufficiente per '{item.name}': disponibili {item.quantity}, richiesti {quantity}",
                    extra={
                        "inventory_item_id": str(item.id),
                        "available": item.quantity,
                        "requested": quantity,
                    },
                )

            part = await self.port.insert(
                RepairPart,
                {"repair_id": repair_id, "inventory_item": item, "quantity": quantity},
            )
            await self.port.increment_field(InventoryItem, item.id, "quantity", -quantity)
            event = await self._stock_event(item.id, -quantity, "reserve", repair_id)

        logger.info("Riservati %d x %s sulla riparazione %s", quantity, item.name, repair_id)
        await self.events.publish(event)
        return part

    async def remove_repair_part(self, repair_id: uuid.UUID, part_id: uuid.UUID) -> None:
        """
        Rimuove un ricambio dalla riparazione ripristinando la giacenza.

        Raises:
            NotFoundError: Se il ricambio non esiste o appartiene ad altra riparazione
        """
        async with self.port.transaction():
            part = await self.port.get(RepairPart, part_id)
            if part.repair_id != repair_id:
                logger.warning("Ricambio %s non appartiene alla riparazione %s", part_id, repair_id)
                raise NotFoundError(
                    f"Ricambio {part_id} non trovato sulla riparazione {repair_id}",
                    extra={"repair_id": str(repair_id), "part_id": str(part_id)},
                )

            await self.port.increment_field(InventoryItem, part.inventory_item_id, "quantity", part.quantity)
            await self.port.delete(RepairPart, part_id)
            event = await self._stock_event(part.inventory_item_id, part.quantity, "release", repair_id)

        logger.info("Rilasciati %d pezzi dal ricambio %s", part.quantity, part_id)
        await self.events.publish(event)

    # ------------------------------------------------------------
    # Eliminazione
    # ------------------------------------------------------------

    async def purge_repair(self, repair_id: uuid.UUID) -> list[StockChanged]:
        """
        Elimina la scheda rilasciando i ricambi, nella transazione del chiamante.

        Sequenza: elenco ricambi, ripristino giacenze (incrementi atomici),
        eliminazione ricambi, eliminazione scheda.

        Returns:
            Eventi di giacenza da pubblicare dopo il commit
        """
        await self.port.get(RepairTicket, repair_id)
        parts = await self.port.query(RepairPart, repair_id=repair_id)

        for part in parts:
            await self.port.increment_field(InventoryItem, part.inventory_item_id, "quantity", part.quantity)
        for part in parts:
            await self.port.delete(RepairPart, part.id)
        await self.port.delete(RepairTicket, repair_id)

        return [
            await self._stock_event(part.inventory_item_id, part.quantity, "release", repair_id)
            for part in parts
        ]

    async def delete_repair(self, repair_id: uuid.UUID) -> None:
        """
        Elimina la riparazione ripristinando le giacenze dei ricambi riservati.

        L'intera sequenza è atomica: un errore in qualsiasi passo la annulla.

        Raises:
            NotFoundError: Se la riparazione non esiste
            StorageError: Se il database fallisce
        """
        async with self.port.transaction():
            events = await self.purge_repair(repair_id)

        logger.info("Eliminata riparazione %s (%d ricambi rilasciati)", repair_id, len(events))
        await self.events.publish_all(events)

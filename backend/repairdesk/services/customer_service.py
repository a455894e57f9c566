"""
Servizi per la gestione dei Clienti e dei Dispositivi
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)

Contiene le funzioni di business logic per:
- Anagrafica clienti
- Registrazione dispositivi
- Ricerca o creazione del cliente in accettazione
- Eliminazione del cliente con rilascio delle giacenze riservate
"""

import logging
import uuid
from typing import TYPE_CHECKING, Optional

from repairdesk.core.events import EventBus
from repairdesk.core.exceptions import BusinessValidationError
from repairdesk.core.persistence import PersistencePort
from repairdesk.models import Customer, Device, RepairTicket
from repairdesk.schemas.customer import CustomerBase, CustomerCreate, DeviceBase

if TYPE_CHECKING:
    from repairdesk.services.repair_service import RepairService

logger = logging.getLogger(__name__)

# Campi di contatto completati sul cliente esistente se mancanti
CONTACT_FIELDS = ("email", "phone", "address", "city", "postal_code", "country")


def validate_customer_data(data: CustomerBase) -> None:
    """Il nome del cliente è obbligatorio."""
    if not (data.name or "").strip():
        raise BusinessValidationError(
            "Il nome del cliente è obbligatorio",
            extra={"field": "customer.name"},
        )


def validate_device_data(data: DeviceBase) -> None:
    """Marca e modello del dispositivo sono obbligatori."""
    missing = [field for field in ("brand", "model") if not (getattr(data, field) or "").strip()]
    if missing:
        raise BusinessValidationError(
            "Marca e modello del dispositivo sono obbligatori",
            extra={"fields": [f"device.{field}" for field in missing]},
        )


async def find_or_create_customer(port: PersistencePort, data: CustomerBase) -> Customer:
    """
    Cerca il cliente per nome (senza distinzione maiuscole/minuscole) o lo crea.

    Se è indicato un telefono, tra gli omonimi si sceglie quello con lo
    stesso numero, altrimenti uno senza numero registrato; se nessuno
    corrisponde si crea un nuovo cliente. I contatti mancanti del
    cliente trovato vengono completati con quelli ricevuti.

    Va chiamata all'interno di una transazione della porta.
    """
    validate_customer_data(data)
    name = data.name.strip()

    candidates = await port.query(Customer, order_by="created_at", name__iexact=name)
    if data.phone:
        candidates = (
            [c for c in candidates if c.phone == data.phone]
            or [c for c in candidates if not c.phone]
        )

    if not candidates:
        customer = await port.insert(Customer, data.model_dump(include={"name", *CONTACT_FIELDS}) | {"name": name})
        logger.info("Creato nuovo cliente: %s (%s)", customer.id, name)
        return customer

    customer = candidates[0]
    missing = {
        field: getattr(data, field)
        for field in CONTACT_FIELDS
        if getattr(data, field) is not None and not getattr(customer, field)
    }
    if missing:
        await port.update(Customer, customer.id, missing)
        logger.info("Completati i contatti del cliente %s: %s", customer.id, ", ".join(missing))
    else:
        logger.debug("Cliente esistente riutilizzato: %s", customer.id)
    return customer


class CustomerService:
    """
    Service per la gestione dei clienti.

    L'eliminazione di un cliente passa dal RepairService, in modo che le
    giacenze riservate sulle sue riparazioni vengano ripristinate.
    """

    def __init__(
        self,
        port: PersistencePort,
        repair_service: "RepairService",
        events: Optional[EventBus] = None,
    ) -> None:
        self.port = port
        self.repair_service = repair_service
        self.events = events if events is not None else repair_service.events

    # ------------------------------------------------------------
    # Lettura
    # ------------------------------------------------------------

    async def list_customers(self, search: Optional[str] = None) -> list[Customer]:
        """Clienti ordinati per nome, con ricerca opzionale sul nome."""
        filters = {}
        if search and search.strip():
            filters["name__ilike"] = f"%{search.strip()}%"
        return await self.port.query(Customer, order_by="name", **filters)

    async def get_customer(self, customer_id: uuid.UUID) -> Customer:
        return await self.port.get(Customer, customer_id)

    async def list_devices(self, customer_id: uuid.UUID) -> list[Device]:
        await self.port.get(Customer, customer_id)
        return await self.port.query(Device, order_by="created_at", customer_id=customer_id)

    # ------------------------------------------------------------
    # Scrittura
    # ------------------------------------------------------------

    async def create_customer(self, data: CustomerCreate) -> Customer:
        """
        Crea un cliente con gli eventuali dispositivi.

        Raises:
            BusinessValidationError: Nome vuoto o dispositivo senza marca/modello
        """
        validate_customer_data(data)
        for device in data.devices:
            validate_device_data(device)

        async with self.port.transaction():
            customer = await self.port.insert(
                Customer,
                data.model_dump(include={"name", *CONTACT_FIELDS}),
            )
            for device in data.devices:
                await self.port.insert(Device, {"customer": customer, **device.model_dump()})

        logger.info("Creato cliente %s con %d dispositivi", customer.id, len(data.devices))
        return customer

    async def add_device(self, customer_id: uuid.UUID, data: DeviceBase) -> Device:
        """Registra un nuovo dispositivo per il cliente."""
        validate_device_data(data)
        async with self.port.transaction():
            customer = await self.port.get(Customer, customer_id)
            device = await self.port.insert(Device, {"customer": customer, **data.model_dump()})

        logger.info("Registrato dispositivo %s per il cliente %s", device.id, customer_id)
        return device

    async def find_or_create(self, data: CustomerBase) -> Customer:
        async with self.port.transaction():
            return await find_or_create_customer(self.port, data)

    async def delete_customer(self, customer_id: uuid.UUID) -> None:
        """
        Elimina il cliente, i suoi dispositivi e le relative riparazioni.

        Ogni riparazione viene eliminata rilasciando i ricambi riservati;
        l'intera sequenza avviene in un'unica transazione.

        Raises:
            NotFoundError: Se il cliente non esiste
        """
        released = []
        async with self.port.transaction():
            await self.port.get(Customer, customer_id)
            devices = await self.port.query(Device, customer_id=customer_id)
            for device in devices:
                repairs = await self.port.query(RepairTicket, device_id=device.id)
                for repair in repairs:
                    released.extend(await self.repair_service.purge_repair(repair.id))
                await self.port.delete(Device, device.id)
            await self.port.delete(Customer, customer_id)

        logger.info(
            "Eliminato cliente %s (%d dispositivi, %d ricambi rilasciati)",
            customer_id,
            len(devices),
            len(released),
        )
        await self.events.publish_all(released)

"""
Tests per CustomerService: anagrafica, ricerca o creazione in
accettazione ed eliminazione a cascata con rilascio delle giacenze.
"""

import uuid

import pytest
from pydantic import ValidationError

from repairdesk.core.exceptions import BusinessValidationError, NotFoundError
from repairdesk.models import Customer, Device, InventoryItem, RepairPart, RepairTicket
from repairdesk.schemas.customer import CustomerBase, CustomerCreate, DeviceCreate


class TestCustomerSchemas:
    """Tests per la normalizzazione dei dati anagrafici."""

    def test_phone_is_normalized(self, customer_payload):
        """Test spazi rimossi dal telefono."""
        assert customer_payload.phone == "+393471234567"

    @pytest.mark.parametrize("phone", ["347-123.4567", " 347 123 4567 "])
    def test_phone_separators(self, phone):
        """Test trattini, punti e spazi."""
        assert CustomerBase(name="Anna", phone=phone).phone == "3471234567"

    def test_invalid_phone(self):
        """Test telefono con lettere."""
        with pytest.raises(ValidationError):
            CustomerBase(name="Anna", phone="347-ABC")

    def test_blank_contacts_become_none(self):
        """Test campi vuoti → None."""
        data = CustomerBase(name="  Anna Neri ", email="", city="  ", phone="")

        assert data.name == "Anna Neri"
        assert data.email is None
        assert data.city is None
        assert data.phone is None

    def test_invalid_email(self):
        """Test email non valida."""
        with pytest.raises(ValidationError):
            CustomerBase(name="Anna", email="non-una-email")


class TestCreateCustomer:
    """Tests per create_customer e add_device."""

    async def test_creates_customer_with_devices(self, customer_service, customer_payload):
        """Test cliente creato con i dispositivi."""
        customer = await customer_service.create_customer(customer_payload)

        devices = await customer_service.list_devices(customer.id)
        assert customer.name == "Giulia Bianchi"
        assert customer.email == "giulia.bianchi@officina.it"
        assert [(d.brand, d.model, d.serial_number) for d in devices] == [
            ("Samsung", "Galaxy S22", "RF8T1234")
        ]

    async def test_blank_name(self, customer_service, port):
        """Test nome vuoto: nessun cliente creato."""
        with pytest.raises(BusinessValidationError):
            await customer_service.create_customer(CustomerCreate(name="  "))

        assert await port.query(Customer) == []

    async def test_device_without_model(self, customer_service, port):
        """Test dispositivo senza modello: nulla viene scritto."""
        payload = CustomerCreate(name="Anna Neri", devices=[DeviceCreate(brand="Xiaomi")])

        with pytest.raises(BusinessValidationError) as exc_info:
            await customer_service.create_customer(payload)

        assert exc_info.value.extra["fields"] == ["device.model"]
        assert await port.query(Customer) == []

    async def test_add_device(self, customer_service, customer_payload):
        """Test secondo dispositivo registrato."""
        customer = await customer_service.create_customer(customer_payload)

        device = await customer_service.add_device(customer.id, DeviceCreate(brand="Apple", model="iPad Air"))

        assert device.customer_id == customer.id
        assert len(await customer_service.list_devices(customer.id)) == 2

    async def test_add_device_to_missing_customer(self, customer_service):
        """Test cliente inesistente."""
        with pytest.raises(NotFoundError):
            await customer_service.add_device(uuid.uuid4(), DeviceCreate(brand="Apple", model="iPad"))

    async def test_search_by_name(self, customer_service, customer_payload):
        """Test ricerca parziale case-insensitive."""
        await customer_service.create_customer(customer_payload)
        await customer_service.create_customer(CustomerCreate(name="Paolo Gialli"))

        result = await customer_service.list_customers(search="bianch")

        assert [c.name for c in result] == ["Giulia Bianchi"]
        assert len(await customer_service.list_customers()) == 2


class TestFindOrCreate:
    """Tests per la ricerca o creazione del cliente in accettazione."""

    async def test_creates_when_missing(self, customer_service, port):
        """Test nessun cliente con quel nome: creato."""
        customer = await customer_service.find_or_create(CustomerBase(name="Anna Neri", phone="3330001111"))

        assert customer.phone == "3330001111"
        assert len(await port.query(Customer)) == 1

    async def test_name_match_is_case_insensitive(self, customer_service, port):
        """Test stesso nome con maiuscole diverse: riutilizzato."""
        first = await customer_service.find_or_create(CustomerBase(name="Anna Neri"))

        second = await customer_service.find_or_create(CustomerBase(name="ANNA NERI"))

        assert second.id == first.id
        assert len(await port.query(Customer)) == 1

    async def test_missing_contacts_are_completed(self, customer_service):
        """Test telefono ed email aggiunti al cliente esistente senza contatti."""
        first = await customer_service.find_or_create(CustomerBase(name="Anna Neri"))

        second = await customer_service.find_or_create(
            CustomerBase(name="Anna Neri", phone="3330001111", email="anna@example.com")
        )

        assert second.id == first.id
        assert second.phone == "3330001111"
        assert second.email == "anna@example.com"

    async def test_existing_contacts_are_kept(self, customer_service):
        """Test contatti già presenti non sovrascritti."""
        first = await customer_service.find_or_create(
            CustomerBase(name="Anna Neri", phone="3330001111", city="Torino")
        )

        second = await customer_service.find_or_create(
            CustomerBase(name="Anna Neri", phone="3330001111", city="Roma")
        )

        assert second.id == first.id
        assert second.city == "Torino"

    async def test_homonym_with_same_phone_is_preferred(self, customer_service):
        """Test tra omonimi si sceglie quello con lo stesso telefono."""
        await customer_service.find_or_create(CustomerBase(name="Anna Neri", phone="3330001111"))
        target = await customer_service.find_or_create(CustomerBase(name="Anna Neri", phone="3330002222"))

        found = await customer_service.find_or_create(CustomerBase(name="anna neri", phone="333 000 2222"))

        assert found.id == target.id

    async def test_blank_name(self, customer_service):
        """Test nome vuoto."""
        with pytest.raises(BusinessValidationError):
            await customer_service.find_or_create(CustomerBase(name=""))


class TestDeleteCustomer:
    """Tests per delete_customer."""

    async def test_cascades_and_restores_stock(
        self, customer_service, repair_service, make_repair, make_item, port, published
    ):
        """Test eliminazione: riparazioni, ricambi e dispositivi rimossi, giacenze ripristinate."""
        first = await make_repair()
        second = await make_repair(brand="Samsung", model="Galaxy A52")
        other = await make_repair(name="Luca Verdi", phone="3470000000")
        item = await make_item(quantity=10)
        await repair_service.add_repair_part(first.id, item.id, 2)
        await repair_service.add_repair_part(second.id, item.id, 3)
        await repair_service.add_repair_part(other.id, item.id, 1)
        published.clear()

        await customer_service.delete_customer(first.device.customer_id)

        stock = await port.get(InventoryItem, item.id, for_update=True)
        assert stock.quantity == 9
        assert [r.id for r in await port.query(RepairTicket)] == [other.id]
        assert len(await port.query(RepairPart)) == 1
        assert len(await port.query(Device)) == 1
        assert [c.name for c in await port.query(Customer)] == ["Luca Verdi"]
        assert sorted(e.delta for e in published) == [2, 3]

    async def test_without_repairs(self, customer_service, customer_payload, port):
        """Test cliente con dispositivi ma senza riparazioni."""
        customer = await customer_service.create_customer(customer_payload)

        await customer_service.delete_customer(customer.id)

        assert await port.query(Customer) == []
        assert await port.query(Device) == []

    async def test_missing_customer(self, customer_service):
        """Test cliente inesistente."""
        with pytest.raises(NotFoundError):
            await customer_service.delete_customer(uuid.uuid4())

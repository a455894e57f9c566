"""
Tests per l'adattatore SQLAlchemy della porta di persistenza.
"""

import uuid

import pytest

from repairdesk.core.database import build_session_factory
from repairdesk.core.exceptions import NotFoundError, StorageError
from repairdesk.core.persistence import SqlAlchemyPersistence
from repairdesk.models import InventoryItem


async def add_item(port, name: str, quantity: int = 10) -> InventoryItem:
    async with port.transaction():
        return await port.insert(InventoryItem, {"name": name, "quantity": quantity})


class TestCrud:

    async def test_insert_and_get(self, port):
        """Test inserimento con id e timestamp generati."""
        item = await add_item(port, "Display")

        fetched = await port.get(InventoryItem, item.id)

        assert fetched.name == "Display"
        assert fetched.created_at is not None

    async def test_get_missing(self, port):
        """Test record inesistente: NotFoundError con entità e id."""
        missing_id = uuid.uuid4()

        with pytest.raises(NotFoundError) as exc_info:
            await port.get(InventoryItem, missing_id)

        assert exc_info.value.extra == {"entity": "InventoryItem", "id": str(missing_id)}

    async def test_update_and_delete(self, port):
        """Test aggiornamento ed eliminazione."""
        item = await add_item(port, "Display")

        async with port.transaction():
            await port.update(InventoryItem, item.id, {"name": "Display OLED"})
        assert (await port.get(InventoryItem, item.id)).name == "Display OLED"

        async with port.transaction():
            await port.delete(InventoryItem, item.id)
        with pytest.raises(NotFoundError):
            await port.get(InventoryItem, item.id)

    async def test_delete_missing(self, port):
        """Test eliminazione di un record inesistente."""
        with pytest.raises(NotFoundError):
            await port.delete(InventoryItem, uuid.uuid4())


class TestQuery:

    async def test_filters(self, port):
        """Test operatori di filtro."""
        await add_item(port, "Display iPhone", 2)
        await add_item(port, "Batteria iPhone", 8)
        await add_item(port, "Display Samsung", 0)

        def names(items):
            return sorted(i.name for i in items)

        assert names(await port.query(InventoryItem, quantity=8)) == ["Batteria iPhone"]
        assert names(await port.query(InventoryItem, quantity__ne=8)) == ["Display Samsung", "Display iPhone"]
        assert names(await port.query(InventoryItem, quantity__lte=2)) == ["Display Samsung", "Display iPhone"]
        assert names(await port.query(InventoryItem, quantity__in=[0, 8])) == ["Batteria iPhone", "Display Samsung"]
        assert names(await port.query(InventoryItem, name__ilike="%iphone%")) == ["Batteria iPhone", "Display iPhone"]
        assert names(await port.query(InventoryItem, name__iexact="DISPLAY IPHONE")) == ["Display iPhone"]
        assert await port.query(InventoryItem, description=None) != []

    async def test_order_by(self, port):
        """Test ordinamento crescente e decrescente."""
        await add_item(port, "B", 5)
        await add_item(port, "A", 1)
        await add_item(port, "C", 9)

        ascending = await port.query(InventoryItem, order_by="quantity")
        descending = await port.query(InventoryItem, order_by="-name")

        assert [i.name for i in ascending] == ["A", "B", "C"]
        assert [i.name for i in descending] == ["C", "B", "A"]

    async def test_unknown_operator(self, port):
        """Test suffisso di filtro non supportato."""
        with pytest.raises(ValueError):
            await port.query(InventoryItem, quantity__gt=1)


class TestIncrementAndTransactions:

    async def test_increment(self, port):
        """Test incremento e decremento atomici."""
        item = await add_item(port, "Display", 10)

        async with port.transaction():
            await port.increment_field(InventoryItem, item.id, "quantity", -4)
            await port.increment_field(InventoryItem, item.id, "quantity", 1)

        assert (await port.get(InventoryItem, item.id, for_update=True)).quantity == 7

    async def test_increment_missing(self, port):
        """Test incremento su record inesistente."""
        with pytest.raises(NotFoundError):
            await port.increment_field(InventoryItem, uuid.uuid4(), "quantity", 1)

    async def test_negative_stock_is_storage_error(self, port):
        """Test vincolo giacenza >= 0 violato: StorageError e rollback."""
        item = await add_item(port, "Display", 1)
        item_id = item.id

        with pytest.raises(StorageError):
            async with port.transaction():
                await port.increment_field(InventoryItem, item_id, "quantity", -2)

        assert (await port.get(InventoryItem, item_id, for_update=True)).quantity == 1

    async def test_exception_rolls_back(self, port):
        """Test eccezione nel blocco: nessuna scrittura."""
        with pytest.raises(RuntimeError):
            async with port.transaction():
                await port.insert(InventoryItem, {"name": "Display", "quantity": 1})
                raise RuntimeError("interrotto")

        assert await port.query(InventoryItem) == []

    async def test_nested_rollback_is_confined(self, port):
        """Test transazione annidata: annullato solo il savepoint."""
        item = await add_item(port, "Display", 10)
        item_id = item.id

        async with port.transaction():
            await port.increment_field(InventoryItem, item_id, "quantity", -1)
            with pytest.raises(RuntimeError):
                async with port.transaction():
                    await port.increment_field(InventoryItem, item_id, "quantity", -5)
                    raise RuntimeError("interrotto")

        assert (await port.get(InventoryItem, item_id, for_update=True)).quantity == 9

    async def test_write_after_read_is_committed(self, engine):
        """Test lettura prima del blocco: la scrittura viene confermata."""
        factory = build_session_factory(engine)
        async with factory() as db:
            item_id = (await add_item(SqlAlchemyPersistence(db), "Display", 10)).id

        async with factory() as db:
            port = SqlAlchemyPersistence(db)
            await port.get(InventoryItem, item_id)
            async with port.transaction():
                await port.increment_field(InventoryItem, item_id, "quantity", -3)

        async with factory() as db:
            stored = await SqlAlchemyPersistence(db).get(InventoryItem, item_id)

        assert stored.quantity == 7

    async def test_error_after_read_rolls_back(self, engine):
        """Test lettura prima del blocco ed eccezione: nessuna scrittura."""
        factory = build_session_factory(engine)
        async with factory() as db:
            item_id = (await add_item(SqlAlchemyPersistence(db), "Display", 10)).id

        async with factory() as db:
            port = SqlAlchemyPersistence(db)
            await port.query(InventoryItem)
            with pytest.raises(RuntimeError):
                async with port.transaction():
                    await port.increment_field(InventoryItem, item_id, "quantity", -3)
                    raise RuntimeError("interrotto")
            assert not db.in_transaction()

        async with factory() as db:
            stored = await SqlAlchemyPersistence(db).get(InventoryItem, item_id)

        assert stored.quantity == 10

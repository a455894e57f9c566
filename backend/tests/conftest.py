"""
Pytest configuration and fixtures per Repair Desk.

I test dei service e della porta di persistenza girano su un database
SQLite in memoria (aiosqlite) creato dai modelli; i test API usano
httpx.AsyncClient sull'app FastAPI con get_db sovrascritto.
"""

import os

# Prima di importare repairdesk: nessun database server nei test
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("APP_ENV", "testing")

from decimal import Decimal
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from repairdesk.core.database import build_session_factory, enable_sqlite_savepoints, get_db
from repairdesk.core.events import DomainEvent, EventBus
from repairdesk.core.persistence import SqlAlchemyPersistence
from repairdesk.models import Base
from repairdesk.schemas.customer import CustomerCreate, DeviceCreate
from repairdesk.schemas.inventory import InventoryItemCreate
from repairdesk.schemas.repair import CustomerData, DeviceData, RepairCreate
from repairdesk.services.customer_service import CustomerService
from repairdesk.services.inventory_service import InventoryService
from repairdesk.services.repair_service import RepairService


# ============================================================
# Fixtures Database
# ============================================================


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Engine SQLite in memoria condiviso (StaticPool) con schema creato dai modelli."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Sessione con le stesse opzioni dell'applicazione."""
    factory = build_session_factory(engine)
    async with factory() as db:
        yield db


@pytest.fixture
def port(session) -> SqlAlchemyPersistence:
    return SqlAlchemyPersistence(session)


# ============================================================
# Fixtures Eventi
# ============================================================


@pytest.fixture
def published() -> list:
    """Eventi pubblicati durante il test, in ordine."""
    return []


@pytest.fixture
def event_bus(published) -> EventBus:
    bus = EventBus()
    bus.subscribe(DomainEvent, published.append)
    return bus


# ============================================================
# Fixtures Service
# ============================================================


@pytest.fixture
def repair_service(port, event_bus) -> RepairService:
    return RepairService(port, event_bus)


@pytest.fixture
def inventory_service(port, event_bus) -> InventoryService:
    return InventoryService(port, event_bus)


@pytest.fixture
def customer_service(port, repair_service) -> CustomerService:
    return CustomerService(port, repair_service)


# ============================================================
# Factory dati di test
# ============================================================


def build_repair_payload(
    name: str = "Mario Rossi",
    phone: str = "3331234567",
    brand: str = "Apple",
    model: str = "iPhone 13",
    description: str = "Schermo rotto",
    estimated_cost: Decimal = Decimal("89.90"),
    **extra,
) -> RepairCreate:
    """Dati di accettazione di una riparazione."""
    return RepairCreate(
        customer=CustomerData(name=name, phone=phone),
        device=DeviceData(brand=brand, model=model),
        description=description,
        estimated_cost=estimated_cost,
        **extra,
    )


@pytest.fixture
def repair_payload():
    return build_repair_payload


@pytest.fixture
def make_item(inventory_service):
    """Crea un articolo di magazzino con la giacenza indicata."""

    async def _make(name: str = "Display iPhone 13", quantity: int = 10, price: str = "59.90"):
        return await inventory_service.create_item(
            InventoryItemCreate(name=name, quantity=quantity, price=Decimal(price))
        )

    return _make


@pytest.fixture
def make_repair(repair_service):
    """Accetta una riparazione con dati di default."""

    async def _make(**kwargs):
        return await repair_service.create_repair(build_repair_payload(**kwargs))

    return _make


@pytest.fixture
def customer_payload():
    return CustomerCreate(
        name="Giulia Bianchi",
        email="giulia.bianchi@officina.it",
        phone="+39 347 1234567",
        city="Milano",
        devices=[DeviceCreate(brand="Samsung", model="Galaxy S22", serial_number="RF8T1234")],
    )


# ============================================================
# Fixtures API
# ============================================================


@pytest.fixture
async def client(engine) -> AsyncGenerator[AsyncClient, None]:
    """Client HTTP sull'app con il database di test."""
    from repairdesk.main import app

    factory = build_session_factory(engine)

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as db:
            yield db

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()

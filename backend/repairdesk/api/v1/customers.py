"""
Router FastAPI per i Clienti
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)

Definisce gli endpoint API per anagrafica clienti e dispositivi.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from repairdesk.core.deps import get_customer_service
from repairdesk.schemas.customer import (
    CustomerCreate,
    CustomerDetail,
    CustomerList,
    CustomerRead,
    DeviceCreate,
    DeviceRead,
)
from repairdesk.services.customer_service import CustomerService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/customers",
    tags=["Clienti"],
)


@router.get(
    "/",
    name="customers_list",
    summary="Lista clienti",
    response_model=CustomerList,
)
async def list_customers(
    search: Optional[str] = Query(None, description="Ricerca per nome"),
    service: CustomerService = Depends(get_customer_service),
) -> CustomerList:
    customers = await service.list_customers(search)
    return CustomerList(
        items=[CustomerRead.model_validate(c) for c in customers],
        total=len(customers),
    )


@router.post(
    "/",
    name="customer_create",
    summary="Crea cliente",
    description="Crea un cliente con gli eventuali dispositivi.",
    response_model=CustomerDetail,
    status_code=status.HTTP_201_CREATED,
)
async def create_customer(
    data: CustomerCreate,
    service: CustomerService = Depends(get_customer_service),
) -> CustomerDetail:
    customer = await service.create_customer(data)
    devices = await service.list_devices(customer.id)
    return _detail(customer, devices)


@router.get(
    "/{customer_id}",
    name="customer_detail",
    summary="Dettaglio cliente",
    response_model=CustomerDetail,
)
async def get_customer(
    customer_id: uuid.UUID,
    service: CustomerService = Depends(get_customer_service),
) -> CustomerDetail:
    customer = await service.get_customer(customer_id)
    devices = await service.list_devices(customer_id)
    return _detail(customer, devices)


@router.delete(
    "/{customer_id}",
    name="customer_delete",
    summary="Elimina cliente",
    description="Elimina cliente, dispositivi e riparazioni ripristinando le giacenze riservate.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_customer(
    customer_id: uuid.UUID,
    service: CustomerService = Depends(get_customer_service),
) -> None:
    await service.delete_customer(customer_id)


@router.post(
    "/{customer_id}/devices",
    name="customer_device_add",
    summary="Registra dispositivo",
    response_model=DeviceRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_device(
    customer_id: uuid.UUID,
    data: DeviceCreate,
    service: CustomerService = Depends(get_customer_service),
) -> DeviceRead:
    device = await service.add_device(customer_id, data)
    return DeviceRead.model_validate(device)


def _detail(customer, devices) -> CustomerDetail:
    return CustomerDetail(
        **CustomerRead.model_validate(customer).model_dump(),
        devices=[DeviceRead.model_validate(d) for d in devices],
    )

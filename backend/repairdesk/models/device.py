"""
Modello SQLAlchemy per i Dispositivi
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)
"""


from __future__ import annotations
import uuid
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repairdesk.models import Base
from repairdesk.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from repairdesk.models.customer import Customer


class Device(Base, UUIDMixin, TimestampMixin):
    """
    Modello per i dispositivi consegnati in laboratorio.

    Attributes:
        id: UUID primary key, generato automaticamente
        customer_id: UUID del cliente proprietario
        brand: Marca (obbligatoria)
        model: Modello (obbligatorio)
        serial_number: Numero di serie / IMEI
        condition: Stato estetico all'accettazione

    Relationships:
        customer: Cliente proprietario
    """

    __tablename__ = "devices"

    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="UUID del cliente proprietario",
    )

    brand: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Marca del dispositivo",
    )

    model: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Modello del dispositivo",
    )

    serial_number: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        index=True,
        doc="Numero di serie o IMEI",
    )

    condition: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Condizioni del dispositivo all'accettazione",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    customer: Mapped["Customer"] = relationship(
        "Customer",
        lazy="joined",
        doc="Cliente proprietario",
    )

    def __repr__(self) -> str:
        return f"<Device(id={self.id}, brand={self.brand!r}, model={self.model!r})>"

"""
Modelli SQLAlchemy per le Riparazioni
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)

Contiene:
- RepairTicket: Scheda di riparazione
- RepairPart: Ricambio di magazzino riservato su una riparazione
"""


from __future__ import annotations
import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repairdesk.models import Base
from repairdesk.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from repairdesk.models.device import Device
    from repairdesk.models.inventory import InventoryItem


# Gli stati sono definiti in repairdesk.schemas.repair.RepairStatus


class RepairTicket(Base, UUIDMixin, TimestampMixin):
    """
    Modello per le schede di riparazione.

    Attributes:
        id: UUID primary key, generato automaticamente
        device_id: UUID del dispositivo in riparazione
        status: Stato corrente (pending, in_progress, completed, delivered, cancelled, archived)
        description: Descrizione del guasto / note di lavorazione
        estimated_cost: Preventivo (prezzo TTC calcolato)
        completed_at: Data/ora di completamento
        archived_at: Data/ora di consegna o archiviazione
        diagnostics: Scheda diagnostica (documento JSON opaco)
        cancel_reason: Motivo dell'annullamento

    Relationships:
        device: Dispositivo (e, tramite esso, il cliente)

    States:
        pending → in_progress → completed → delivered
        cancelled / archived raggiungibili da qualsiasi stato
    """

    __tablename__ = "repair_tickets"

    device_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("devices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="UUID del dispositivo in riparazione",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        doc="Stato corrente della riparazione",
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Descrizione del guasto",
    )

    estimated_cost: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0"),
        doc="Costo stimato (prezzo di vendita TTC)",
    )

    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Data/ora completamento",
    )

    archived_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Data/ora consegna o archiviazione",
    )

    diagnostics: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
        doc="Scheda diagnostica",
    )

    cancel_reason: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Motivo dell'annullamento",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    device: Mapped["Device"] = relationship(
        "Device",
        lazy="joined",
        doc="Dispositivo in riparazione",
    )

    __table_args__ = (
        Index("ix_repair_tickets_status_created", "status", "created_at"),
        CheckConstraint(
            "status IN ('pending', 'in_progress', 'completed', 'delivered', 'cancelled', 'archived')",
            name="ck_repair_tickets_status",
        ),
        CheckConstraint(
            "estimated_cost >= 0",
            name="ck_repair_tickets_estimated_cost",
        ),
    )

    def __repr__(self) -> str:
        return f"<RepairTicket(id={self.id}, status={self.status}, device_id={self.device_id})>"


class RepairPart(Base, UUIDMixin, TimestampMixin):
    """
    Modello per i ricambi riservati su una riparazione.

    Ogni riga corrisponde a una riserva di magazzino: la giacenza
    dell'articolo è già stata scalata della quantità indicata e
    va ripristinata quando la riga viene eliminata.

    Attributes:
        repair_id: UUID della riparazione
        inventory_item_id: UUID dell'articolo di magazzino
        quantity: Quantità riservata (> 0)
    """

    __tablename__ = "repair_parts"

    repair_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("repair_tickets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="UUID della riparazione",
    )

    inventory_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("inventory_items.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        doc="UUID dell'articolo di magazzino",
    )

    quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        doc="Quantità riservata",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    inventory_item: Mapped["InventoryItem"] = relationship(
        "InventoryItem",
        lazy="joined",
        doc="Articolo di magazzino riservato",
    )

    __table_args__ = (
        CheckConstraint(
            "quantity > 0",
            name="ck_repair_parts_quantity",
        ),
    )

    def __repr__(self) -> str:
        return f"RepairPart(repair_id={self.repair_id}, inventory_item_id={self.inventory_item_id}, quantity={self.quantity})"

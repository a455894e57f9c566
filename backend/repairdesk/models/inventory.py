"""
Modello SQLAlchemy per il Magazzino
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)
"""


from __future__ import annotations
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from repairdesk.core.config import settings
from repairdesk.models import Base
from repairdesk.models.mixins import TimestampMixin, UUIDMixin


class InventoryItem(Base, UUIDMixin, TimestampMixin):
    """
    Modello per gli articoli di magazzino (ricambi).

    Attributes:
        id: UUID primary key, generato automaticamente
        name: Nome dell'articolo
        description: Descrizione
        quantity: Giacenza attuale (mai negativa)
        price: Prezzo di vendita (opzionale)

    Le variazioni di giacenza dovute alle riparazioni avvengono tramite
    UPDATE atomici (quantity = quantity + delta), mai per lettura/scrittura.
    """

    __tablename__ = "inventory_items"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        doc="Nome dell'articolo",
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Descrizione dell'articolo",
    )

    quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Giacenza attuale",
    )

    price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        doc="Prezzo di vendita",
    )

    __table_args__ = (
        CheckConstraint(
            "quantity >= 0",
            name="ck_inventory_items_quantity",
        ),
    )

    @property
    def is_low_stock(self) -> bool:
        """True se la giacenza è pari o inferiore alla soglia configurata."""
        return self.quantity <= settings.low_stock_threshold

    def __repr__(self) -> str:
        return f"InventoryItem(name={self.name!r}, quantity={self.quantity})"

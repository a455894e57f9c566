"""
Modello SQLAlchemy per i Clienti
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)
"""


from __future__ import annotations
from typing import Optional

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from repairdesk.models import Base
from repairdesk.models.mixins import TimestampMixin, UUIDMixin


class Customer(Base, UUIDMixin, TimestampMixin):
    """
    Modello per l'anagrafica clienti.

    Attributes:
        id: UUID primary key, generato automaticamente
        name: Nome e cognome o ragione sociale (obbligatorio)
        email: Indirizzo email
        phone: Numero di telefono
        address: Indirizzo
        city: Città
        postal_code: CAP
        country: Nazione
    """

    __tablename__ = "customers"

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        doc="Nome del cliente",
    )

    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Indirizzo email",
    )

    phone: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        doc="Numero di telefono",
    )

    address: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Indirizzo",
    )

    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    postal_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    __table_args__ = (
        Index("ix_customers_name", "name"),
    )

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, name={self.name!r})>"

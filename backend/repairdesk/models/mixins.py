"""
Mixin SQLAlchemy per modelli
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)

Colonne comuni a tutte le tabelle: chiave UUID e timestamp di
creazione/ultima modifica.
"""

import datetime
import uuid

from sqlalchemy import DateTime, Uuid, event
from sqlalchemy.orm import Mapped, Session, mapped_column
from sqlalchemy.sql import func


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class UUIDMixin:
    """Chiave primaria UUID generata lato applicazione."""

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        doc="UUID primary key",
    )


class TimestampMixin:
    """
    Timestamp gestiti automaticamente.

    - created_at: impostato all'inserimento, mai modificato
    - updated_at: aggiornato dal listener before_flush a ogni modifica ORM
    """

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        doc="Data/ora di creazione del record",
    )

    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        doc="Data/ora ultimo aggiornamento del record",
    )


@event.listens_for(Session, "before_flush")
def touch_updated_at(session: Session, flush_context, instances) -> None:
    """
    Valorizza updated_at sugli oggetti modificati prima del flush.

    Gli UPDATE diretti (incrementi atomici di giacenza) non passano da qui.
    """
    now = utcnow()
    for obj in session.dirty:
        if isinstance(obj, TimestampMixin) and session.is_modified(obj, include_collections=False):
            obj.updated_at = now

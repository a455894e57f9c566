"""
Porta di Persistenza - accesso generico ai dati
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)

Definisce l'interfaccia (PersistencePort) usata dai service e
l'adattatore SQLAlchemy 2.0 async che la implementa.

I service non conoscono la sessione: ricevono la porta per
dependency injection e delimitano le operazioni composte con
`async with port.transaction():`.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncContextManager, AsyncIterator, Optional, Protocol, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from repairdesk.core.exceptions import NotFoundError, StorageError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")

# Suffissi supportati nei filtri di query()
_FILTER_OPERATORS = ("ne", "in", "ilike", "iexact", "lte")


class PersistencePort(Protocol):
    """
    Interfaccia di persistenza consumata dal core.

    `entity` è la classe del modello; i record restituiti sono istanze del modello.
    Tutti gli errori del backend vengono propagati come StorageError.
    """

    async def get(self, entity: type[ModelT], record_id: uuid.UUID, *, for_update: bool = False) -> ModelT:
        ...

    async def query(self, entity: type[ModelT], order_by: Optional[str] = None, **filters: Any) -> list[ModelT]:
        ...

    async def insert(self, entity: type[ModelT], fields: dict[str, Any]) -> ModelT:
        ...

    async def update(self, entity: type[Any], record_id: uuid.UUID, fields: dict[str, Any]) -> None:
        ...

    async def delete(self, entity: type[Any], record_id: uuid.UUID) -> None:
        ...

    async def increment_field(self, entity: type[Any], record_id: uuid.UUID, field: str, delta: int) -> None:
        ...

    def transaction(self) -> AsyncContextManager[None]:
        ...


class SqlAlchemyPersistence:
    """
    Implementazione della PersistencePort su AsyncSession.

    - get/update/delete sollevano NotFoundError se il record non esiste
    - increment_field esegue un UPDATE atomico lato database
    - transaction() esegue il commit a fine blocco; dentro un altro
      transaction() della stessa porta usa un SAVEPOINT
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        # Blocchi transaction() attivi su questa porta
        self._depth = 0

    @property
    def session(self) -> AsyncSession:
        return self._session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """
        Delimita un'operazione composta.

        - blocco esterno: commit all'uscita, rollback su qualsiasi eccezione;
          una transazione aperta implicitamente da letture precedenti
          (autobegin) viene inclusa e confermata
        - blocco annidato: SAVEPOINT, l'annullamento resta confinato al blocco
        """
        self._depth += 1
        try:
            if self._depth > 1:
                async with self._session.begin_nested():
                    yield
            elif self._session.in_transaction():
                try:
                    yield
                    await self._session.commit()
                except Exception:
                    await self._session.rollback()
                    raise
            else:
                async with self._session.begin():
                    yield
        except SQLAlchemyError as exc:
            logger.error("Transazione annullata per errore del database: %s", exc)
            raise StorageError(f"Transazione fallita: {exc}") from exc
        finally:
            self._depth -= 1

    async def get(self, entity: type[ModelT], record_id: uuid.UUID, *, for_update: bool = False) -> ModelT:
        """
        Recupera un record per ID.

        Args:
            entity: Classe del modello
            record_id: UUID del record
            for_update: Se True blocca la riga (SELECT ... FOR UPDATE) e ricarica
                i valori anche se l'oggetto è già in sessione

        Raises:
            NotFoundError: Se il record non esiste
            StorageError: Se il database fallisce
        """
        query = select(entity).where(entity.id == record_id)
        if for_update:
            query = query.with_for_update(of=entity).execution_options(populate_existing=True)

        try:
            result = await self._session.execute(query)
            record = result.unique().scalar_one_or_none()
        except SQLAlchemyError as exc:
            logger.error("Errore lettura %s %s: %s", entity.__name__, record_id, exc)
            raise StorageError(f"Errore lettura {entity.__name__}: {exc}") from exc

        if record is None:
            logger.warning("%s non trovato: %s", entity.__name__, record_id)
            raise NotFoundError(
                f"{entity.__name__} con ID {record_id} non trovato",
                extra={"entity": entity.__name__, "id": str(record_id)},
            )
        return record

    async def query(self, entity: type[ModelT], order_by: Optional[str] = None, **filters: Any) -> list[ModelT]:
        """
        Recupera i record che soddisfano i filtri.

        I filtri sono per uguaglianza; i suffissi `__ne`, `__in`,
        `__ilike`, `__iexact` e `__lte` selezionano l'operatore corrispondente.
        `order_by` accetta il nome di una colonna, con prefisso `-` per
        l'ordine decrescente.
        """
        query = select(entity)

        for key, value in filters.items():
            field, _, operator = key.partition("__")
            column = getattr(entity, field)
            if not operator:
                query = query.where(column.is_(None) if value is None else column == value)
            elif operator == "ne":
                query = query.where(column != value)
            elif operator == "in":
                query = query.where(column.in_(list(value)))
            elif operator == "ilike":
                query = query.where(column.ilike(value))
            elif operator == "iexact":
                query = query.where(func.lower(column) == value.lower())
            elif operator == "lte":
                query = query.where(column <= value)
            else:
                raise ValueError(
                    f"Operatore di filtro non supportato: {operator} (ammessi: {_FILTER_OPERATORS})"
                )

        if order_by:
            descending = order_by.startswith("-")
            column = getattr(entity, order_by.lstrip("-"))
            query = query.order_by(column.desc() if descending else column.asc())

        try:
            result = await self._session.execute(query)
            records = list(result.unique().scalars().all())
        except SQLAlchemyError as exc:
            logger.error("Errore query %s: %s", entity.__name__, exc)
            raise StorageError(f"Errore lettura {entity.__name__}: {exc}") from exc

        logger.debug("Recuperati %d record %s", len(records), entity.__name__)
        return records

    async def insert(self, entity: type[ModelT], fields: dict[str, Any]) -> ModelT:
        """Crea un record e lo restituisce con i valori generati dal database."""
        record = entity(**fields)
        self._session.add(record)
        try:
            await self._session.flush()
            await self._session.refresh(record)
        except SQLAlchemyError as exc:
            logger.error("Errore inserimento %s: %s", entity.__name__, exc)
            raise StorageError(f"Errore inserimento {entity.__name__}: {exc}") from exc

        logger.debug("Inserito %s %s", entity.__name__, record.id)
        return record

    async def update(self, entity: type[Any], record_id: uuid.UUID, fields: dict[str, Any]) -> None:
        """Aggiorna i campi indicati di un record esistente."""
        record = await self.get(entity, record_id)
        for field, value in fields.items():
            setattr(record, field, value)
        try:
            await self._session.flush()
        except SQLAlchemyError as exc:
            logger.error("Errore aggiornamento %s %s: %s", entity.__name__, record_id, exc)
            raise StorageError(f"Errore aggiornamento {entity.__name__}: {exc}") from exc

    async def delete(self, entity: type[Any], record_id: uuid.UUID) -> None:
        """Elimina un record esistente."""
        record = await self.get(entity, record_id)
        try:
            await self._session.delete(record)
            await self._session.flush()
        except SQLAlchemyError as exc:
            logger.error("Errore eliminazione %s %s: %s", entity.__name__, record_id, exc)
            raise StorageError(f"Errore eliminazione {entity.__name__}: {exc}") from exc

    async def increment_field(self, entity: type[Any], record_id: uuid.UUID, field: str, delta: int) -> None:
        """
        Incrementa (o decrementa, con delta negativo) un campo numerico.

        L'operazione è un singolo UPDATE `field = field + delta`, atomico
        lato database; l'istanza eventualmente presente in sessione
        viene sincronizzata.
        """
        column = getattr(entity, field)
        statement = (
            update(entity)
            .where(entity.id == record_id)
            .values({field: column + delta})
            .execution_options(synchronize_session="evaluate")
        )
        try:
            result = await self._session.execute(statement)
        except SQLAlchemyError as exc:
            logger.error("Errore incremento %s.%s %s: %s", entity.__name__, field, record_id, exc)
            raise StorageError(f"Errore aggiornamento {entity.__name__}.{field}: {exc}") from exc

        if result.rowcount == 0:
            logger.warning("%s non trovato per incremento: %s", entity.__name__, record_id)
            raise NotFoundError(f"{entity.__name__} con ID {record_id} non trovato")

        logger.debug("Incrementato %s.%s di %s per %s", entity.__name__, field, delta, record_id)

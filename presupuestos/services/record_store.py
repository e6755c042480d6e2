"""
Record Store
Row-level access to the ``budgets`` and ``attachments`` tables.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.future import select

from presupuestos.exceptions import NotFoundError
from presupuestos.logging_config import get_logger
from presupuestos.models.attachment import Attachment
from presupuestos.models.budget import Budget

logger = get_logger(__name__)

BUDGETS = "budgets"
ATTACHMENTS = "attachments"

Row = Dict[str, Any]


class RecordStore(ABC):
    """
    Interface for the relational store holding budgets and attachments.

    Rows are plain dicts keyed by column name. Implementations raise
    ``NotFoundError`` when an update or delete matches no row and let any
    other backend error propagate unchanged.
    """

    # Whether deleting a budget row also removes its attachment rows
    cascades_deletes: bool = True

    @abstractmethod
    async def insert(self, table: str, row: Row) -> Row:
        """Insert a row and return it with its generated id and timestamps."""
        pass

    @abstractmethod
    async def select(
        self,
        table: str,
        filters: Optional[Row] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Row]:
        """Return the rows matching all ``filters`` (equality), optionally ordered."""
        pass

    @abstractmethod
    async def update(self, table: str, row_id: str, fields: Row) -> None:
        pass

    @abstractmethod
    async def delete(self, table: str, row_id: str) -> None:
        pass


class SqlRecordStore(RecordStore):
    """RecordStore on top of SQLAlchemy async sessions"""

    cascades_deletes = True

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory
        self.models = {
            BUDGETS: Budget,
            ATTACHMENTS: Attachment,
        }

    def _model(self, table: str):
        try:
            return self.models[table]
        except KeyError:
            raise ValueError(f"Unknown table: {table}")

    @staticmethod
    def _to_row(obj) -> Row:
        return {column.key: getattr(obj, column.key) for column in obj.__table__.columns}

    async def insert(self, table: str, row: Row) -> Row:
        model = self._model(table)
        async with self.session_factory() as session:
            obj = model(**row)
            session.add(obj)
            await session.commit()
            await session.refresh(obj)
            logger.debug(f"Inserted {table} row {obj.id}")
            return self._to_row(obj)

    async def select(
        self,
        table: str,
        filters: Optional[Row] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Row]:
        model = self._model(table)
        query = select(model).filter_by(**(filters or {}))
        if order_by:
            column = getattr(model, order_by)
            query = query.order_by(column.desc() if descending else column.asc())

        async with self.session_factory() as session:
            result = await session.execute(query)
            return [self._to_row(obj) for obj in result.scalars().all()]

    async def update(self, table: str, row_id: str, fields: Row) -> None:
        model = self._model(table)
        async with self.session_factory() as session:
            obj = await session.get(model, row_id)
            if obj is None:
                raise NotFoundError(f"{table} row {row_id} not found")

            for field, value in fields.items():
                setattr(obj, field, value)
            await session.commit()
            logger.debug(f"Updated {table} row {row_id}")

    async def delete(self, table: str, row_id: str) -> None:
        model = self._model(table)
        async with self.session_factory() as session:
            obj = await session.get(model, row_id)
            if obj is None:
                raise NotFoundError(f"{table} row {row_id} not found")

            await session.delete(obj)
            await session.commit()
            logger.debug(f"Deleted {table} row {row_id}")

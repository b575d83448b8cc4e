"""Shared DAO plumbing: primary-key access, partial updates, offset pages."""

import math
import uuid
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gitsummary.core.database import Base

ModelT = TypeVar("ModelT", bound=Base)

PAGE_SIZE_MIN = 1
PAGE_SIZE_MAX = 200
PAGE_SIZE_DEFAULT = 50

_READ_ONLY_COLUMNS = frozenset({"id", "created_at", "updated_at"})


@dataclass
class Page(Generic[ModelT]):
    """One page of an offset-paginated listing (commits API)."""

    data: list[ModelT]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    @property
    def has_more(self) -> bool:
        return self.page < self.total_pages


def clamp_page_size(page_size: int) -> int:
    return max(PAGE_SIZE_MIN, min(page_size, PAGE_SIZE_MAX))


class BaseDAO(Generic[ModelT]):
    """Stateless table access; every method takes the caller's session.

    Subclasses set ``model``. Nothing here commits: transaction scope
    belongs to the API request or the engine that opened the session.
    """

    model: type[ModelT]

    @staticmethod
    def _require_pk(pk: uuid.UUID) -> None:
        if pk is None:
            raise ValueError("pk must not be None")

    async def get_by_id(self, session: AsyncSession, pk: uuid.UUID) -> ModelT | None:
        self._require_pk(pk)
        return await session.get(self.model, pk)

    async def create(self, session: AsyncSession, **values: Any) -> ModelT:
        """Insert one row and return it with server defaults loaded."""
        obj = self.model(**values)
        session.add(obj)
        await session.flush()
        await session.refresh(obj)
        return obj

    async def update(self, session: AsyncSession, pk: uuid.UUID, **values: Any) -> ModelT | None:
        """Set *values* on the row *pk*; returns None when it does not exist.

        Raises AttributeError for unknown or read-only columns.
        """
        self._require_pk(pk)
        columns = self.model.__mapper__.column_attrs.keys()
        bad = sorted(k for k in values if k in _READ_ONLY_COLUMNS or k not in columns)
        if bad:
            raise AttributeError(f"cannot update {self.model.__name__} column(s): {bad}")

        obj = await session.get(self.model, pk)
        if obj is None:
            return None
        for key, val in values.items():
            setattr(obj, key, val)
        await session.flush()
        await session.refresh(obj)
        return obj

    async def list_recent(self, session: AsyncSession, limit: int = 20) -> list[ModelT]:
        """Newest ``created_at`` first (job and export listings)."""
        table = self.model.__table__
        stmt = (
            select(self.model)
            .order_by(table.c.created_at.desc(), table.c.id.desc())
            .limit(clamp_page_size(limit))
        )
        return list((await session.scalars(stmt)).all())

    async def paginate(
        self,
        session: AsyncSession,
        query: Select,
        page: int = 1,
        page_size: int = PAGE_SIZE_DEFAULT,
    ) -> Page[ModelT]:
        """Slice an already-ordered *query*; the total ignores its ORDER BY."""
        page = max(1, page)
        page_size = clamp_page_size(page_size)

        count_stmt = select(func.count()).select_from(query.order_by(None).subquery())
        total = (await session.execute(count_stmt)).scalar_one()

        rows = await session.scalars(query.offset((page - 1) * page_size).limit(page_size))
        return Page(data=list(rows.all()), total=total, page=page, page_size=page_size)

"""Generic SQLAlchemy-backed entity store.

Repositories only read and stage writes on the current session; they never
commit. The service layer owns the transaction boundary (see
:func:`database.atomic`).
"""
from __future__ import annotations

from typing import Any, ClassVar, Generic, Iterable, Mapping, Sequence, TypeVar

from sqlalchemy import Select, delete, func, select
from sqlalchemy.orm import Session

from database import db
from utils.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, paginate

ModelT = TypeVar("ModelT", bound=db.Model)


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so ``value`` matches literally (use ``escape="\\\\"``)."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class Repository(Generic[ModelT]):
    """Create/read/update/delete for a single model class."""

    model: ClassVar[type]
    # Columns that update() is allowed to touch.
    updatable_fields: ClassVar[frozenset[str]] = frozenset()

    def __init__(self, session: Session | None = None):
        self._session = session

    @property
    def session(self) -> Session:
        return self._session if self._session is not None else db.session

    def default_order(self) -> Sequence[Any]:
        """Ordering applied by :meth:`find_many`."""
        return (self.model.created_at.desc(), self.model.id.desc())

    def create(self, **fields: Any) -> ModelT:
        instance = self.model(**fields)
        self.session.add(instance)
        self.session.flush()
        return instance

    def find_by_id(self, entity_id: int) -> ModelT | None:
        return self.session.get(self.model, entity_id)

    def find_many(
        self,
        criteria: Iterable[Any] = (),
        *,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
        statement: Select | None = None,
    ) -> tuple[list[ModelT], int]:
        """Return one page of rows matching every criterion, and the total."""
        stmt = statement if statement is not None else select(self.model)
        for criterion in criteria:
            stmt = stmt.where(criterion)

        total = self.session.scalar(select(func.count()).select_from(stmt.order_by(None).subquery()))
        skip, take = paginate(page, limit)
        rows = self.session.scalars(stmt.order_by(*self.default_order()).offset(skip).limit(take)).all()
        return list(rows), int(total or 0)

    def update(self, entity_id: int, fields: Mapping[str, Any]) -> ModelT | None:
        """Apply only the supplied fields; an explicit ``None`` clears a column."""
        instance = self.find_by_id(entity_id)
        if instance is None:
            return None
        unknown = set(fields) - self.updatable_fields
        if unknown:
            raise ValueError(f"{self.model.__name__} fields cannot be updated: {', '.join(sorted(unknown))}")
        for key, value in fields.items():
            setattr(instance, key, value)
        self.session.flush()
        return instance

    def delete(self, entity_id: int) -> bool:
        """Remove the row; returns False when nothing was deleted."""
        result = self.session.execute(delete(self.model).where(self.model.id == entity_id))
        return (result.rowcount or 0) > 0


__all__ = ["Repository", "escape_like"]

# backend/repositories/base.py
from contextlib import contextmanager
from typing import Any, Generic, List, Optional, TypeVar

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import transaction
from repositories.codec import Partial, RowCodec
from repositories.errors import ConflictError, is_unique_violation

T = TypeVar("T")


@contextmanager
def write_scope(db: Session):
    """Transaction scope for writes; unique-key violations surface as ConflictError."""
    try:
        with transaction(db):
            yield db
    except IntegrityError as exc:
        if is_unique_violation(exc):
            raise ConflictError(str(exc.orig)) from exc
        raise


def upsert_insert(db: Session, table: sa.Table):
    """INSERT construct of the session's dialect, exposing ON CONFLICT clauses."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise ValueError(f"ON CONFLICT inserts are not supported on {dialect!r}")


class RecordStore(Generic[T]):
    """
    Entity-agnostic CRUD over a single table.

    The store knows nothing about the entity beyond what it is given: the
    table, the name of its primary key column and the codec that turns rows
    into entities. Repositories hold one as ``records`` and talk to the
    session directly for anything that is not plain single-table CRUD.
    """

    def __init__(self, db: Session, table: sa.Table, primary_key: str, codec: RowCodec):
        self.db = db
        self.table = table
        self.pk = table.c[primary_key]
        self.codec = codec

    def _conditions(self, predicates: dict) -> list:
        unknown = set(predicates) - self.codec.columns
        if unknown:
            raise ValueError(f"{self.table.name}: cannot filter on unknown column(s) {sorted(unknown)}")
        return [self.table.c[name] == value for name, value in predicates.items()]

    def _decode_all(self, stmt) -> List[T]:
        return [self.codec.decode(row) for row in self.db.execute(stmt).mappings()]

    def find_all(self) -> List[T]:
        return self._decode_all(sa.select(self.table).order_by(self.pk))

    def find_by_id(self, id: Any) -> Optional[T]:
        row = self.db.execute(sa.select(self.table).where(self.pk == id)).mappings().first()
        return self.codec.decode(row) if row is not None else None

    def find_by(self, **predicates) -> List[T]:
        stmt = sa.select(self.table).where(*self._conditions(predicates)).order_by(self.pk)
        return self._decode_all(stmt)

    def find_one_by(self, **predicates) -> Optional[T]:
        # "first row in storage order" is never what a caller wants
        if not predicates:
            raise ValueError(f"{self.table.name}: find_one_by() requires at least one predicate")
        stmt = sa.select(self.table).where(*self._conditions(predicates)).order_by(self.pk).limit(1)
        row = self.db.execute(stmt).mappings().first()
        return self.codec.decode(row) if row is not None else None

    def create(self, partial: Partial) -> T:
        values = self.codec.encode(partial)
        stmt = sa.insert(self.table).values(**values).returning(*self.table.c)
        with write_scope(self.db):
            row = self.db.execute(stmt).mappings().one()
        return self.codec.decode(row)

    def update(self, id: Any, partial: Partial) -> Optional[T]:
        values = self.codec.encode(partial)
        if not values:
            return self.find_by_id(id)

        stmt = sa.update(self.table).where(self.pk == id).values(**values).returning(*self.table.c)
        with write_scope(self.db):
            row = self.db.execute(stmt).mappings().first()
        return self.codec.decode(row) if row is not None else None

    def delete(self, id: Any) -> bool:
        with write_scope(self.db):
            deleted = self.db.execute(sa.delete(self.table).where(self.pk == id)).rowcount
        return deleted > 0

    def count(self, **predicates) -> int:
        stmt = sa.select(sa.func.count()).select_from(self.table).where(*self._conditions(predicates))
        return int(self.db.execute(stmt).scalar_one())

    def exists(self, id: Any) -> bool:
        stmt = sa.select(sa.literal(1)).select_from(self.table).where(self.pk == id).limit(1)
        return self.db.execute(stmt).first() is not None

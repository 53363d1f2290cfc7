# backend/repositories/items.py
from typing import Any, Iterable, List, Tuple

import sqlalchemy as sa
from sqlalchemy.orm import Session

from repositories.base import upsert_insert, write_scope
from repositories.codec import RowCodec, to_float, to_int
from repositories.product import PRODUCT_CODEC, product_t
from schemas.product import Product

# Product columns are selected under this prefix next to the item columns
_PRODUCT_PREFIX = "p_"


class LineItems:
    """
    Item rows of one parent kind (cart or order), keyed by (parent, product).

    ``parent_column`` names the column pointing at the parent row, e.g.
    ``cart_id``. Every item table has ``product_id`` and ``count``.
    """

    def __init__(self, db: Session, table: sa.Table, parent_column: str, codec: RowCodec):
        self.db = db
        self.table = table
        self.parent = table.c[parent_column]
        self.product_id = table.c["product_id"]
        self.count = table.c["count"]
        self.codec = codec

    def _item(self, parent_id: int, product_id: int):
        return sa.and_(self.parent == parent_id, self.product_id == product_id)

    def find_by_parent(self, parent_id: int) -> List[Any]:
        stmt = sa.select(self.table).where(self.parent == parent_id).order_by(self.product_id)
        return [self.codec.decode(row) for row in self.db.execute(stmt).mappings()]

    def find_with_products(self, parent_id: int) -> List[Tuple[Any, Product]]:
        """Items joined with their product, ordered by product name."""
        product_cols = [c.label(_PRODUCT_PREFIX + c.name) for c in product_t.c]
        stmt = (
            sa.select(*self.table.c, *product_cols)
            .join_from(self.table, product_t, self.product_id == product_t.c.id)
            .where(self.parent == parent_id)
            .order_by(product_t.c.name, product_t.c.id)
        )
        pairs = []
        for row in self.db.execute(stmt).mappings():
            product = PRODUCT_CODEC.decode({c.name: row[_PRODUCT_PREFIX + c.name] for c in product_t.c})
            pairs.append((self.codec.decode(row), product))
        return pairs

    def add(self, parent_id: int, product_id: int, count: int) -> bool:
        """Insert the item, or add ``count`` to the existing item's count."""
        stmt = upsert_insert(self.db, self.table).values(
            {self.parent.name: parent_id, "product_id": product_id, "count": count}
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[self.parent.name, "product_id"],
            set_={"count": self.count + stmt.excluded["count"]},
        )
        with write_scope(self.db):
            affected = self.db.execute(stmt).rowcount
        return affected > 0

    def insert_many(self, parent_id: int, lines: Iterable[Tuple[int, int]]) -> int:
        """Plain insert of (product_id, count) lines; a repeated product raises ConflictError."""
        rows = [
            {self.parent.name: parent_id, "product_id": product_id, "count": count}
            for product_id, count in lines
        ]
        if not rows:
            return 0
        with write_scope(self.db):
            self.db.execute(sa.insert(self.table), rows)
        return len(rows)

    def remove(self, parent_id: int, product_id: int) -> bool:
        with write_scope(self.db):
            deleted = self.db.execute(sa.delete(self.table).where(self._item(parent_id, product_id))).rowcount
        return deleted > 0

    def update_count(self, parent_id: int, product_id: int, count: int) -> bool:
        """Set an item's count; a count of zero or less removes the item."""
        if count <= 0:
            return self.remove(parent_id, product_id)

        stmt = sa.update(self.table).where(self._item(parent_id, product_id)).values(count=count)
        with write_scope(self.db):
            updated = self.db.execute(stmt).rowcount
        return updated > 0

    def clear(self, parent_id: int) -> int:
        """Delete every item of the parent; returns how many rows went away."""
        with write_scope(self.db):
            deleted = self.db.execute(sa.delete(self.table).where(self.parent == parent_id)).rowcount
        return deleted

    def take(self, parent_id: int) -> List[Tuple[int, int]]:
        """Delete every item of the parent and return the removed (product_id, count) pairs."""
        stmt = (
            sa.delete(self.table)
            .where(self.parent == parent_id)
            .returning(self.product_id, self.count)
        )
        with write_scope(self.db):
            rows = self.db.execute(stmt).all()
        return sorted((to_int(product_id), to_int(count)) for product_id, count in rows)

    def total(self, parent_id: int) -> float:
        """Sum of price x count; exactly 0 when there are no items."""
        stmt = (
            sa.select(sa.func.coalesce(sa.func.sum(product_t.c.price * self.count), 0))
            .select_from(self.table.join(product_t, self.product_id == product_t.c.id))
            .where(self.parent == parent_id)
        )
        return to_float(self.db.execute(stmt).scalar_one())

    def item_count(self, parent_id: int) -> int:
        stmt = sa.select(sa.func.coalesce(sa.func.sum(self.count), 0)).where(self.parent == parent_id)
        return to_int(self.db.execute(stmt).scalar_one())

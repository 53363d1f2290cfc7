# backend/repositories/product.py
import logging
from typing import Iterable, List, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Session

from models.product import Product as ProductModel, Ingredient as IngredientModel, ProductIngredient as ProductIngredientModel
from repositories.base import RecordStore, upsert_insert, write_scope
from repositories.codec import RowCodec, to_float, to_int, to_str
from schemas.product import Product, ProductWithIngredients

logger = logging.getLogger(__name__)

PRODUCT_CODEC = RowCodec(Product, {
    "id": to_int,
    "name": to_str,
    "price": to_float,
    "image": to_str,
    "rating": to_float,
})

product_t = ProductModel.__table__
ingredient_t = IngredientModel.__table__
link_t = ProductIngredientModel.__table__


def _has_ingredient_like(word: str):
    # EXISTS over this product's ingredients, on its own aliases so it correlates only on product
    link = link_t.alias()
    ingredient = ingredient_t.alias()
    return (
        sa.select(sa.literal(1))
        .select_from(link.join(ingredient, ingredient.c.id == link.c.ingredient_id))
        .where(
            link.c.product_id == product_t.c.id,
            ingredient.c.name.icontains(word, autoescape=True),
        )
        .exists()
    )


class ProductRepository:
    def __init__(self, db: Session):
        self.db = db
        self.records = RecordStore(db, product_t, "id", PRODUCT_CODEC)

    # ---- plain reads ----

    def find_by_name(self, fragment: str) -> List[Product]:
        """Products whose name contains ``fragment`` (case-insensitive), ordered by name."""
        stmt = (
            sa.select(product_t)
            .where(product_t.c.name.icontains(fragment, autoescape=True))
            .order_by(product_t.c.name, product_t.c.id)
        )
        return [PRODUCT_CODEC.decode(row) for row in self.db.execute(stmt).mappings()]

    def find_by_price_range(self, min_price: float, max_price: float) -> List[Product]:
        stmt = (
            sa.select(product_t)
            .where(product_t.c.price.between(min_price, max_price))
            .order_by(product_t.c.price, product_t.c.id)
        )
        return [PRODUCT_CODEC.decode(row) for row in self.db.execute(stmt).mappings()]

    def find_by_min_rating(self, min_rating: float) -> List[Product]:
        stmt = (
            sa.select(product_t)
            .where(product_t.c.rating >= min_rating)
            .order_by(product_t.c.rating.desc(), product_t.c.id)
        )
        return [PRODUCT_CODEC.decode(row) for row in self.db.execute(stmt).mappings()]

    # ---- reads with ingredient lists ----

    def _with_ingredients(self):
        # One row per (product, ingredient); products without ingredients yield a single NULL row
        return sa.select(*product_t.c, ingredient_t.c.name.label("ingredient_name")).select_from(
            product_t
            .outerjoin(link_t, link_t.c.product_id == product_t.c.id)
            .outerjoin(ingredient_t, ingredient_t.c.id == link_t.c.ingredient_id)
        )

    def _collect(self, rows: Iterable) -> List[ProductWithIngredients]:
        grouped = {}
        for row in rows:
            entry = grouped.get(row["id"])
            if entry is None:
                entry = grouped[row["id"]] = (PRODUCT_CODEC.decode(row), [])
            if row["ingredient_name"] is not None:
                entry[1].append(to_str(row["ingredient_name"]))
        return [
            ProductWithIngredients(**product.model_dump(), ingredients=names)
            for product, names in grouped.values()
        ]

    def find_all_with_ingredients(self) -> List[ProductWithIngredients]:
        stmt = self._with_ingredients().order_by(product_t.c.id, ingredient_t.c.name)
        return self._collect(self.db.execute(stmt).mappings())

    def find_by_id_with_ingredients(self, id: int) -> Optional[ProductWithIngredients]:
        stmt = self._with_ingredients().where(product_t.c.id == id).order_by(ingredient_t.c.name)
        found = self._collect(self.db.execute(stmt).mappings())
        return found[0] if found else None

    def search(self, phrase: str) -> List[ProductWithIngredients]:
        """
        Multi-word search over product names and ingredient names.

        The phrase is split on whitespace. A product matches when every word
        occurs in its name, or when every word occurs in the name of at least
        one of its ingredients (different words may hit different
        ingredients). Matching is case-insensitive substring matching and the
        words are escaped, so ``%`` and ``_`` match literally.

        An empty or blank phrase returns every product. Results are ordered by
        product name and carry their full ingredient list.
        """
        words = phrase.split()
        if not words:
            return self.find_all_with_ingredients()

        by_name = sa.and_(*[product_t.c.name.icontains(w, autoescape=True) for w in words])
        by_ingredients = sa.and_(*[_has_ingredient_like(w) for w in words])

        stmt = (
            self._with_ingredients()
            .where(sa.or_(by_name, by_ingredients))
            .order_by(product_t.c.name, product_t.c.id, ingredient_t.c.name)
        )
        found = self._collect(self.db.execute(stmt).mappings())
        logger.debug("Product search %r matched %d product(s)", phrase, len(found))
        return found

    # ---- writes ----

    def add_ingredient(self, product_id: int, ingredient_id: int) -> bool:
        """Link an ingredient; returns False if the link already existed."""
        stmt = (
            upsert_insert(self.db, link_t)
            .values(product_id=product_id, ingredient_id=ingredient_id)
            .on_conflict_do_nothing(index_elements=["product_id", "ingredient_id"])
        )
        with write_scope(self.db):
            inserted = self.db.execute(stmt).rowcount
        return inserted > 0

    def remove_ingredient(self, product_id: int, ingredient_id: int) -> bool:
        stmt = sa.delete(link_t).where(
            link_t.c.product_id == product_id,
            link_t.c.ingredient_id == ingredient_id,
        )
        with write_scope(self.db):
            deleted = self.db.execute(stmt).rowcount
        return deleted > 0

    def update_rating(self, id: int, rating: float) -> bool:
        stmt = sa.update(product_t).where(product_t.c.id == id).values(rating=rating)
        with write_scope(self.db):
            updated = self.db.execute(stmt).rowcount
        return updated > 0

from typing import List, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Session

from models.product import Ingredient as IngredientModel
from repositories.base import RecordStore
from repositories.codec import RowCodec, to_int, to_str
from schemas.product import Ingredient

INGREDIENT_CODEC = RowCodec(Ingredient, {"id": to_int, "name": to_str})

ingredient_t = IngredientModel.__table__


class IngredientRepository:
    def __init__(self, db: Session):
        self.db = db
        self.records = RecordStore(db, ingredient_t, "id", INGREDIENT_CODEC)

    def find_by_name(self, name: str) -> Optional[Ingredient]:
        # Names are expected unique case-insensitively; not enforced, so take the oldest
        stmt = (
            sa.select(ingredient_t)
            .where(sa.func.lower(ingredient_t.c.name) == name.lower())
            .order_by(ingredient_t.c.id)
            .limit(1)
        )
        row = self.db.execute(stmt).mappings().first()
        return INGREDIENT_CODEC.decode(row) if row is not None else None

    def search_by_name(self, fragment: str) -> List[Ingredient]:
        stmt = (
            sa.select(ingredient_t)
            .where(ingredient_t.c.name.icontains(fragment, autoescape=True))
            .order_by(ingredient_t.c.name)
        )
        return [INGREDIENT_CODEC.decode(row) for row in self.db.execute(stmt).mappings()]

# backend/repositories/cart.py
import logging
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Session

from models.cart import Cart as CartModel, CartItem as CartItemModel
from repositories.base import RecordStore, upsert_insert, write_scope
from repositories.codec import RowCodec, to_int
from repositories.errors import IntegrityFault
from repositories.items import LineItems
from repositories.user import UserRepository
from schemas.cart import Cart, CartItem, CartItemWithProduct, CartWithItems

logger = logging.getLogger(__name__)

CART_CODEC = RowCodec(Cart, {"id": to_int, "user_id": to_int})
CART_ITEM_CODEC = RowCodec(CartItem, {"cart_id": to_int, "product_id": to_int, "count": to_int})

cart_t = CartModel.__table__
cart_item_t = CartItemModel.__table__


class CartRepository:
    def __init__(self, db: Session):
        self.db = db
        self.records = RecordStore(db, cart_t, "id", CART_CODEC)
        self.items = LineItems(db, cart_item_t, "cart_id", CART_ITEM_CODEC)

    def find_by_user_id(self, user_id: int) -> Optional[Cart]:
        return self.records.find_one_by(user_id=user_id)

    def find_by_id_for_update(self, id: int) -> Optional[Cart]:
        # Row lock held until the surrounding transaction ends (no-op on SQLite)
        stmt = sa.select(cart_t).where(cart_t.c.id == id).with_for_update()
        row = self.db.execute(stmt).mappings().first()
        return CART_CODEC.decode(row) if row is not None else None

    def find_or_create_by_user_id(self, user_id: int) -> Cart:
        """
        Return the user's cart, creating it on first access.

        ``cart.user_id`` is unique and the insert is ON CONFLICT DO NOTHING,
        so two concurrent first accesses end up reading the same cart.
        """
        cart = self.find_by_user_id(user_id)
        if cart is not None:
            return cart

        stmt = (
            upsert_insert(self.db, cart_t)
            .values(user_id=user_id)
            .on_conflict_do_nothing(index_elements=["user_id"])
        )
        with write_scope(self.db):
            created = self.db.execute(stmt).rowcount
        if created:
            logger.info("Created cart for user %s", user_id)

        cart = self.find_by_user_id(user_id)
        if cart is None:
            raise IntegrityFault(f"cart for user {user_id} neither found nor created")
        return cart

    def find_by_id_with_items(self, id: int) -> Optional[CartWithItems]:
        cart = self.records.find_by_id(id)
        if cart is None:
            return None

        user = UserRepository(self.db).records.find_by_id(cart.user_id)
        if user is None:
            raise IntegrityFault(f"cart {id} belongs to missing user {cart.user_id}")

        items = [
            CartItemWithProduct(**item.model_dump(), product=product)
            for item, product in self.items.find_with_products(id)
        ]
        return CartWithItems(**cart.model_dump(), items=items, user=user)

    def add_item(self, cart_id: int, product_id: int, count: int) -> bool:
        return self.items.add(cart_id, product_id, count)

    def remove_item(self, cart_id: int, product_id: int) -> bool:
        return self.items.remove(cart_id, product_id)

    def update_item_count(self, cart_id: int, product_id: int, count: int) -> bool:
        return self.items.update_count(cart_id, product_id, count)

    def clear_cart(self, cart_id: int) -> bool:
        # Clearing an already empty cart still succeeds
        self.items.clear(cart_id)
        return True

    def get_cart_total(self, cart_id: int) -> float:
        return self.items.total(cart_id)

    def get_cart_item_count(self, cart_id: int) -> int:
        return self.items.item_count(cart_id)

    def convert_to_order(self, cart_id: int):
        """Shortcut for ``convert_cart_to_order`` on this repository's session."""
        from repositories.conversion import convert_cart_to_order  # conversion imports this module

        return convert_cart_to_order(self.db, cart_id)

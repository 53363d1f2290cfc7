# backend/repositories/conversion.py
import enum
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from database import transaction
from repositories.cart import CartRepository
from repositories.order import OrderRepository

logger = logging.getLogger(__name__)


class ConversionStatus(str, enum.Enum):
    CREATED = "CREATED"
    CART_NOT_FOUND = "CART_NOT_FOUND"
    CART_EMPTY = "CART_EMPTY"


@dataclass(frozen=True)
class Conversion:
    status: ConversionStatus
    order_id: Optional[int] = None
    lines: int = 0

    @property
    def created(self) -> bool:
        return self.status is ConversionStatus.CREATED


def convert_cart_to_order(db: Session, cart_id: int) -> Conversion:
    """
    Turn the cart's items into a new order for the cart's owner and empty the cart.

    Everything happens in one transaction. The cart row is read FOR UPDATE,
    then the cart's items are removed with a single DELETE ... RETURNING and
    the removed rows become the order lines. Whatever sat in the cart when
    the delete ran is ordered: an item added or incremented before it is
    included, one written after it stays in the cart. A concurrent
    conversion of the same cart therefore finds no items. A missing cart or
    an empty cart is reported in the result and writes nothing; any error
    rolls back the whole unit. The cart row itself survives and is reused
    by its owner.
    """
    carts = CartRepository(db)
    orders = OrderRepository(db)

    with transaction(db):
        cart = carts.find_by_id_for_update(cart_id)
        if cart is None:
            return Conversion(ConversionStatus.CART_NOT_FOUND)

        lines = carts.items.take(cart.id)
        if not lines:
            return Conversion(ConversionStatus.CART_EMPTY)

        order = orders.records.create({"user_id": cart.user_id})
        orders.items.insert_many(order.id, lines)

    logger.info("Converted cart %s into order %s (%d items)", cart.id, order.id, len(lines))
    return Conversion(ConversionStatus.CREATED, order_id=order.id, lines=len(lines))

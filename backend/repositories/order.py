from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from database import transaction
from models.order import Order as OrderModel, OrderItem as OrderItemModel
from repositories.base import RecordStore
from repositories.codec import RowCodec, to_int
from repositories.errors import IntegrityFault
from repositories.items import LineItems
from repositories.user import UserRepository
from schemas.order import Order, OrderItem, OrderItemWithProduct, OrderWithItems

ORDER_CODEC = RowCodec(Order, {"id": to_int, "user_id": to_int})
ORDER_ITEM_CODEC = RowCodec(OrderItem, {"order_id": to_int, "product_id": to_int, "count": to_int})

order_t = OrderModel.__table__
order_item_t = OrderItemModel.__table__


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db
        self.records = RecordStore(db, order_t, "id", ORDER_CODEC)
        self.items = LineItems(db, order_item_t, "order_id", ORDER_ITEM_CODEC)

    def find_by_user_id(self, user_id: int) -> List[Order]:
        return self.records.find_by(user_id=user_id)

    def find_by_id_with_items(self, id: int) -> Optional[OrderWithItems]:
        order = self.records.find_by_id(id)
        if order is None:
            return None

        user = UserRepository(self.db).records.find_by_id(order.user_id)
        if user is None:
            raise IntegrityFault(f"order {id} belongs to missing user {order.user_id}")

        items = [
            OrderItemWithProduct(**item.model_dump(), product=product)
            for item, product in self.items.find_with_products(id)
        ]
        return OrderWithItems(**order.model_dump(), items=items, user=user)

    def create_with_items(self, user_id: int, lines: Iterable[Tuple[int, int]]) -> OrderWithItems:
        """Create an order and its (product_id, count) lines in one transaction."""
        with transaction(self.db):
            order = self.records.create({"user_id": user_id})
            self.items.insert_many(order.id, lines)

        created = self.find_by_id_with_items(order.id)
        if created is None:
            raise IntegrityFault(f"order {order.id} vanished right after creation")
        return created

    def add_item(self, order_id: int, product_id: int, count: int) -> bool:
        return self.items.add(order_id, product_id, count)

    def remove_item(self, order_id: int, product_id: int) -> bool:
        return self.items.remove(order_id, product_id)

    def update_item_count(self, order_id: int, product_id: int, count: int) -> bool:
        return self.items.update_count(order_id, product_id, count)

    def get_order_total(self, order_id: int) -> float:
        return self.items.total(order_id)

    def get_order_item_count(self, order_id: int) -> int:
        return self.items.item_count(order_id)

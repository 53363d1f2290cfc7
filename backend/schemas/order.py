from typing import List

from schemas.base import Entity
from schemas.product import Product
from schemas.user import User


class Order(Entity):
    id: int
    user_id: int


# Line item of an order
class OrderItem(Entity):
    order_id: int
    product_id: int
    count: int


class OrderItemWithProduct(OrderItem):
    product: Product


# Order with its items (ordered by product name) and owning user
class OrderWithItems(Order):
    items: List[OrderItemWithProduct]
    user: User


# Output schema for an individual order line item
class OrderLineOut(Entity):
    product_id: int
    name: str
    count: int
    unit_price: float
    line_total: float


# Output schema representing the full order details
class OrderOut(Entity):
    id: int
    items: List[OrderLineOut]
    total: float

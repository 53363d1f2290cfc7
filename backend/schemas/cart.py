from pydantic import Field
from typing import List

from schemas.base import Entity, Payload
from schemas.product import Product
from schemas.user import User


class Cart(Entity):
    id: int
    user_id: int

# A single item (product + count) within a cart
class CartItem(Entity):
    cart_id: int
    product_id: int
    count: int

class CartItemWithProduct(CartItem):
    product: Product

# Cart with its items (ordered by product name) and owning user
class CartWithItems(Cart):
    items: List[CartItemWithProduct]
    user: User

# Request schema for adding an item to the cart
class CartAddItem(Payload):
    product_id: int
    count: int = Field(default=1, gt=0)

# Request schema for updating cart item count (0 or less removes the item)
class CartUpdateItem(Payload):
    count: int

# Response schema for a single cart line item
class CartLineOut(Entity):
    product_id: int
    name: str
    count: int
    unit_price: float
    line_total: float

# Response schema for the entire cart summary
class CartOut(Entity):
    id: int
    items: List[CartLineOut]
    total: float
    item_count: int

# Response schema for checkout
class CheckoutOut(Entity):
    order_id: int

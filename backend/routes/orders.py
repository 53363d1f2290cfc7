# backend/routes/orders.py
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from repositories.order import OrderRepository
from schemas.order import OrderOut, OrderLineOut, OrderWithItems
from schemas.user import User
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/orders", tags=["Orders"])

# Check permissions for the admin role
def _is_admin(user: User) -> bool:
    return (user.role or "").lower() == "admin"

# Map a stored order to the OrderOut schema
def _order_to_out(orders: OrderRepository, order: OrderWithItems) -> OrderOut:
    items: List[OrderLineOut] = []
    for it in order.items:
        items.append(OrderLineOut(
            product_id=it.product_id,
            name=it.product.name,
            count=it.count,
            unit_price=it.product.price,
            line_total=round(it.product.price * it.count, 2)
        ))
    return OrderOut(id=order.id, items=items, total=round(orders.get_order_total(order.id), 2))


# List the current user's orders, newest first
@router.get("", response_model=List[OrderOut])
def list_my_orders(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    orders = OrderRepository(db)
    out = []
    for order in reversed(orders.find_by_user_id(current_user.id)):
        detailed = orders.find_by_id_with_items(order.id)
        if detailed:
            out.append(_order_to_out(orders, detailed))
    return out


# Get details of a specific order
@router.get("/{order_id}", response_model=OrderOut)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    orders = OrderRepository(db)
    order = orders.find_by_id_with_items(order_id)

    if not order or (order.user_id != current_user.id and not _is_admin(current_user)):
        raise HTTPException(status_code=404, detail="Order not found or forbidden")
    return _order_to_out(orders, order)

# backend/routes/cart.py
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session

from database import get_db
from repositories.cart import CartRepository
from repositories.conversion import ConversionStatus, convert_cart_to_order
from repositories.errors import ConflictError
from repositories.product import ProductRepository
from schemas.cart import CartAddItem, CartUpdateItem, CartOut, CartLineOut, CheckoutOut
from schemas.user import User
from utils.audit import write_log
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/cart", tags=["Cart"])

def _client_ip(request: Request):
    return request.client.host if request.client else None

def _cart_to_out(carts: CartRepository, cart_id: int) -> CartOut:
    cart = carts.find_by_id_with_items(cart_id)
    items_out = []

    for it in cart.items:
        items_out.append(CartLineOut(
            product_id=it.product_id,
            name=it.product.name,
            count=it.count,
            unit_price=it.product.price,
            line_total=round(it.product.price * it.count, 2),
        ))

    # Totals come from storage so they match what checkout will copy
    return CartOut(
        id=cart.id,
        items=items_out,
        total=round(carts.get_cart_total(cart.id), 2),
        item_count=carts.get_cart_item_count(cart.id),
    )

@router.get("", response_model=CartOut)
def get_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    carts = CartRepository(db)
    cart = carts.find_or_create_by_user_id(current_user.id)
    return _cart_to_out(carts, cart.id)

@router.post("/add", response_model=CartOut, status_code=status.HTTP_200_OK)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    carts = CartRepository(db)
    cart = carts.find_or_create_by_user_id(current_user.id)

    if not ProductRepository(db).records.exists(payload.product_id):
        raise HTTPException(status_code=404, detail="Product not found")

    # Adding an existing product increases its count
    carts.add_item(cart.id, payload.product_id, payload.count)

    out = _cart_to_out(carts, cart.id)
    write_log(
        db,
        user_id=current_user.id,
        action="CART_ADD",
        resource="cart",
        status="SUCCESS",
        ip=_client_ip(request),
        meta={"product_id": payload.product_id, "count": payload.count, "total": out.total},
    )
    return out

@router.put("/items/{product_id}", response_model=CartOut)
def update_cart_item(
    product_id: int,
    payload: CartUpdateItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    carts = CartRepository(db)
    cart = carts.find_or_create_by_user_id(current_user.id)

    # A count of zero or less removes the item
    if not carts.update_item_count(cart.id, product_id, payload.count):
        raise HTTPException(status_code=404, detail="Cart item not found")

    out = _cart_to_out(carts, cart.id)
    write_log(
        db,
        user_id=current_user.id,
        action="CART_UPDATE",
        resource="cart",
        status="SUCCESS",
        ip=_client_ip(request),
        meta={"product_id": product_id, "count": payload.count, "total": out.total},
    )
    return out

@router.delete("/items/{product_id}", response_model=CartOut)
def delete_cart_item(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    carts = CartRepository(db)
    cart = carts.find_or_create_by_user_id(current_user.id)

    if not carts.remove_item(cart.id, product_id):
        raise HTTPException(status_code=404, detail="Cart item not found")

    out = _cart_to_out(carts, cart.id)
    write_log(
        db,
        user_id=current_user.id,
        action="CART_DELETE",
        resource="cart",
        status="SUCCESS",
        ip=_client_ip(request),
        meta={"product_id": product_id, "total": out.total},
    )
    return out

@router.delete("", response_model=CartOut)
def clear_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    carts = CartRepository(db)
    cart = carts.find_or_create_by_user_id(current_user.id)
    carts.clear_cart(cart.id)
    return _cart_to_out(carts, cart.id)

# Convert the cart into an order and empty it
@router.post("/checkout", response_model=CheckoutOut, status_code=status.HTTP_201_CREATED)
def checkout(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = CartRepository(db).find_or_create_by_user_id(current_user.id)

    try:
        result = convert_cart_to_order(db, cart.id)
    except ConflictError:
        write_log(db, user_id=current_user.id, action="CHECKOUT", resource="cart", status="FAIL",
                  ip=_client_ip(request), meta={"cart_id": cart.id, "reason": "conflict"})
        raise HTTPException(status_code=409, detail="Checkout conflicted with another request, please retry")

    if result.status is ConversionStatus.CART_EMPTY:
        raise HTTPException(status_code=400, detail="Cart is empty")
    if result.status is ConversionStatus.CART_NOT_FOUND:
        raise HTTPException(status_code=404, detail="Cart not found")

    write_log(db, user_id=current_user.id, action="CHECKOUT", resource="cart", status="SUCCESS",
              ip=_client_ip(request), meta={"cart_id": cart.id, "order_id": result.order_id, "lines": result.lines})
    return CheckoutOut(order_id=result.order_id)

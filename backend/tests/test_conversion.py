from types import SimpleNamespace

import pytest
from sqlalchemy.orm import sessionmaker

from database import Base, create_db_engine
from populate_db import ensure_roles
from repositories.cart import CartRepository
from repositories.conversion import ConversionStatus, convert_cart_to_order
from repositories.items import LineItems
from repositories.order import OrderRepository
from repositories.product import ProductRepository
from repositories.user import UserRepository
from utils.hashing import get_password_hash


@pytest.fixture
def filled_cart(db, make_user, make_product):
    carts = CartRepository(db)
    cart = carts.find_or_create_by_user_id(make_user().id)
    carts.add_item(cart.id, make_product("Margherita", 12.0).id, 2)
    carts.add_item(cart.id, make_product("Cola", 2.5).id, 1)
    return cart


def test_items_move_to_a_new_order(db, filled_cart):
    carts = CartRepository(db)
    orders = OrderRepository(db)
    before = [(i.product_id, i.count) for i in carts.items.find_by_parent(filled_cart.id)]

    result = convert_cart_to_order(db, filled_cart.id)

    assert result.created
    assert result.status is ConversionStatus.CREATED
    assert result.lines == 2

    order = orders.find_by_id_with_items(result.order_id)
    assert order.user_id == filled_cart.user_id
    assert sorted((i.product_id, i.count) for i in order.items) == sorted(before)
    assert orders.get_order_total(order.id) == pytest.approx(26.5)

    assert carts.items.find_by_parent(filled_cart.id) == []
    assert carts.records.exists(filled_cart.id)


def test_empty_cart_creates_no_order(db, make_user):
    cart = CartRepository(db).find_or_create_by_user_id(make_user().id)

    result = convert_cart_to_order(db, cart.id)

    assert result.status is ConversionStatus.CART_EMPTY
    assert result.order_id is None
    assert not result.created
    assert OrderRepository(db).records.count() == 0


def test_missing_cart(db):
    result = convert_cart_to_order(db, 12345)
    assert result.status is ConversionStatus.CART_NOT_FOUND
    assert OrderRepository(db).records.count() == 0


def test_second_conversion_finds_the_cart_empty(db, filled_cart):
    assert convert_cart_to_order(db, filled_cart.id).created
    assert convert_cart_to_order(db, filled_cart.id).status is ConversionStatus.CART_EMPTY
    assert OrderRepository(db).records.count() == 1


def test_failure_while_copying_items_rolls_back(db, filled_cart, monkeypatch):
    original_insert = LineItems.insert_many

    def insert_then_fail(self, parent_id, lines):
        original_insert(self, parent_id, lines)
        raise RuntimeError("storage went away")

    monkeypatch.setattr(LineItems, "insert_many", insert_then_fail)

    with pytest.raises(RuntimeError):
        convert_cart_to_order(db, filled_cart.id)

    monkeypatch.undo()
    assert OrderRepository(db).records.count() == 0
    assert len(CartRepository(db).items.find_by_parent(filled_cart.id)) == 2
    assert convert_cart_to_order(db, filled_cart.id).created


def test_cart_repository_shortcut(db, filled_cart):
    result = CartRepository(db).convert_to_order(filled_cart.id)
    assert result.created
    assert OrderRepository(db).get_order_item_count(result.order_id) == 3


def test_take_empties_the_cart_and_returns_removed_lines(db, filled_cart):
    carts = CartRepository(db)
    expected = sorted((i.product_id, i.count) for i in carts.items.find_by_parent(filled_cart.id))

    assert carts.items.take(filled_cart.id) == expected
    assert carts.items.take(filled_cart.id) == []


# ---- two writers on one database file ----

@pytest.fixture
def file_engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'shop.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sessions(file_engine):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    first, second = factory(), factory()
    yield first, second
    first.close()
    second.close()


@pytest.fixture
def shop(sessions):
    db, _ = sessions
    ensure_roles(db)
    user = UserRepository(db).create_user({
        "email": "alice@example.com",
        "password_hash": get_password_hash("secret123"),
        "name": "Alice",
        "role": "customer",
    })
    products = ProductRepository(db)
    pizza = products.records.create({"name": "Pizza", "price": 10.0})
    cola = products.records.create({"name": "Cola", "price": 2.0})

    carts = CartRepository(db)
    cart = carts.find_or_create_by_user_id(user.id)
    carts.add_item(cart.id, pizza.id, 2)
    return SimpleNamespace(cart=cart, pizza=pizza, cola=cola)


@pytest.fixture
def interleave(monkeypatch):
    """Run one callback right after the converter has locked the cart row."""
    pending = []
    original = CartRepository.find_by_id_for_update

    def locked_then_interleave(self, id):
        cart = original(self, id)
        while pending:
            pending.pop()()
        return cart

    monkeypatch.setattr(CartRepository, "find_by_id_for_update", locked_then_interleave)
    return pending.append


def _ordered(db, user_id):
    orders = OrderRepository(db)
    return {
        item.product_id: item.count
        for order in orders.find_by_user_id(user_id)
        for item in orders.items.find_by_parent(order.id)
    }


def _in_cart(db, cart_id):
    return {item.product_id: item.count for item in CartRepository(db).items.find_by_parent(cart_id)}


def test_increment_during_conversion_is_ordered(sessions, shop, interleave):
    db, other = sessions
    interleave(lambda: CartRepository(other).add_item(shop.cart.id, shop.pizza.id, 3))

    result = convert_cart_to_order(db, shop.cart.id)

    assert result.created
    assert _ordered(db, shop.cart.user_id) == {shop.pizza.id: 5}
    assert _in_cart(db, shop.cart.id) == {}


def test_item_added_during_conversion_is_ordered(sessions, shop, interleave):
    db, other = sessions
    interleave(lambda: CartRepository(other).add_item(shop.cart.id, shop.cola.id, 1))

    result = convert_cart_to_order(db, shop.cart.id)

    assert result.created
    assert result.lines == 2
    assert _ordered(db, shop.cart.user_id) == {shop.pizza.id: 2, shop.cola.id: 1}
    assert _in_cart(db, shop.cart.id) == {}


def test_concurrent_conversions_create_one_order(sessions, shop, interleave):
    db, other = sessions
    competing = []
    interleave(lambda: competing.append(convert_cart_to_order(other, shop.cart.id)))

    result = convert_cart_to_order(db, shop.cart.id)

    assert competing[0].created
    assert result.status is ConversionStatus.CART_EMPTY
    assert OrderRepository(db).records.count() == 1
    assert _ordered(db, shop.cart.user_id) == {shop.pizza.id: 2}
    assert _in_cart(db, shop.cart.id) == {}

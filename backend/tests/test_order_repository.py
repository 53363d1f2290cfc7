import pytest

from repositories.errors import ConflictError
from repositories.order import OrderRepository


@pytest.fixture
def orders(db):
    return OrderRepository(db)


def test_create_with_items(orders, make_user, make_product):
    user = make_user()
    pizza = make_product("Margherita", 12.0)
    cola = make_product("Cola", 2.5)

    order = orders.create_with_items(user.id, [(pizza.id, 2), (cola.id, 3)])

    assert order.user_id == user.id
    assert [(i.product.name, i.count) for i in order.items] == [("Cola", 3), ("Margherita", 2)]
    assert orders.get_order_total(order.id) == pytest.approx(31.5)
    assert orders.get_order_item_count(order.id) == 5
    assert orders.find_by_user_id(user.id) == [orders.records.find_by_id(order.id)]


def test_repeated_product_rolls_back_the_whole_order(orders, make_user, make_product):
    user = make_user()
    pizza = make_product("Margherita")

    with pytest.raises(ConflictError):
        orders.create_with_items(user.id, [(pizza.id, 1), (pizza.id, 2)])

    assert orders.records.count() == 0
    assert orders.find_by_user_id(user.id) == []


def test_order_item_editing(orders, make_user, make_product):
    user = make_user()
    pizza = make_product("Margherita", 10.0)
    order = orders.create_with_items(user.id, [])

    assert order.items == []
    assert orders.add_item(order.id, pizza.id, 1)
    assert orders.add_item(order.id, pizza.id, 1)
    assert orders.get_order_item_count(order.id) == 2

    assert orders.update_item_count(order.id, pizza.id, 4)
    assert orders.get_order_total(order.id) == pytest.approx(40.0)

    assert orders.remove_item(order.id, pizza.id)
    assert orders.get_order_total(order.id) == 0


def test_find_by_id_with_items_missing(orders):
    assert orders.find_by_id_with_items(1) is None

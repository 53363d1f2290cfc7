from decimal import Decimal

import pytest

from repositories.cart import CART_ITEM_CODEC
from repositories.codec import to_int, to_float
from repositories.errors import IntegrityFault
from repositories.product import PRODUCT_CODEC
from repositories.user import USER_CODEC
from schemas.product import ProductPatch
from schemas.user import UserPatch


def test_decode_coerces_driver_values():
    product = PRODUCT_CODEC.decode({
        "id": Decimal("3"),
        "name": "Margherita",
        "price": Decimal("12.50"),
        "image": "",
        "rating": "4.5",
    })
    assert product.id == 3
    assert product.price == 12.5
    assert product.rating == 4.5


def test_decode_ignores_extra_columns():
    item = CART_ITEM_CODEC.decode({"cart_id": 1, "product_id": 2, "count": 3, "p_name": "x"})
    assert (item.cart_id, item.product_id, item.count) == (1, 2, 3)


def test_decode_missing_column_is_integrity_fault():
    with pytest.raises(IntegrityFault, match="count"):
        CART_ITEM_CODEC.decode({"cart_id": 1, "product_id": 2})


def test_decode_null_column_is_integrity_fault():
    with pytest.raises(IntegrityFault, match="NULL"):
        CART_ITEM_CODEC.decode({"cart_id": 1, "product_id": 2, "count": None})


def test_encode_keeps_only_fields_that_were_set():
    assert USER_CODEC.encode(UserPatch(name="Bob")) == {"name": "Bob"}
    assert PRODUCT_CODEC.encode(ProductPatch(price=7)) == {"price": 7.0}


def test_encode_accepts_camel_case_payloads():
    patch = UserPatch.model_validate({"passwordHash": "h"})
    assert USER_CODEC.encode(patch) == {"password_hash": "h"}


def test_encode_mapping_and_explicit_none():
    assert USER_CODEC.encode({"phone": None, "address": "Main 1"}) == {"phone": None, "address": "Main 1"}


def test_encode_rejects_unknown_fields():
    with pytest.raises(ValueError, match="nickname"):
        USER_CODEC.encode({"nickname": "al"})


def test_numeric_coercers():
    assert to_int(Decimal("5")) == 5
    assert to_int("7") == 7
    assert to_float(Decimal("0")) == 0.0

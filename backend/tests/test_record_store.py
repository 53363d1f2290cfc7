from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError

from repositories.base import upsert_insert
from repositories.errors import ConflictError
from repositories.product import ProductRepository
from repositories.role import RoleRepository
from schemas.product import ProductCreate, ProductPatch


@pytest.fixture
def records(db):
    return ProductRepository(db).records


def test_create_then_find_by_id(records):
    created = records.create(ProductCreate(name="Margherita", price=12.5))
    assert created.id > 0
    assert created.rating == 0
    assert records.find_by_id(created.id) == created


def test_find_by_id_missing_returns_none(records):
    assert records.find_by_id(999) is None


def test_find_all_is_ordered_by_primary_key(records):
    first = records.create({"name": "B", "price": 1})
    second = records.create({"name": "A", "price": 2})
    assert [p.id for p in records.find_all()] == [first.id, second.id]


def test_find_by_without_predicates_returns_everything(records):
    records.create({"name": "A", "price": 1})
    records.create({"name": "B", "price": 2})
    assert records.find_by() == records.find_all()


def test_find_by_and_find_one_by(records):
    records.create({"name": "Pepperoni", "price": 20})
    wanted = records.create({"name": "Veggie", "price": 15})
    records.create({"name": "Veggie", "price": 16})

    assert [p.price for p in records.find_by(name="Veggie")] == [15, 16]
    assert records.find_one_by(name="Veggie") == wanted
    assert records.find_one_by(name="Hawaii") is None


def test_find_one_by_requires_a_predicate(records):
    with pytest.raises(ValueError):
        records.find_one_by()


def test_unknown_predicate_column_is_rejected(records):
    with pytest.raises(ValueError, match="colour"):
        records.find_by(colour="red")


def test_update_writes_only_given_fields(records):
    product = records.create({"name": "Margherita", "price": 12.5, "image": "m.png"})

    updated = records.update(product.id, ProductPatch(price=14))

    assert updated.price == 14
    assert updated.name == "Margherita"
    assert updated.image == "m.png"
    assert records.find_by_id(product.id) == updated


def test_update_with_empty_partial_returns_current_row(records):
    product = records.create({"name": "Margherita", "price": 12.5})
    assert records.update(product.id, ProductPatch()) == product


def test_update_missing_row_returns_none(records):
    assert records.update(404, {"price": 1}) is None


def test_delete_reports_whether_a_row_went_away(records):
    product = records.create({"name": "Margherita", "price": 12.5})
    assert records.delete(product.id) is True
    assert records.delete(product.id) is False
    assert records.exists(product.id) is False


def test_count_and_exists(records):
    a = records.create({"name": "A", "price": 1})
    records.create({"name": "A", "price": 2})
    records.create({"name": "B", "price": 3})

    assert records.count() == 3
    assert records.count(name="A") == 2
    assert records.exists(a.id)
    assert not records.exists(a.id + 100)


def test_duplicate_key_raises_conflict_and_session_stays_usable(db):
    roles = RoleRepository(db).records
    with pytest.raises(ConflictError):
        roles.create({"name": "admin"})
    assert roles.count() == 2


def test_check_constraint_violation_is_not_a_conflict(records):
    with pytest.raises(IntegrityError) as excinfo:
        records.create({"name": "Broken", "price": -1})
    assert not isinstance(excinfo.value, ConflictError)
    assert records.count() == 0


def test_upsert_insert_rejects_dialects_without_on_conflict(records):
    oracle = SimpleNamespace(get_bind=lambda: SimpleNamespace(dialect=SimpleNamespace(name="oracle")))
    with pytest.raises(ValueError, match="oracle"):
        upsert_insert(oracle, records.table)

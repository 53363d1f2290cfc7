import pytest

from repositories.ingredient import IngredientRepository
from repositories.product import ProductRepository


@pytest.fixture
def menu(make_product):
    return {
        "margherita": make_product("Margherita", 12.0, ["tomato sauce", "mozzarella cheese", "black olive"]),
        "bake": make_product("Cheese Olive Bake", 15.0, ["potato"]),
        "toast": make_product("Cheese Toast", 6.0, ["bread", "cheddar cheese"]),
        "salad": make_product("Olive Salad", 9.0, ["lettuce"]),
    }


def test_search_needs_every_word_in_name_or_ingredients(db, menu):
    found = ProductRepository(db).search("cheese olive")
    assert [p.name for p in found] == ["Cheese Olive Bake", "Margherita"]


def test_search_words_may_hit_different_ingredients(db, menu):
    margherita = next(p for p in ProductRepository(db).search("olive mozzarella") if p.name == "Margherita")
    assert margherita.ingredients == ["black olive", "mozzarella cheese", "tomato sauce"]


def test_search_is_case_insensitive(db, menu):
    assert [p.name for p in ProductRepository(db).search("  CHEESE   Olive ")] == ["Cheese Olive Bake", "Margherita"]


def test_search_does_not_mix_name_and_ingredient_hits(db, menu):
    # "toast" only in a name, "lettuce" only in another product's ingredients
    assert ProductRepository(db).search("toast lettuce") == []


def test_blank_search_returns_all_products(db, menu):
    products = ProductRepository(db)
    assert products.search("   ") == products.find_all_with_ingredients()
    assert len(products.search("")) == 4


def test_search_treats_wildcards_literally(db, make_product):
    make_product("100% Veggie")
    make_product("1000 Veggie")
    make_product("snake_case pie")
    make_product("snakeXcase pie")
    products = ProductRepository(db)

    assert [p.name for p in products.search("100%")] == ["100% Veggie"]
    assert [p.name for p in products.search("e_c")] == ["snake_case pie"]


def test_product_without_ingredients_has_empty_list(db, make_product):
    product = make_product("Plain Bread", 3.0)
    found = ProductRepository(db).find_by_id_with_ingredients(product.id)
    assert found.ingredients == []
    assert ProductRepository(db).find_by_id_with_ingredients(999) is None


def test_find_all_with_ingredients_groups_rows(db, menu):
    found = ProductRepository(db).find_all_with_ingredients()
    assert [p.id for p in found] == sorted(p.id for p in menu.values())
    toast = next(p for p in found if p.name == "Cheese Toast")
    assert toast.ingredients == ["bread", "cheddar cheese"]


def test_add_ingredient_is_idempotent(db, make_product):
    product = make_product("Margherita")
    ingredient = IngredientRepository(db).records.create({"name": "basil"})
    products = ProductRepository(db)

    assert products.add_ingredient(product.id, ingredient.id) is True
    assert products.add_ingredient(product.id, ingredient.id) is False
    assert products.find_by_id_with_ingredients(product.id).ingredients == ["basil"]

    assert products.remove_ingredient(product.id, ingredient.id) is True
    assert products.remove_ingredient(product.id, ingredient.id) is False


def test_deleting_product_drops_its_ingredient_links(db, menu):
    products = ProductRepository(db)
    assert products.records.delete(menu["margherita"].id)
    assert [p.name for p in products.search("black olive")] == []
    assert IngredientRepository(db).find_by_name("Black Olive") is not None


def test_plain_filters(db, menu):
    products = ProductRepository(db)
    assert [p.name for p in products.find_by_name("cheese")] == ["Cheese Olive Bake", "Cheese Toast"]
    assert [p.name for p in products.find_by_price_range(6, 12)] == ["Cheese Toast", "Olive Salad", "Margherita"]

    assert products.update_rating(menu["salad"].id, 4.5)
    assert products.update_rating(999, 4.5) is False
    assert [p.name for p in products.find_by_min_rating(4)] == ["Olive Salad"]


def test_ingredient_search(db, menu):
    ingredients = IngredientRepository(db)
    assert [i.name for i in ingredients.search_by_name("CHEESE")] == ["cheddar cheese", "mozzarella cheese"]

import os

# Settings are read at import time; point them at a throwaway database first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models.users, models.product, models.cart, models.order, models.log  # noqa: F401,E401
from database import Base, create_db_engine, get_db
from populate_db import ensure_roles
from repositories.ingredient import IngredientRepository
from repositories.product import ProductRepository
from repositories.user import UserRepository
from utils.hashing import get_password_hash


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    ensure_roles(session)
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    users = UserRepository(db)

    def _make(email="alice@example.com", password="secret123", name="Alice", role="customer"):
        return users.create_user({
            "email": email,
            "password_hash": get_password_hash(password),
            "name": name,
            "role": role,
        })

    return _make


@pytest.fixture
def make_product(db):
    products = ProductRepository(db)
    ingredients = IngredientRepository(db)

    def _make(name, price=10.0, ingredient_names=(), rating=0.0):
        product = products.records.create({"name": name, "price": price, "rating": rating})
        for ingredient_name in ingredient_names:
            ingredient = ingredients.find_by_name(ingredient_name)
            if ingredient is None:
                ingredient = ingredients.records.create({"name": ingredient_name})
            products.add_ingredient(product.id, ingredient.id)
        return product

    return _make


@pytest.fixture
def client(db, session_factory):
    from main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client, make_user):
    def _login(email="alice@example.com", password="secret123", role="customer"):
        make_user(email=email, password=password, role=role)
        response = client.post("/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login

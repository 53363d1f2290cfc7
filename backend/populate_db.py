import os
import sys

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from sqlalchemy.orm import Session

from config import settings
from database import SessionLocal, init_db
from repositories.errors import ConflictError
from repositories.ingredient import IngredientRepository
from repositories.product import ProductRepository
from repositories.role import RoleRepository
from repositories.user import UserRepository
from utils.hashing import get_password_hash

# Configuration
ROLES = (settings.DEFAULT_ROLE, "admin")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")

# Demo menu: name, price, rating, ingredients
MENU = [
    ("Margherita", 450.0, 4.6, ["tomato sauce", "mozzarella", "basil"]),
    ("Pepperoni", 520.0, 4.8, ["tomato sauce", "mozzarella", "pepperoni"]),
    ("Four Cheese", 560.0, 4.5, ["mozzarella", "gorgonzola", "parmesan", "cheddar"]),
    ("Salami Delight", 300.0, 4.7, ["salami", "mozzarella", "olive", "tomato sauce"]),
    ("Veggie", 410.0, 4.2, ["tomato sauce", "bell pepper", "olive", "mushroom", "onion"]),
]
# End Configuration


def ensure_roles(db: Session):
    """Create the roles registration and admin checks rely on."""
    roles = RoleRepository(db)
    for name in ROLES:
        if roles.find_by_name(name):
            continue
        try:
            roles.records.create({"name": name})
        except ConflictError:
            # Created concurrently by another worker
            continue


def _ingredient_id(ingredients: IngredientRepository, name: str) -> int:
    existing = ingredients.find_by_name(name)
    if existing:
        return existing.id
    return ingredients.records.create({"name": name}).id


def load_all_data():
    """Seeds roles, an admin account and the demo menu."""
    init_db()
    with SessionLocal() as session:
        ensure_roles(session)

        users = UserRepository(session)
        if not users.find_by_email(ADMIN_EMAIL):
            users.create_user({
                "email": ADMIN_EMAIL,
                "password_hash": get_password_hash(ADMIN_PASSWORD),
                "name": "Administrator",
                "role": "admin",
            })
            print(f"Utworzono konto administratora: {ADMIN_EMAIL}")

        products = ProductRepository(session)
        ingredients = IngredientRepository(session)

        print(f"Wstawianie {len(MENU)} produktów...")
        for name, price, rating, composition in MENU:
            if products.find_by_name(name):
                continue
            product = products.records.create({
                "name": name,
                "price": price,
                "rating": rating,
                "image": f"https://picsum.photos/seed/{name.replace(' ', '-').lower()}/300/300",
            })
            for ingredient_name in composition:
                products.add_ingredient(product.id, _ingredient_id(ingredients, ingredient_name))

        print(f"Gotowe. Produkty w bazie: {products.records.count()}")


if __name__ == "__main__":
    load_all_data()

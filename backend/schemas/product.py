# backend/schemas/product.py
from pydantic import Field
from typing import Optional, List

from schemas.base import Entity, Payload


# Stored product (menu position)
class Product(Entity):
    id: int
    name: str
    price: float
    image: str
    rating: float


# Product with the names of its ingredients, ordered by name
class ProductWithIngredients(Product):
    ingredients: List[str] = Field(default_factory=list)


class Ingredient(Entity):
    id: int
    name: str


class ProductIngredient(Entity):
    product_id: int
    ingredient_id: int


# Schema for creating a new product
class ProductCreate(Payload):
    name: str = Field(min_length=1)
    price: float = Field(ge=0)
    image: str = ""
    rating: float = Field(default=0, ge=0, le=5)


# Schema for partial product updates
class ProductPatch(Payload):
    """Schema for PATCH requests - all fields optional."""
    name: Optional[str] = Field(None, description="Nazwa produktu")
    price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)


class IngredientCreate(Payload):
    name: str = Field(min_length=1)

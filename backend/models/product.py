# backend/models/product.py
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, CheckConstraint
from database import Base

# Model Product
# Reprezentuje pojedynczą pozycję menu dostępną do zamówienia.
# Skład (składniki) przechowywany jest w tabeli asocjacyjnej product_ingredient.
class Product(Base):
    __tablename__ = "product"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)

    # Cena kontrolowana ograniczeniem, ocena w zakresie 0-5 nie jest wymuszana.
    price = Column(Numeric(10, 2, asdecimal=False), CheckConstraint("price >= 0"), nullable=False)
    rating = Column(Numeric(3, 2, asdecimal=False), nullable=False, default=0)

    # URL zdjęcia produktu.
    image = Column(String, nullable=False, default="")


class Ingredient(Base):
    __tablename__ = "ingredient"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)


# Association between a product and one of its ingredients
class ProductIngredient(Base):
    __tablename__ = "product_ingredient"

    product_id = Column(Integer, ForeignKey("product.id", ondelete="CASCADE"), primary_key=True)
    ingredient_id = Column(Integer, ForeignKey("ingredient.id", ondelete="CASCADE"), primary_key=True)

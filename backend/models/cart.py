# backend/models/cart.py
from sqlalchemy import Column, Integer, ForeignKey, CheckConstraint
from database import Base

# Represents the user's shopping cart
class Cart(Base):
    __tablename__ = "cart" # Table name

    id = Column(Integer, primary_key=True, index=True) # Primary key
    # One cart per user; find-or-create relies on this constraint
    user_id = Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), unique=True, nullable=False)


# Represents a single item (product + count) within a cart
class CartItem(Base):
    __tablename__ = "cart_item" # Table name

    cart_id = Column(Integer, ForeignKey("cart.id", ondelete="CASCADE"), primary_key=True) # Foreign key to parent cart
    product_id = Column(Integer, ForeignKey("product.id", ondelete="CASCADE"), primary_key=True) # Foreign key to product
    count = Column(Integer, CheckConstraint("count > 0"), nullable=False) # Product count

# backend/models/users.py
from sqlalchemy import Column, Integer, String, ForeignKey
from database import Base


# Named role a user account belongs to (e.g. "customer", "admin")
class Role(Base):
    __tablename__ = "role"

    name = Column(String, primary_key=True)


# Represents a user account with authentication details and system role
class User(Base):
    __tablename__ = "user"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)  # Stored lower-cased
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=False)
    address = Column(String, nullable=False, default="")
    phone = Column(String, nullable=False, default="")
    role = Column(String, ForeignKey("role.name"), nullable=False)

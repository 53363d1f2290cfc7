from pydantic import EmailStr, Field
from typing import Optional

from schemas.base import Entity, Payload


class Role(Entity):
    name: str

# Stored user account
class User(Entity):
    id: int
    email: str
    password_hash: str
    name: str
    address: str
    phone: str
    role: str

# User joined with its role row
class UserWithRole(User):
    role_details: Role

# Partial user used for create/update (only explicitly set fields are written)
class UserPatch(Payload):
    email: Optional[str] = None
    password_hash: Optional[str] = None
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None

# Schema for user registration requests
class RegisterRequest(Payload):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)
    address: Optional[str] = None
    phone: Optional[str] = None

# Schema for user authentication credentials
class LoginRequest(Payload):
    email: EmailStr
    password: str

# Public profile, never exposes the password hash
class UserProfile(Entity):
    id: int
    email: str
    name: str
    address: str
    phone: str
    role: str

# Schema for JWT authentication token response (OAuth2 field names)
class AuthResponse(Entity):
    access_token: str = Field(alias="access_token")
    token_type: str = Field(default="bearer", alias="token_type")
    user: UserProfile

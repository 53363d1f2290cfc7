from typing import List, Optional

import sqlalchemy as sa
from pydantic import BaseModel
from sqlalchemy.orm import Session

from models.users import User as UserModel, Role as RoleModel
from repositories.base import RecordStore, write_scope
from repositories.codec import Partial, RowCodec, to_int, to_str
from repositories.role import ROLE_CODEC
from schemas.user import User, UserWithRole

USER_CODEC = RowCodec(User, {
    "id": to_int,
    "email": to_str,
    "password_hash": to_str,
    "name": to_str,
    "address": to_str,
    "phone": to_str,
    "role": to_str,
})

user_t = UserModel.__table__
role_t = RoleModel.__table__


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserRepository:
    def __init__(self, db: Session):
        self.db = db
        self.records = RecordStore(db, user_t, "id", USER_CODEC)

    def find_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup; other string columns keep exact comparison."""
        stmt = sa.select(user_t).where(sa.func.lower(user_t.c.email) == normalize_email(email)).limit(1)
        row = self.db.execute(stmt).mappings().first()
        return USER_CODEC.decode(row) if row is not None else None

    def create_user(self, partial: Partial) -> User:
        """Create a user with a normalized email. Raises ConflictError if the email is taken."""
        values = partial.model_dump(exclude_unset=True) if isinstance(partial, BaseModel) else dict(partial)
        if values.get("email") is not None:
            values["email"] = normalize_email(values["email"])
        return self.records.create(values)

    def _with_role(self):
        return sa.select(*user_t.c, role_t.c.name.label("role_name")).join_from(
            user_t, role_t, user_t.c.role == role_t.c.name
        )

    def _decode_with_role(self, row) -> UserWithRole:
        user = USER_CODEC.decode(row)
        role = ROLE_CODEC.decode({"name": row["role_name"]})
        return UserWithRole(**user.model_dump(), role_details=role)

    def find_by_id_with_role(self, id: int) -> Optional[UserWithRole]:
        row = self.db.execute(self._with_role().where(user_t.c.id == id)).mappings().first()
        return self._decode_with_role(row) if row is not None else None

    def find_all_with_roles(self) -> List[UserWithRole]:
        rows = self.db.execute(self._with_role().order_by(user_t.c.id)).mappings()
        return [self._decode_with_role(row) for row in rows]

    def update_password(self, id: int, password_hash: str) -> bool:
        stmt = sa.update(user_t).where(user_t.c.id == id).values(password_hash=password_hash)
        with write_scope(self.db):
            updated = self.db.execute(stmt).rowcount
        return updated > 0

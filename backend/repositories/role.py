from typing import Optional

from sqlalchemy.orm import Session

from models.users import Role as RoleModel
from repositories.base import RecordStore
from repositories.codec import RowCodec, to_str
from schemas.user import Role

ROLE_CODEC = RowCodec(Role, {"name": to_str})


class RoleRepository:
    def __init__(self, db: Session):
        self.records = RecordStore(db, RoleModel.__table__, "name", ROLE_CODEC)

    def find_by_name(self, name: str) -> Optional[Role]:
        return self.records.find_one_by(name=name)

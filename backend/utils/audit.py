import logging

from sqlalchemy import insert
from sqlalchemy.orm import Session

from database import transaction
from models.log import Log

logger = logging.getLogger("audit")

def write_log(db: Session, *, user_id, action, resource, status="SUCCESS", ip=None, meta=None):
    with transaction(db):
        db.execute(insert(Log.__table__).values(
            user_id=user_id, action=action, resource=resource, status=status, ip=ip, meta=meta or {}
        ))
    logger.info("%s %s %s user=%s ip=%s", action, resource, status, user_id, ip)

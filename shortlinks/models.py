import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String

from shortlinks.database import Base

MAX_URL_LENGTH = 2048


def _new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Link(Base):
    __tablename__ = "links"

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String(255), index=True, nullable=False)
    short_code = Column(String(50), unique=True, index=True, nullable=False)
    target_url = Column(String(MAX_URL_LENGTH), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

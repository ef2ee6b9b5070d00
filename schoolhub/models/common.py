import uuid
from datetime import datetime, timezone
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy import DateTime, JSON

def utcnow():
    return datetime.now(timezone.utc)

class UUIDMixin:
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

def reference_column(**kwargs):
    """UUID pointing at another collection's document; population joins it at read time."""
    return mapped_column(UUID(as_uuid=True), index=True, **kwargs)

def json_list_column(**kwargs):
    """JSON array of scalars; equality filters match any element."""
    return mapped_column(JSON, nullable=False, default=list, info={"json_list": True}, **kwargs)

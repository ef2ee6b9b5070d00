from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column
from schoolhub.db.session import Base
from schoolhub.models.common import UUIDMixin, TimestampMixin

class Department(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "departments"
    code: Mapped[str] = mapped_column(String(9), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

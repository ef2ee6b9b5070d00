import uuid

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from schoolhub.db.session import Base
from schoolhub.models.common import UUIDMixin, TimestampMixin, reference_column

class Program(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "programs"
    program_code: Mapped[str] = mapped_column(String(9), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    department_id: Mapped[uuid.UUID] = reference_column(nullable=False)
    degree_level: Mapped[str] = mapped_column(String(20), nullable=False)  # associate|bachelor|master|doctoral
    credits: Mapped[int] = mapped_column(Integer, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active", index=True)

import uuid

from sqlalchemy import JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from schoolhub.db.session import Base
from schoolhub.models.common import UUIDMixin, TimestampMixin, reference_column

class AcademicRecord(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "academic_records"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "course_id", "semester", "academic_year", name="uq_academic_record_enrollment"
        ),
    )
    student_id: Mapped[uuid.UUID] = reference_column(nullable=False)
    course_id: Mapped[uuid.UUID] = reference_column(nullable=False)
    semester: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    academic_year: Mapped[str] = mapped_column(String(9), nullable=False, index=True)
    registration_status: Mapped[str] = mapped_column(String(20), nullable=False, default="registered", index=True)
    grade: Mapped[dict | None] = mapped_column(JSON, nullable=True)

import uuid
import datetime

from sqlalchemy import Date, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from schoolhub.db.session import Base
from schoolhub.models.common import UUIDMixin, TimestampMixin, reference_column

class Attendance(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "attendance"
    __table_args__ = (UniqueConstraint("student_id", "course_id", "date", name="uq_attendance_student_course_date"),)
    student_id: Mapped[uuid.UUID] = reference_column(nullable=False)
    course_id: Mapped[uuid.UUID] = reference_column(nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)  # present|absent|late|excused
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

from sqlalchemy import Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from schoolhub.db.session import Base
from schoolhub.models.common import UUIDMixin, TimestampMixin, json_list_column

class Course(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "courses"
    course_code: Mapped[str] = mapped_column(String(9), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    credits: Mapped[float] = mapped_column(Float, nullable=False, index=True)
    day_of_week: Mapped[list] = json_list_column()
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    # Lists of program / course ids (strings), populated at read time.
    program_ids: Mapped[list] = json_list_column()
    prerequisites: Mapped[list] = json_list_column()

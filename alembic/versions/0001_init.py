"""init
Revision ID: 0001_init
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def _base_columns():
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


INDEXES = [
    ("users", "created_at"),
    ("users", "role"),
    ("departments", "created_at"),
    ("departments", "name"),
    ("programs", "created_at"),
    ("programs", "name"),
    ("programs", "department_id"),
    ("programs", "status"),
    ("courses", "created_at"),
    ("courses", "title"),
    ("courses", "credits"),
    ("attendance", "created_at"),
    ("attendance", "student_id"),
    ("attendance", "course_id"),
    ("attendance", "date"),
    ("attendance", "status"),
    ("academic_records", "created_at"),
    ("academic_records", "student_id"),
    ("academic_records", "course_id"),
    ("academic_records", "semester"),
    ("academic_records", "academic_year"),
    ("academic_records", "registration_status"),
]


def upgrade():
    op.create_table(
        "users",
        *_base_columns(),
        sa.Column("username", sa.String(length=80), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=False, unique=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("first_name", sa.String(length=120), nullable=True),
        sa.Column("last_name", sa.String(length=120), nullable=True),
        sa.Column("user_id", sa.String(length=8), nullable=False, unique=True),
        sa.Column("profile_data", sa.JSON(), nullable=True),
    )

    op.create_table(
        "departments",
        *_base_columns(),
        sa.Column("code", sa.String(length=9), nullable=False, unique=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
    )

    op.create_table(
        "programs",
        *_base_columns(),
        sa.Column("program_code", sa.String(length=9), nullable=False, unique=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("department_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("degree_level", sa.String(length=20), nullable=False),
        sa.Column("credits", sa.Integer(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
    )

    op.create_table(
        "courses",
        *_base_columns(),
        sa.Column("course_code", sa.String(length=9), nullable=False, unique=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("credits", sa.Float(), nullable=False),
        sa.Column("day_of_week", sa.JSON(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("location", sa.String(length=200), nullable=False),
        sa.Column("program_ids", sa.JSON(), nullable=False),
        sa.Column("prerequisites", sa.JSON(), nullable=False),
    )

    op.create_table(
        "attendance",
        *_base_columns(),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("course_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.UniqueConstraint("student_id", "course_id", "date", name="uq_attendance_student_course_date"),
    )

    op.create_table(
        "academic_records",
        *_base_columns(),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("course_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("semester", sa.String(length=40), nullable=False),
        sa.Column("academic_year", sa.String(length=9), nullable=False),
        sa.Column("registration_status", sa.String(length=20), nullable=False, server_default="registered"),
        sa.Column("grade", sa.JSON(), nullable=True),
        sa.UniqueConstraint(
            "student_id", "course_id", "semester", "academic_year", name="uq_academic_record_enrollment"
        ),
    )

    for table, column in INDEXES:
        op.create_index(f"ix_{table}_{column}", table, [column], unique=False)


def downgrade():
    for table, column in reversed(INDEXES):
        op.drop_index(f"ix_{table}_{column}", table_name=table)
    for table in ("academic_records", "attendance", "courses", "programs", "departments", "users"):
        op.drop_table(table)

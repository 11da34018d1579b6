"""create core tables

Revision ID: 20261019_0001
Revises: None
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


weekday_enum = sa.Enum("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", name="weekday")
substitution_status_enum = sa.Enum("pending", "approved", "completed", "cancelled", name="substitution_status")
ACTIVE_ONLY = sa.text("status IN ('pending', 'approved')")


def upgrade() -> None:
    op.create_table(
        "departments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_departments_code", "departments", ["code"])

    op.create_table(
        "batches",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False, unique=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("department_id", sa.String(length=36), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_batches_department_id", "batches", ["department_id"])

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("department_id", sa.String(length=36), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("credits", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_subjects_name", "subjects", ["name"])
    op.create_index("ix_subjects_department_id", "subjects", ["department_id"])

    op.create_table(
        "teachers",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_teachers_email", "teachers", ["email"], unique=True)
    op.create_index("ix_teachers_username", "teachers", ["username"])

    op.create_table(
        "teacher_departments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("department_id", sa.String(length=36), nullable=False),
        sa.UniqueConstraint("teacher_id", "department_id", name="uq_teacher_departments_teacher_department"),
    )
    op.create_index("ix_teacher_departments_teacher_id", "teacher_departments", ["teacher_id"])
    op.create_index("ix_teacher_departments_department_id", "teacher_departments", ["department_id"])

    op.create_table(
        "teacher_subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.UniqueConstraint("teacher_id", "subject_id", name="uq_teacher_subjects_teacher_subject"),
    )
    op.create_index("ix_teacher_subjects_teacher_id", "teacher_subjects", ["teacher_id"])
    op.create_index("ix_teacher_subjects_subject_id", "teacher_subjects", ["subject_id"])

    op.create_table(
        "students",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("roll_number", sa.String(length=50), nullable=False),
        sa.Column("batch_id", sa.String(length=36), nullable=False),
        sa.Column("department_id", sa.String(length=36), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_students_email", "students", ["email"])
    op.create_index("ix_students_roll_number", "students", ["roll_number"])
    op.create_index("ix_students_batch_id", "students", ["batch_id"])
    op.create_index("ix_students_department_id", "students", ["department_id"])

    op.create_table(
        "day_schedules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("batch_id", sa.String(length=36), nullable=False),
        sa.Column("weekday", weekday_enum, nullable=False),
        sa.Column("time_slots", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("academic_year", sa.String(length=20), nullable=False, server_default="2024-25"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("batch_id", "weekday", name="uq_day_schedules_batch_weekday"),
    )
    op.create_index("ix_day_schedules_batch_id", "day_schedules", ["batch_id"])
    op.create_index("ix_day_schedules_weekday", "day_schedules", ["weekday"])

    op.create_table(
        "substitution_requests",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("original_teacher_id", sa.String(length=36), nullable=False),
        sa.Column("substitute_teacher_id", sa.String(length=36), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("batch_id", sa.String(length=36), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("room_number", sa.String(length=50), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("status", substitution_status_enum, nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_substitution_requests_status", "substitution_requests", ["status"])
    op.create_index(
        "ix_substitution_requests_original_date",
        "substitution_requests",
        ["original_teacher_id", "date"],
    )
    op.create_index(
        "ix_substitution_requests_substitute_date",
        "substitution_requests",
        ["substitute_teacher_id", "date"],
    )
    op.create_index("ix_substitution_requests_batch_date", "substitution_requests", ["batch_id", "date"])
    op.create_index(
        "uq_substitution_requests_active_slot",
        "substitution_requests",
        ["original_teacher_id", "batch_id", "date", "start_time", "end_time"],
        unique=True,
        sqlite_where=ACTIVE_ONLY,
        postgresql_where=ACTIVE_ONLY,
    )

    op.create_table(
        "attendance_sessions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=True),
        sa.Column("batch_id", sa.String(length=36), nullable=False),
        sa.Column("class_time", sa.String(length=5), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("taken_by", sa.String(length=36), nullable=False),
        sa.Column("records", sa.JSON(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "date",
            "subject",
            "batch_id",
            "class_time",
            name="uq_attendance_sessions_date_subject_batch_time",
        ),
    )
    op.create_index("ix_attendance_sessions_date", "attendance_sessions", ["date"])
    op.create_index("ix_attendance_sessions_subject", "attendance_sessions", ["subject"])
    op.create_index("ix_attendance_sessions_batch_id", "attendance_sessions", ["batch_id"])
    op.create_index("ix_attendance_sessions_taken_by", "attendance_sessions", ["taken_by"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("actor_id", sa.String(length=36), nullable=True),
        sa.Column("actor_role", sa.String(length=20), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=False),
        sa.Column("entity_id", sa.String(length=100), nullable=False),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_actor_id", "activity_logs", ["actor_id"])
    op.create_index("ix_activity_logs_entity_id", "activity_logs", ["entity_id"])


def downgrade() -> None:
    op.drop_index("ix_activity_logs_entity_id", table_name="activity_logs")
    op.drop_index("ix_activity_logs_actor_id", table_name="activity_logs")
    op.drop_table("activity_logs")

    op.drop_index("ix_attendance_sessions_taken_by", table_name="attendance_sessions")
    op.drop_index("ix_attendance_sessions_batch_id", table_name="attendance_sessions")
    op.drop_index("ix_attendance_sessions_subject", table_name="attendance_sessions")
    op.drop_index("ix_attendance_sessions_date", table_name="attendance_sessions")
    op.drop_table("attendance_sessions")

    op.drop_index("uq_substitution_requests_active_slot", table_name="substitution_requests")
    op.drop_index("ix_substitution_requests_batch_date", table_name="substitution_requests")
    op.drop_index("ix_substitution_requests_substitute_date", table_name="substitution_requests")
    op.drop_index("ix_substitution_requests_original_date", table_name="substitution_requests")
    op.drop_index("ix_substitution_requests_status", table_name="substitution_requests")
    op.drop_table("substitution_requests")
    substitution_status_enum.drop(op.get_bind(), checkfirst=True)

    op.drop_index("ix_day_schedules_weekday", table_name="day_schedules")
    op.drop_index("ix_day_schedules_batch_id", table_name="day_schedules")
    op.drop_table("day_schedules")
    weekday_enum.drop(op.get_bind(), checkfirst=True)

    for table_name in ("students", "teacher_subjects", "teacher_departments", "teachers", "subjects", "batches", "departments"):
        op.drop_table(table_name)

import uuid
import datetime as dt

from sqlalchemy import JSON, Date, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from attendsync.db.base import Base


class AttendanceSession(Base):
    """One marked class. Records are kept as stored, student references included."""

    __tablename__ = "attendance_sessions"
    __table_args__ = (
        UniqueConstraint(
            "date",
            "subject",
            "batch_id",
            "class_time",
            name="uq_attendance_sessions_date_subject_batch_time",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    subject: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    subject_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    batch_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    class_time: Mapped[str] = mapped_column(String(5), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    taken_by: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    records: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

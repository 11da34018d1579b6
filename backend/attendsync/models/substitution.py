import uuid
import datetime as dt
from enum import Enum

from sqlalchemy import Date, DateTime, Enum as SAEnum, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from attendsync.db.base import Base


class SubstitutionStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    completed = "completed"
    cancelled = "cancelled"


ACTIVE_SUBSTITUTION_STATUSES = frozenset({SubstitutionStatus.pending, SubstitutionStatus.approved})

# At most one pending/approved request per slot of the original teacher.
_ACTIVE_ONLY = text("status IN ('pending', 'approved')")


class SubstitutionRequest(Base):
    __tablename__ = "substitution_requests"
    __table_args__ = (
        Index(
            "uq_substitution_requests_active_slot",
            "original_teacher_id",
            "batch_id",
            "date",
            "start_time",
            "end_time",
            unique=True,
            sqlite_where=_ACTIVE_ONLY,
            postgresql_where=_ACTIVE_ONLY,
        ),
        Index("ix_substitution_requests_original_date", "original_teacher_id", "date"),
        Index("ix_substitution_requests_substitute_date", "substitute_teacher_id", "date"),
        Index("ix_substitution_requests_batch_date", "batch_id", "date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    original_teacher_id: Mapped[str] = mapped_column(String(36), nullable=False)
    substitute_teacher_id: Mapped[str] = mapped_column(String(36), nullable=False)
    subject_id: Mapped[str] = mapped_column(String(36), nullable=False)
    batch_id: Mapped[str] = mapped_column(String(36), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    room_number: Mapped[str] = mapped_column(String(50), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[SubstitutionStatus] = mapped_column(
        SAEnum(
            SubstitutionStatus,
            name="substitution_status",
            values_callable=lambda items: [item.value for item in items],
        ),
        nullable=False,
        default=SubstitutionStatus.pending,
        index=True,
    )
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

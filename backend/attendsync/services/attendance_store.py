from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from attendsync.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from attendsync.models.attendance import AttendanceSession
from attendsync.schemas.attendance import AttendanceMark, AttendanceStatus
from attendsync.services import directory
from attendsync.services.audit import log_activity

logger = logging.getLogger(__name__)

DUPLICATE_SESSION_MESSAGE = (
    "Attendance has already been marked for this class. "
    "You cannot mark attendance twice for the same class."
)


def status_key(subject: str, batch_id: str, class_time: str) -> str:
    return f"{subject}-{batch_id}-{class_time}"


class AttendanceStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _filtered(
        self,
        query,
        *,
        start_date: date | None,
        end_date: date | None,
        subject: str | None,
        batch_id: str | None,
        taken_by: str | None,
    ):
        if start_date is not None:
            query = query.where(AttendanceSession.date >= start_date)
        if end_date is not None:
            query = query.where(AttendanceSession.date <= end_date)
        if subject:
            query = query.where(AttendanceSession.subject == subject)
        if batch_id:
            query = query.where(AttendanceSession.batch_id == batch_id)
        if taken_by:
            query = query.where(AttendanceSession.taken_by == taken_by)
        return query

    def list_sessions(
        self,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
        subject: str | None = None,
        batch_id: str | None = None,
        taken_by: str | None = None,
        newest_first: bool = False,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[AttendanceSession]:
        query = self._filtered(
            select(AttendanceSession),
            start_date=start_date,
            end_date=end_date,
            subject=subject,
            batch_id=batch_id,
            taken_by=taken_by,
        )
        if newest_first:
            query = query.order_by(
                AttendanceSession.date.desc(), AttendanceSession.class_time.desc(), AttendanceSession.id
            )
        else:
            query = query.order_by(AttendanceSession.date, AttendanceSession.class_time, AttendanceSession.id)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return list(self.db.execute(query).scalars())

    def count_sessions(
        self,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
        subject: str | None = None,
        batch_id: str | None = None,
        taken_by: str | None = None,
    ) -> int:
        query = self._filtered(
            select(func.count()).select_from(AttendanceSession),
            start_date=start_date,
            end_date=end_date,
            subject=subject,
            batch_id=batch_id,
            taken_by=taken_by,
        )
        return int(self.db.execute(query).scalar_one())

    def create_session(self, *, actor_teacher_id: str, payload: AttendanceMark) -> AttendanceSession:
        subject = directory.teacher_subject_by_name(self.db, actor_teacher_id, payload.subject)
        if subject is None:
            if not directory.subject_exists_by_name(self.db, payload.subject):
                raise NotFoundError("Subject", payload.subject, message="Subject not found")
            raise ForbiddenError("You can only mark attendance for your assigned subjects")
        directory.get_batch(self.db, payload.batch_id)

        session = AttendanceSession(
            date=payload.date,
            subject=payload.subject,
            subject_id=subject.id,
            batch_id=payload.batch_id,
            class_time=payload.class_time,
            duration=payload.duration,
            taken_by=actor_teacher_id,
            records=[
                {"studentId": item.student_id, "rollNumber": item.roll_number, "status": item.status}
                for item in payload.records
            ],
            month=payload.date.month,
            year=payload.date.year,
        )
        self.db.add(session)
        try:
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError(DUPLICATE_SESSION_MESSAGE) from exc

        log_activity(
            self.db,
            actor_id=actor_teacher_id,
            actor_role="teacher",
            action="attendance.mark",
            entity_type="attendance_session",
            entity_id=session.id,
            details={
                "subject": session.subject,
                "batch_id": session.batch_id,
                "date": session.date.isoformat(),
                "class_time": session.class_time,
                "records": len(session.records),
            },
        )
        logger.info(
            "Attendance marked by %s: %s batch=%s %s %s (%d record(s))",
            actor_teacher_id,
            session.subject,
            session.batch_id,
            session.date.isoformat(),
            session.class_time,
            len(session.records),
        )
        return session

    def attendance_status(self, teacher_id: str, on_date: date) -> AttendanceStatus:
        sessions = self.db.execute(
            select(AttendanceSession.subject, AttendanceSession.batch_id, AttendanceSession.class_time).where(
                AttendanceSession.taken_by == teacher_id,
                AttendanceSession.date == on_date,
            )
        ).all()
        marked = {status_key(subject, batch_id, class_time): True for subject, batch_id, class_time in sessions}
        return AttendanceStatus(attendance_status=marked, total_classes=len(marked))

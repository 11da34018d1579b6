from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.orm import Session

from attendsync.core.exceptions import InvalidInputError
from attendsync.schemas.substitution import AvailableTeacher, SubjectBrief
from attendsync.services import directory
from attendsync.services.conflict_service import ConflictScanner, is_free
from attendsync.services.overlap import validate_time_range
from attendsync.services.schedule_store import ScheduleStore

logger = logging.getLogger(__name__)


class SubstituteFinder:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.scanner = ConflictScanner(ScheduleStore(db))

    def find(
        self,
        *,
        on_date: date,
        start_time: str,
        end_time: str,
        batch_id: str,
        subject_id: str,
        requesting_teacher_id: str,
    ) -> list[AvailableTeacher]:
        """Same-department teachers, other than the requester, who are free for the window.

        An empty list means nobody is free; a missing batch or timetable
        raises instead, because then the request cannot be evaluated.
        """
        start, end = validate_time_range(start_time, end_time)
        batch = directory.get_batch(self.db, batch_id)
        if not batch.department_id:
            raise InvalidInputError("Batch has no department", details={"batch_id": batch_id})

        weekday = self.scanner.scheduled_weekday(on_date, batch_id)
        commitments = self.scanner.commitments(weekday, batch_id)

        candidates = [
            teacher
            for teacher in directory.list_active_teachers_in_department(self.db, batch.department_id)
            if teacher.id != requesting_teacher_id
        ]
        eligible = [
            teacher for teacher in candidates if is_free(commitments.get(teacher.id, []), start, end)
        ]
        subjects = directory.subjects_by_teacher(self.db, [teacher.id for teacher in eligible])

        logger.info(
            "Substitute lookup batch=%s subject=%s %s %s-%s: %d candidate(s), %d free",
            batch_id,
            subject_id,
            on_date.isoformat(),
            start,
            end,
            len(candidates),
            len(eligible),
        )
        output = [
            AvailableTeacher(
                teacher_id=teacher.id,
                name=teacher.name,
                email=teacher.email,
                username=teacher.username,
                subjects=[
                    SubjectBrief(id=item.id, name=item.name, code=item.code)
                    for item in subjects.get(teacher.id, [])
                ],
            )
            for teacher in eligible
        ]
        output.sort(key=lambda item: (item.name.lower(), item.teacher_id))
        return output

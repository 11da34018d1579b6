"""Per-student, per-subject attendance aggregation.

Columns come from the subjects actually present in the sessions, so a
renamed subject shows up as its own column and a subject with no sessions
in range does not show up at all. Overall figures are class-weighted: they
are computed from summed class counts, never by averaging percentages.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping, Protocol, Sequence

from attendsync.schemas.attendance import (
    AttendanceMatrix,
    SessionStatistics,
    StudentMatrixRow,
    StudentSessionStats,
    StudentSubjectSummary,
    SubjectAttendance,
    SubjectSummary,
)
from attendsync.services.identity import CanonicalId, record_student_ref, resolve_student_ref

logger = logging.getLogger(__name__)


class SessionLike(Protocol):
    subject: str
    records: list[Mapping[str, Any]]


@dataclass(frozen=True)
class StudentInfo:
    student_id: str
    name: str
    roll_number: str
    department: str = "N/A"
    batch: str = "N/A"


@dataclass
class _Tally:
    total: int = 0
    present: int = 0


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def percentage(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return round_half_up(Decimal(100 * part) / Decimal(whole))


def _attributed_records(session: SessionLike) -> Iterable[tuple[CanonicalId, Mapping[str, Any]]]:
    """Yields each student's first record in a session; unattributable records are dropped."""
    seen: set[CanonicalId] = set()
    skipped = 0
    for record in session.records or []:
        student_id = resolve_student_ref(record_student_ref(record)) if isinstance(record, Mapping) else None
        if student_id is None:
            skipped += 1
            continue
        if student_id in seen:
            continue
        seen.add(student_id)
        yield student_id, record
    if skipped:
        logger.debug("Skipped %d unattributable record(s) in %s session", skipped, session.subject)


def _is_present(record: Mapping[str, Any]) -> bool:
    return str(record.get("status", "")).strip().lower() == "present"


def index_sessions(sessions: Iterable[SessionLike]) -> tuple[list[str], dict[CanonicalId, dict[str, _Tally]], dict[str, int]]:
    """One pass over the sessions: sorted subject columns, tallies per student, sessions per subject."""
    tallies: dict[CanonicalId, dict[str, _Tally]] = defaultdict(lambda: defaultdict(_Tally))
    session_counts: dict[str, int] = defaultdict(int)
    for session in sessions:
        session_counts[session.subject] += 1
        for student_id, record in _attributed_records(session):
            tally = tallies[student_id][session.subject]
            tally.total += 1
            if _is_present(record):
                tally.present += 1
    return sorted(session_counts), tallies, dict(session_counts)


def _row(student: StudentInfo, subjects: list[str], tallies: Mapping[str, _Tally]) -> StudentMatrixRow:
    per_subject: dict[str, SubjectAttendance] = {}
    for subject in subjects:
        tally = tallies.get(subject) or _Tally()
        per_subject[subject] = SubjectAttendance(
            total_classes=tally.total,
            present_classes=tally.present,
            percentage=percentage(tally.present, tally.total),
        )
    total_classes = sum(item.total_classes for item in per_subject.values())
    total_present = sum(item.present_classes for item in per_subject.values())
    return StudentMatrixRow(
        student_id=student.student_id,
        name=student.name,
        roll_number=student.roll_number,
        department=student.department,
        batch=student.batch,
        subjects=per_subject,
        total_classes=total_classes,
        total_present=total_present,
        overall_percentage=percentage(total_present, total_classes),
    )


def _subject_summary(subject: str, rows: Sequence[StudentMatrixRow], sessions: int) -> SubjectSummary:
    if not rows:
        return SubjectSummary(subject=subject, sessions=sessions, total_classes=0, average_percentage=0)
    stats = [row.subjects[subject] for row in rows]
    average = Decimal(sum(item.percentage for item in stats)) / Decimal(len(stats))
    return SubjectSummary(
        subject=subject,
        sessions=sessions,
        total_classes=max(item.total_classes for item in stats),
        average_percentage=round_half_up(average),
    )


def build_attendance_matrix(
    students: Sequence[StudentInfo],
    sessions: Iterable[SessionLike],
    *,
    start_date: date | None = None,
    end_date: date | None = None,
) -> AttendanceMatrix:
    subjects, tallies, session_counts = index_sessions(sessions)
    rows = [_row(student, subjects, tallies.get(CanonicalId(str(student.student_id)), {})) for student in students]
    summary = [_subject_summary(subject, rows, session_counts[subject]) for subject in subjects]
    logger.info(
        "Attendance matrix built: %d student(s), %d subject(s), %d session(s)",
        len(rows),
        len(subjects),
        sum(session_counts.values()),
    )
    return AttendanceMatrix(
        students=rows,
        subjects=subjects,
        summary=summary,
        total_students=len(rows),
        start_date=start_date,
        end_date=end_date,
    )


def summarize_student(student_id: str, sessions: Iterable[SessionLike]) -> list[StudentSubjectSummary]:
    """Subject breakdown for one student, limited to subjects the student was marked in."""
    _, tallies, _ = index_sessions(sessions)
    own = tallies.get(CanonicalId(str(student_id)), {})
    return [
        StudentSubjectSummary(
            subject=subject,
            total_classes=tally.total,
            present_classes=tally.present,
            percentage=percentage(tally.present, tally.total),
        )
        for subject, tally in sorted(own.items())
    ]


def session_statistics(
    sessions: Sequence[SessionLike],
    *,
    subject: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> SessionStatistics:
    per_student: dict[CanonicalId, _Tally] = defaultdict(_Tally)
    roll_numbers: dict[CanonicalId, str] = {}
    for session in sessions:
        for student_id, record in _attributed_records(session):
            roll_numbers.setdefault(student_id, str(record.get("rollNumber") or record.get("roll_number") or ""))
            tally = per_student[student_id]
            tally.total += 1
            if _is_present(record):
                tally.present += 1

    total_records = sum(item.total for item in per_student.values())
    total_present = sum(item.present for item in per_student.values())
    students = [
        StudentSessionStats(
            student_id=student_id,
            roll_number=roll_numbers[student_id],
            present=tally.present,
            total=tally.total,
            percentage=percentage(tally.present, tally.total),
        )
        for student_id, tally in per_student.items()
    ]
    students.sort(key=lambda item: (item.roll_number, item.student_id))
    return SessionStatistics(
        subject=subject,
        total_classes=len(sessions),
        overall_percentage=percentage(total_present, total_records),
        start_date=start_date,
        end_date=end_date,
        student_statistics=students,
    )

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from attendsync.core.exceptions import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from attendsync.models.batch import Batch
from attendsync.models.subject import Subject
from attendsync.models.substitution import (
    ACTIVE_SUBSTITUTION_STATUSES,
    SubstitutionRequest,
    SubstitutionStatus,
)
from attendsync.models.teacher import Teacher
from attendsync.schemas.substitution import SubstitutionCreate, SubstitutionOut, TeacherBrief
from attendsync.services import directory
from attendsync.services.audit import log_activity
from attendsync.services.overlap import validate_time_range

logger = logging.getLogger(__name__)

# pending -> completed is not allowed: a class is approved before it is held.
ALLOWED_TRANSITIONS: dict[SubstitutionStatus, frozenset[SubstitutionStatus]] = {
    SubstitutionStatus.pending: frozenset({SubstitutionStatus.approved, SubstitutionStatus.cancelled}),
    SubstitutionStatus.approved: frozenset({SubstitutionStatus.completed, SubstitutionStatus.cancelled}),
    SubstitutionStatus.completed: frozenset(),
    SubstitutionStatus.cancelled: frozenset(),
}

DUPLICATE_MESSAGE = "A substitution already exists for this time slot"


def _audit(db: Session, request: SubstitutionRequest, *, actor_id: str, action: str, details: dict) -> None:
    log_activity(
        db,
        actor_id=actor_id,
        actor_role="teacher",
        action=action,
        entity_type="substitution_request",
        entity_id=request.id,
        details=details,
    )


class SubstitutionLedger:
    """Lifecycle of substitution requests.

    The original teacher creates and cancels; the substitute approves and
    completes. Uniqueness of the active request per slot is enforced by
    the ``uq_substitution_requests_active_slot`` partial index, so two
    concurrent creators cannot both succeed.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, request_id: str) -> SubstitutionRequest:
        request = self.db.get(SubstitutionRequest, request_id)
        if request is None:
            raise NotFoundError("SubstitutionRequest", request_id, message="Substitution not found")
        return request

    def find_active(
        self,
        original_teacher_id: str,
        batch_id: str,
        on_date: date,
        start_time: str,
        end_time: str,
    ) -> SubstitutionRequest | None:
        return self.db.execute(
            select(SubstitutionRequest).where(
                SubstitutionRequest.original_teacher_id == original_teacher_id,
                SubstitutionRequest.batch_id == batch_id,
                SubstitutionRequest.date == on_date,
                SubstitutionRequest.start_time == start_time,
                SubstitutionRequest.end_time == end_time,
                SubstitutionRequest.status.in_(list(ACTIVE_SUBSTITUTION_STATUSES)),
            )
        ).scalars().first()

    def create(self, *, actor_teacher_id: str, payload: SubstitutionCreate) -> SubstitutionRequest:
        if actor_teacher_id != payload.original_teacher_id:
            raise ForbiddenError("You can only create substitutions for your own classes")
        start, end = validate_time_range(payload.start_time, payload.end_time)
        if payload.substitute_teacher_id == payload.original_teacher_id:
            raise InvalidInputError("Substitute teacher must differ from the original teacher")

        directory.get_teacher(self.db, payload.original_teacher_id)
        directory.get_teacher(self.db, payload.substitute_teacher_id)
        directory.get_batch(self.db, payload.batch_id)
        directory.get_subject(self.db, payload.subject_id)

        # Fast path for the common case; the partial unique index decides races.
        if self.find_active(payload.original_teacher_id, payload.batch_id, payload.date, start, end) is not None:
            raise ConflictError(DUPLICATE_MESSAGE)

        request = SubstitutionRequest(
            original_teacher_id=payload.original_teacher_id,
            substitute_teacher_id=payload.substitute_teacher_id,
            subject_id=payload.subject_id,
            batch_id=payload.batch_id,
            date=payload.date,
            start_time=start,
            end_time=end,
            room_number=payload.room_number,
            reason=payload.reason,
            status=SubstitutionStatus.pending,
            notes="",
        )
        self.db.add(request)
        try:
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError(DUPLICATE_MESSAGE) from exc

        _audit(
            self.db,
            request,
            actor_id=actor_teacher_id,
            action="substitution.create",
            details={
                "substitute_teacher_id": request.substitute_teacher_id,
                "batch_id": request.batch_id,
                "date": request.date.isoformat(),
                "start_time": start,
                "end_time": end,
            },
        )
        logger.info(
            "Substitution %s created by %s for batch %s on %s %s-%s",
            request.id,
            actor_teacher_id,
            request.batch_id,
            request.date.isoformat(),
            start,
            end,
        )
        return request

    def update_status(
        self,
        *,
        actor_teacher_id: str,
        request_id: str,
        status: SubstitutionStatus | str,
        notes: str | None = None,
    ) -> SubstitutionRequest:
        request = self.get(request_id)
        if request.substitute_teacher_id != actor_teacher_id:
            raise ForbiddenError("Only the substitute teacher can update this substitution")

        target = SubstitutionStatus(status)
        current = SubstitutionStatus(request.status)
        if target not in ALLOWED_TRANSITIONS[current]:
            raise ConflictError(
                f"Cannot change substitution status from {current.value} to {target.value}",
                details={
                    "current_status": current.value,
                    "allowed": sorted(item.value for item in ALLOWED_TRANSITIONS[current]),
                },
            )

        request.status = target
        if notes and notes.strip():
            request.notes = notes.strip()
        self.db.flush()
        _audit(
            self.db,
            request,
            actor_id=actor_teacher_id,
            action="substitution.status.update",
            details={"from": current.value, "to": target.value},
        )
        logger.info("Substitution %s moved %s -> %s", request.id, current.value, target.value)
        return request

    def cancel(self, *, actor_teacher_id: str, request_id: str) -> SubstitutionRequest:
        request = self.get(request_id)
        if request.original_teacher_id != actor_teacher_id:
            raise ForbiddenError("Only the original teacher can cancel this substitution")

        current = SubstitutionStatus(request.status)
        if current not in ACTIVE_SUBSTITUTION_STATUSES:
            raise ConflictError(
                "Cannot cancel substitution with current status",
                details={"current_status": current.value},
            )
        request.status = SubstitutionStatus.cancelled
        self.db.flush()
        _audit(
            self.db,
            request,
            actor_id=actor_teacher_id,
            action="substitution.cancel",
            details={"from": current.value},
        )
        logger.info("Substitution %s cancelled by %s", request.id, actor_teacher_id)
        return request

    def list_for_teacher(
        self,
        teacher_id: str,
        *,
        status: SubstitutionStatus | None = None,
        on_date: date | None = None,
    ) -> list[SubstitutionRequest]:
        query = select(SubstitutionRequest).where(
            or_(
                SubstitutionRequest.original_teacher_id == teacher_id,
                SubstitutionRequest.substitute_teacher_id == teacher_id,
            )
        )
        if status is not None:
            query = query.where(SubstitutionRequest.status == status)
        if on_date is not None:
            query = query.where(SubstitutionRequest.date == on_date)
        query = query.order_by(SubstitutionRequest.date.desc(), SubstitutionRequest.start_time.asc())
        return list(self.db.execute(query).scalars())

    def list_for_attendance(self, teacher_id: str, *, on_date: date | None = None) -> list[SubstitutionRequest]:
        query = select(SubstitutionRequest).where(
            SubstitutionRequest.substitute_teacher_id == teacher_id,
            SubstitutionRequest.status == SubstitutionStatus.approved,
        )
        if on_date is not None:
            query = query.where(SubstitutionRequest.date == on_date)
        query = query.order_by(SubstitutionRequest.date.asc(), SubstitutionRequest.start_time.asc())
        return list(self.db.execute(query).scalars())


def hydrate_substitutions(db: Session, requests: list[SubstitutionRequest]) -> list[SubstitutionOut]:
    if not requests:
        return []
    teacher_ids = {item.original_teacher_id for item in requests} | {item.substitute_teacher_id for item in requests}
    teachers = {
        item.id: item for item in db.execute(select(Teacher).where(Teacher.id.in_(teacher_ids))).scalars()
    }
    subjects = {
        item.id: item
        for item in db.execute(
            select(Subject).where(Subject.id.in_({request.subject_id for request in requests}))
        ).scalars()
    }
    batches = {
        item.id: item
        for item in db.execute(select(Batch).where(Batch.id.in_({request.batch_id for request in requests}))).scalars()
    }

    def _brief(teacher_id: str) -> TeacherBrief | None:
        teacher = teachers.get(teacher_id)
        if teacher is None:
            return None
        return TeacherBrief(id=teacher.id, name=teacher.name, email=teacher.email)

    output: list[SubstitutionOut] = []
    for request in requests:
        subject = subjects.get(request.subject_id)
        batch = batches.get(request.batch_id)
        item = SubstitutionOut.model_validate(request)
        item.original_teacher = _brief(request.original_teacher_id)
        item.substitute_teacher = _brief(request.substitute_teacher_id)
        item.subject_name = subject.name if subject else None
        item.subject_code = subject.code if subject else None
        item.batch_name = batch.name if batch else None
        output.append(item)
    return output

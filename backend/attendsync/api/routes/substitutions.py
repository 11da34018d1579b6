from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from attendsync.api.deps import Actor, get_current_teacher, get_db, require_roles
from attendsync.models.substitution import SubstitutionStatus
from attendsync.models.teacher import Teacher
from attendsync.schemas.substitution import (
    AvailableTeacher,
    AvailableTeachersQuery,
    SubstitutionCancelOut,
    SubstitutionCreate,
    SubstitutionOut,
    SubstitutionStatusUpdate,
)
from attendsync.services.substitute_finder import SubstituteFinder
from attendsync.services.substitution_ledger import SubstitutionLedger, hydrate_substitutions

router = APIRouter()


def _ensure_self_or_admin(actor: Actor, teacher_id: str) -> None:
    if actor.role != "admin" and actor.id != teacher_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")


@router.post("/available-teachers", response_model=list[AvailableTeacher])
def list_available_teachers(
    payload: AvailableTeachersQuery,
    current_teacher: Teacher = Depends(get_current_teacher),
    db: Session = Depends(get_db),
) -> list[AvailableTeacher]:
    return SubstituteFinder(db).find(
        on_date=payload.date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        batch_id=payload.batch_id,
        subject_id=payload.subject_id,
        requesting_teacher_id=current_teacher.id,
    )


@router.get("/teacher/{teacher_id}", response_model=list[SubstitutionOut])
def list_teacher_substitutions(
    teacher_id: str,
    request_status: SubstitutionStatus | None = Query(default=None, alias="status"),
    on_date: date | None = Query(default=None, alias="date"),
    actor: Actor = Depends(require_roles("teacher", "admin")),
    db: Session = Depends(get_db),
) -> list[SubstitutionOut]:
    _ensure_self_or_admin(actor, teacher_id)
    requests = SubstitutionLedger(db).list_for_teacher(teacher_id, status=request_status, on_date=on_date)
    return hydrate_substitutions(db, requests)


@router.get("/attendance/{teacher_id}", response_model=list[SubstitutionOut])
def list_substitutions_for_attendance(
    teacher_id: str,
    on_date: date | None = Query(default=None, alias="date"),
    actor: Actor = Depends(require_roles("teacher", "admin")),
    db: Session = Depends(get_db),
) -> list[SubstitutionOut]:
    _ensure_self_or_admin(actor, teacher_id)
    requests = SubstitutionLedger(db).list_for_attendance(teacher_id, on_date=on_date)
    return hydrate_substitutions(db, requests)


@router.post("", response_model=SubstitutionOut, status_code=status.HTTP_201_CREATED)
def create_substitution(
    payload: SubstitutionCreate,
    current_teacher: Teacher = Depends(get_current_teacher),
    db: Session = Depends(get_db),
) -> SubstitutionOut:
    request = SubstitutionLedger(db).create(actor_teacher_id=current_teacher.id, payload=payload)
    db.commit()
    db.refresh(request)
    return hydrate_substitutions(db, [request])[0]


@router.put("/{request_id}/status", response_model=SubstitutionOut)
def update_substitution_status(
    request_id: str,
    payload: SubstitutionStatusUpdate,
    current_teacher: Teacher = Depends(get_current_teacher),
    db: Session = Depends(get_db),
) -> SubstitutionOut:
    request = SubstitutionLedger(db).update_status(
        actor_teacher_id=current_teacher.id,
        request_id=request_id,
        status=payload.status,
        notes=payload.notes,
    )
    db.commit()
    db.refresh(request)
    return hydrate_substitutions(db, [request])[0]


@router.put("/{request_id}/cancel", response_model=SubstitutionCancelOut)
def cancel_substitution(
    request_id: str,
    current_teacher: Teacher = Depends(get_current_teacher),
    db: Session = Depends(get_db),
) -> SubstitutionCancelOut:
    request = SubstitutionLedger(db).cancel(actor_teacher_id=current_teacher.id, request_id=request_id)
    db.commit()
    return SubstitutionCancelOut(id=request.id, status=request.status)

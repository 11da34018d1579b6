from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from attendsync.api.deps import Actor, get_current_actor, get_db, require_roles
from attendsync.models.timetable import DaySchedule
from attendsync.schemas.timetable import DayScheduleOut, DayScheduleUpsert, TeacherDailySchedule
from attendsync.services.schedule_store import ScheduleStore, schedule_slots

router = APIRouter()


def _schedule_out(schedule: DaySchedule) -> DayScheduleOut:
    return DayScheduleOut(
        id=schedule.id,
        batch_id=schedule.batch_id,
        weekday=schedule.weekday,
        time_slots=schedule_slots(schedule),
        academic_year=schedule.academic_year,
        is_active=schedule.is_active,
    )


@router.get("/teacher/{teacher_id}/daily", response_model=TeacherDailySchedule)
def get_teacher_daily_schedule(
    teacher_id: str,
    on_date: date = Query(alias="date"),
    actor: Actor = Depends(require_roles("teacher", "admin")),
    db: Session = Depends(get_db),
) -> TeacherDailySchedule:
    if actor.role == "teacher" and actor.id != teacher_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    return ScheduleStore(db).teacher_daily_schedule(teacher_id, on_date)


@router.get("/{batch_id}/{weekday}", response_model=DayScheduleOut)
def get_day_schedule(
    batch_id: str,
    weekday: str,
    _: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> DayScheduleOut:
    schedule = ScheduleStore(db).get_day_schedule(batch_id, weekday)
    return _schedule_out(schedule)


@router.put("/{batch_id}/{weekday}", response_model=DayScheduleOut)
def upsert_day_schedule(
    batch_id: str,
    weekday: str,
    payload: DayScheduleUpsert,
    _: Actor = Depends(require_roles("admin")),
    db: Session = Depends(get_db),
) -> DayScheduleOut:
    schedule = ScheduleStore(db).upsert_day_schedule(batch_id, weekday, payload)
    db.commit()
    db.refresh(schedule)
    return _schedule_out(schedule)

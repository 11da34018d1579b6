from __future__ import annotations

import logging
from datetime import date

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from attendsync.core.exceptions import InvalidInputError, NotFoundError
from attendsync.models.batch import Batch
from attendsync.models.timetable import DaySchedule, Weekday
from attendsync.schemas.timetable import (
    DayScheduleUpsert,
    TeacherDailySchedule,
    TeacherScheduleEntry,
    TimeSlot,
)
from attendsync.services.overlap import overlaps, weekday_for_date, weekday_name

logger = logging.getLogger(__name__)


def parse_weekday(value: str) -> Weekday:
    normalized = (value or "").strip().capitalize()
    try:
        return Weekday(normalized)
    except ValueError as exc:
        raise InvalidInputError(
            f"Unknown weekday '{value}'. Expected Monday to Saturday.",
            details={"weekday": value},
        ) from exc


def schedule_slots(schedule: DaySchedule) -> list[TimeSlot]:
    """Parses the stored slots of a schedule, skipping entries that no longer validate."""
    slots: list[TimeSlot] = []
    for position, item in enumerate(schedule.time_slots or []):
        try:
            slots.append(TimeSlot.model_validate(item))
        except ValidationError as exc:
            logger.warning(
                "Skipping unreadable slot %d of schedule %s (batch %s): %s",
                position,
                schedule.id,
                schedule.batch_id,
                exc.errors(include_url=False),
            )
    return slots


def find_overlapping_slots(slots: list[TimeSlot]) -> list[tuple[TimeSlot, TimeSlot]]:
    ordered = sorted(slots, key=lambda slot: (slot.start_time, slot.end_time))
    clashes: list[tuple[TimeSlot, TimeSlot]] = []
    for index, current in enumerate(ordered):
        for following in ordered[index + 1 :]:
            if following.start_time >= current.end_time:
                break
            if overlaps(current.start_time, current.end_time, following.start_time, following.end_time):
                clashes.append((current, following))
    return clashes


class ScheduleStore:
    """Read access to day schedules, plus the admin upsert used to load them."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_day_schedule(self, batch_id: str, weekday: Weekday | str) -> DaySchedule:
        day = weekday if isinstance(weekday, Weekday) else parse_weekday(weekday)
        schedule = self.db.execute(
            select(DaySchedule).where(
                DaySchedule.batch_id == batch_id,
                DaySchedule.weekday == day,
                DaySchedule.is_active.is_(True),
            )
        ).scalar_one_or_none()
        if schedule is None:
            raise NotFoundError(
                "DaySchedule",
                f"{batch_id}/{day.value}",
                message="No timetable found for this day and batch",
            )
        return schedule

    def list_day_schedules(
        self,
        weekday: Weekday | str,
        excluding_batch_id: str | None = None,
    ) -> list[DaySchedule]:
        day = weekday if isinstance(weekday, Weekday) else parse_weekday(weekday)
        query = select(DaySchedule).where(DaySchedule.weekday == day, DaySchedule.is_active.is_(True))
        if excluding_batch_id is not None:
            query = query.where(DaySchedule.batch_id != excluding_batch_id)
        return list(self.db.execute(query.order_by(DaySchedule.batch_id)).scalars())

    def teacher_daily_schedule(self, teacher_id: str, on_date: date) -> TeacherDailySchedule:
        weekday = weekday_for_date(on_date)
        entries: list[TeacherScheduleEntry] = []
        if weekday is not None:
            for schedule in self.list_day_schedules(weekday):
                for slot in schedule_slots(schedule):
                    if slot.is_break or slot.teacher_id != teacher_id:
                        continue
                    entries.append(
                        TeacherScheduleEntry(
                            start_time=slot.start_time,
                            end_time=slot.end_time,
                            subject_id=slot.subject_id,
                            batch_id=schedule.batch_id,
                            room_number=slot.room_number,
                            schedule_id=schedule.id,
                        )
                    )
        entries.sort(key=lambda item: (item.start_time, item.batch_id))
        return TeacherDailySchedule(
            teacher_id=teacher_id,
            weekday=weekday_name(on_date),
            schedule=entries,
        )

    def upsert_day_schedule(self, batch_id: str, weekday: Weekday | str, payload: DayScheduleUpsert) -> DaySchedule:
        day = weekday if isinstance(weekday, Weekday) else parse_weekday(weekday)
        if self.db.get(Batch, batch_id) is None:
            raise NotFoundError("Batch", batch_id)

        clashes = find_overlapping_slots(payload.time_slots)
        if clashes:
            raise InvalidInputError(
                "Time slots overlap within the same day",
                details={
                    "overlaps": [
                        f"{first.start_time}-{first.end_time} / {second.start_time}-{second.end_time}"
                        for first, second in clashes
                    ]
                },
            )

        stored_slots = [slot.model_dump(by_alias=True) for slot in payload.time_slots]
        schedule = self.db.execute(
            select(DaySchedule).where(DaySchedule.batch_id == batch_id, DaySchedule.weekday == day)
        ).scalar_one_or_none()
        if schedule is None:
            schedule = DaySchedule(batch_id=batch_id, weekday=day)
            self.db.add(schedule)
        schedule.time_slots = stored_slots
        schedule.academic_year = payload.academic_year
        schedule.is_active = payload.is_active
        self.db.flush()
        logger.info("Stored %d slot(s) for batch %s on %s", len(stored_slots), batch_id, day.value)
        return schedule

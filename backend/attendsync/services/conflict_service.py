from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from attendsync.core.exceptions import NotFoundError
from attendsync.models.timetable import DaySchedule, Weekday
from attendsync.schemas.timetable import TimeSlot
from attendsync.services.overlap import overlaps, validate_time_range, weekday_for_date, weekday_name
from attendsync.services.schedule_store import ScheduleStore, schedule_slots


@dataclass(frozen=True)
class Commitment:
    batch_id: str
    start_time: str
    end_time: str
    subject_id: str | None = None


def _teaching_slots(slots: Iterable[TimeSlot]) -> Iterable[TimeSlot]:
    return (slot for slot in slots if not slot.is_break and slot.teacher_id)


def _first_clash(
    schedule: DaySchedule,
    *,
    teacher_id: str,
    start_time: str,
    end_time: str,
) -> Commitment | None:
    for slot in _teaching_slots(schedule_slots(schedule)):
        if slot.teacher_id != teacher_id:
            continue
        if overlaps(start_time, end_time, slot.start_time, slot.end_time):
            return Commitment(schedule.batch_id, slot.start_time, slot.end_time, slot.subject_id)
    return None


class ConflictScanner:
    """Decides whether a teacher already teaches somewhere during a window on a date.

    The target batch's schedule must exist; it is scanned first, then every
    other batch's schedule for the same weekday.
    """

    def __init__(self, store: ScheduleStore) -> None:
        self.store = store

    def scheduled_weekday(self, on_date: date, batch_id: str) -> Weekday:
        weekday = weekday_for_date(on_date)
        if weekday is None:
            raise NotFoundError(
                "DaySchedule",
                f"{batch_id}/{weekday_name(on_date)}",
                message="No timetable found for this day and batch",
            )
        return weekday

    def find_conflict(
        self,
        teacher_id: str,
        on_date: date,
        start_time: str,
        end_time: str,
        exclude_batch_id: str,
    ) -> Commitment | None:
        start, end = validate_time_range(start_time, end_time)
        weekday = self.scheduled_weekday(on_date, exclude_batch_id)

        target = self.store.get_day_schedule(exclude_batch_id, weekday)
        clash = _first_clash(target, teacher_id=teacher_id, start_time=start, end_time=end)
        if clash is not None:
            return clash

        for schedule in self.store.list_day_schedules(weekday, excluding_batch_id=exclude_batch_id):
            clash = _first_clash(schedule, teacher_id=teacher_id, start_time=start, end_time=end)
            if clash is not None:
                return clash
        return None

    def has_conflict(
        self,
        teacher_id: str,
        on_date: date,
        start_time: str,
        end_time: str,
        exclude_batch_id: str,
    ) -> bool:
        return self.find_conflict(teacher_id, on_date, start_time, end_time, exclude_batch_id) is not None

    def commitments(self, weekday: Weekday, target_batch_id: str) -> dict[str, list[Commitment]]:
        """Every teaching slot on ``weekday`` keyed by teacher, target batch first.

        Lets callers test many candidates against one load of the schedules;
        the answer per teacher matches :meth:`has_conflict`.
        """
        target = self.store.get_day_schedule(target_batch_id, weekday)
        schedules = [target, *self.store.list_day_schedules(weekday, excluding_batch_id=target_batch_id)]

        by_teacher: dict[str, list[Commitment]] = defaultdict(list)
        for schedule in schedules:
            for slot in _teaching_slots(schedule_slots(schedule)):
                by_teacher[slot.teacher_id].append(
                    Commitment(schedule.batch_id, slot.start_time, slot.end_time, slot.subject_id)
                )
        return dict(by_teacher)


def is_free(commitments: Iterable[Commitment], start_time: str, end_time: str) -> bool:
    return not any(overlaps(start_time, end_time, item.start_time, item.end_time) for item in commitments)

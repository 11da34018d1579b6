from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator, model_validator

from attendsync.models.timetable import Weekday

TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


def normalize_time(value: str) -> str:
    """Returns the zero-padded ``HH:MM`` form so times compare as strings."""
    match = TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError("Time must be in HH:MM 24-hour format")
    return f"{int(match.group(1)):02d}:{match.group(2)}"


class TimeSlot(BaseModel):
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    is_break: bool = Field(default=False, alias="isBreak")
    subject_id: str | None = Field(default=None, alias="subjectId", max_length=36)
    teacher_id: str | None = Field(default=None, alias="teacherId", max_length=36)
    room_number: str = Field(default="", alias="roomNumber", max_length=50)

    model_config = {"populate_by_name": True}

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return normalize_time(value)

    @model_validator(mode="after")
    def validate_slot(self) -> "TimeSlot":
        if self.start_time >= self.end_time:
            raise ValueError(f"Slot {self.start_time}-{self.end_time} must start before it ends")
        if self.is_break:
            self.subject_id = None
            self.teacher_id = None
        return self


class DayScheduleUpsert(BaseModel):
    time_slots: list[TimeSlot] = Field(default_factory=list, alias="timeSlots", max_length=48)
    academic_year: str = Field(default="2024-25", alias="academicYear", max_length=20)
    is_active: bool = Field(default=True, alias="isActive")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def sort_slots(self) -> "DayScheduleUpsert":
        self.time_slots = sorted(self.time_slots, key=lambda slot: (slot.start_time, slot.end_time))
        return self


class DayScheduleOut(BaseModel):
    id: str
    batch_id: str = Field(serialization_alias="batchId")
    weekday: Weekday
    time_slots: list[TimeSlot] = Field(serialization_alias="timeSlots")
    academic_year: str = Field(serialization_alias="academicYear")
    is_active: bool = Field(serialization_alias="isActive")

    model_config = {"from_attributes": True, "populate_by_name": True}


class TeacherScheduleEntry(BaseModel):
    start_time: str = Field(serialization_alias="startTime")
    end_time: str = Field(serialization_alias="endTime")
    subject_id: str | None = Field(default=None, serialization_alias="subjectId")
    batch_id: str = Field(serialization_alias="batchId")
    room_number: str = Field(default="", serialization_alias="roomNumber")
    schedule_id: str = Field(serialization_alias="scheduleId")


class TeacherDailySchedule(BaseModel):
    teacher_id: str = Field(serialization_alias="teacherId")
    weekday: str
    schedule: list[TeacherScheduleEntry]

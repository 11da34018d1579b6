from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from attendsync.models.substitution import SubstitutionStatus
from attendsync.schemas.timetable import normalize_time


class _TimeWindow(BaseModel):
    date: date
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return normalize_time(value)


class AvailableTeachersQuery(_TimeWindow):
    batch_id: str = Field(min_length=1, max_length=36)
    subject_id: str = Field(min_length=1, max_length=36)


class SubjectBrief(BaseModel):
    id: str
    name: str
    code: str


class AvailableTeacher(BaseModel):
    teacher_id: str
    name: str
    email: str
    username: str
    subjects: list[SubjectBrief] = Field(default_factory=list)


class SubstitutionCreate(_TimeWindow):
    original_teacher_id: str = Field(min_length=1, max_length=36)
    substitute_teacher_id: str = Field(min_length=1, max_length=36)
    subject_id: str = Field(min_length=1, max_length=36)
    batch_id: str = Field(min_length=1, max_length=36)
    room_number: str = Field(min_length=1, max_length=50)
    reason: str = Field(min_length=1, max_length=1000)

    @field_validator("room_number", "reason")
    @classmethod
    def strip_text(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Value cannot be blank")
        return stripped


class SubstitutionStatusUpdate(BaseModel):
    status: Literal["approved", "completed", "cancelled"]
    notes: str | None = Field(default=None, max_length=1000)


class TeacherBrief(BaseModel):
    id: str
    name: str
    email: str


class SubstitutionOut(BaseModel):
    id: str
    original_teacher_id: str
    substitute_teacher_id: str
    subject_id: str
    batch_id: str
    date: date
    start_time: str
    end_time: str
    room_number: str
    reason: str
    status: SubstitutionStatus
    notes: str = ""
    original_teacher: TeacherBrief | None = None
    substitute_teacher: TeacherBrief | None = None
    subject_name: str | None = None
    subject_code: str | None = None
    batch_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class SubstitutionCancelOut(BaseModel):
    id: str
    status: SubstitutionStatus
    message: str = "Substitution cancelled successfully"

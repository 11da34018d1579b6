from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from attendsync.schemas.timetable import normalize_time


class AttendanceRecordIn(BaseModel):
    student_id: str = Field(min_length=1, max_length=64)
    roll_number: str = Field(min_length=1, max_length=50)
    status: Literal["present", "absent"]

    @field_validator("student_id", "roll_number")
    @classmethod
    def strip_value(cls, value: str) -> str:
        return value.strip()


class AttendanceMark(BaseModel):
    date: date
    subject: str = Field(min_length=1, max_length=100)
    batch_id: str = Field(min_length=1, max_length=36)
    class_time: str
    duration: int = Field(default=60, ge=30, le=180)
    records: list[AttendanceRecordIn] = Field(min_length=1)

    @field_validator("subject")
    @classmethod
    def strip_subject(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Subject is required")
        return stripped

    @field_validator("class_time")
    @classmethod
    def validate_class_time(cls, value: str) -> str:
        return normalize_time(value)


class AttendanceSessionOut(BaseModel):
    id: str
    date: date
    subject: str
    subject_id: str | None = None
    batch_id: str
    class_time: str
    duration: int
    taken_by: str
    records: list[dict]
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class ClassHistory(BaseModel):
    sessions: list[AttendanceSessionOut]
    total: int
    page: int
    limit: int


class SubjectAttendance(BaseModel):
    total_classes: int = 0
    present_classes: int = 0
    percentage: int = 0


class StudentMatrixRow(BaseModel):
    student_id: str
    name: str
    roll_number: str
    department: str
    batch: str
    subjects: dict[str, SubjectAttendance]
    total_classes: int
    total_present: int
    overall_percentage: int


class SubjectSummary(BaseModel):
    subject: str
    sessions: int
    total_classes: int
    average_percentage: int


class AttendanceMatrix(BaseModel):
    students: list[StudentMatrixRow]
    subjects: list[str]
    summary: list[SubjectSummary]
    total_students: int
    start_date: date | None = None
    end_date: date | None = None


class StudentSubjectSummary(BaseModel):
    subject: str
    total_classes: int
    present_classes: int
    percentage: int


class StudentAttendanceSummary(BaseModel):
    student_id: str
    name: str
    roll_number: str
    summary: list[StudentSubjectSummary]


class StudentSessionStats(BaseModel):
    student_id: str
    roll_number: str
    present: int
    total: int
    percentage: int


class SessionStatistics(BaseModel):
    subject: str | None = None
    total_classes: int
    overall_percentage: int
    start_date: date | None = None
    end_date: date | None = None
    student_statistics: list[StudentSessionStats]


class AttendanceStatus(BaseModel):
    attendance_status: dict[str, bool]
    total_classes: int

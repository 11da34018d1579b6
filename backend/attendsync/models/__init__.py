from attendsync.models.activity_log import ActivityLog  # noqa: F401
from attendsync.models.attendance import AttendanceSession  # noqa: F401
from attendsync.models.batch import Batch  # noqa: F401
from attendsync.models.department import Department  # noqa: F401
from attendsync.models.student import Student  # noqa: F401
from attendsync.models.subject import Subject  # noqa: F401
from attendsync.models.substitution import (  # noqa: F401
    ACTIVE_SUBSTITUTION_STATUSES,
    SubstitutionRequest,
    SubstitutionStatus,
)
from attendsync.models.teacher import Teacher, TeacherDepartment, TeacherSubject  # noqa: F401
from attendsync.models.timetable import DaySchedule, Weekday  # noqa: F401

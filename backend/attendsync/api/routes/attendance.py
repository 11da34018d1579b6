from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from attendsync.api.deps import Actor, get_current_teacher, get_db, require_roles
from attendsync.models.teacher import Teacher
from attendsync.schemas.attendance import (
    AttendanceMark,
    AttendanceMatrix,
    AttendanceSessionOut,
    AttendanceStatus,
    ClassHistory,
    SessionStatistics,
    StudentAttendanceSummary,
)
from attendsync.services import directory
from attendsync.services.attendance_matrix import (
    StudentInfo,
    build_attendance_matrix,
    session_statistics,
    summarize_student,
)
from attendsync.services.attendance_store import AttendanceStore

router = APIRouter()


@router.post("/teacher/mark", response_model=AttendanceSessionOut, status_code=status.HTTP_201_CREATED)
def mark_attendance(
    payload: AttendanceMark,
    current_teacher: Teacher = Depends(get_current_teacher),
    db: Session = Depends(get_db),
) -> AttendanceSessionOut:
    session = AttendanceStore(db).create_session(actor_teacher_id=current_teacher.id, payload=payload)
    db.commit()
    db.refresh(session)
    return AttendanceSessionOut.model_validate(session)


@router.get("/teacher/statistics", response_model=SessionStatistics)
def get_attendance_statistics(
    subject: str | None = Query(default=None),
    batch_id: str | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    current_teacher: Teacher = Depends(get_current_teacher),
    db: Session = Depends(get_db),
) -> SessionStatistics:
    sessions = AttendanceStore(db).list_sessions(
        start_date=start_date,
        end_date=end_date,
        subject=subject,
        batch_id=batch_id,
        taken_by=current_teacher.id,
    )
    return session_statistics(sessions, subject=subject, start_date=start_date, end_date=end_date)


@router.get("/teacher/history", response_model=ClassHistory)
def get_class_history(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    subject: str | None = Query(default=None),
    batch_id: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    current_teacher: Teacher = Depends(get_current_teacher),
    db: Session = Depends(get_db),
) -> ClassHistory:
    store = AttendanceStore(db)
    filters = {
        "start_date": start_date,
        "end_date": end_date,
        "subject": subject,
        "batch_id": batch_id,
        "taken_by": current_teacher.id,
    }
    sessions = store.list_sessions(**filters, newest_first=True, offset=(page - 1) * limit, limit=limit)
    return ClassHistory(
        sessions=[AttendanceSessionOut.model_validate(item) for item in sessions],
        total=store.count_sessions(**filters),
        page=page,
        limit=limit,
    )


@router.get("/teacher/status", response_model=AttendanceStatus)
def get_attendance_status(
    on_date: date = Query(alias="date"),
    current_teacher: Teacher = Depends(get_current_teacher),
    db: Session = Depends(get_db),
) -> AttendanceStatus:
    return AttendanceStore(db).attendance_status(current_teacher.id, on_date)


@router.get("/matrix", response_model=AttendanceMatrix)
def get_attendance_matrix(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    department_id: str | None = Query(default=None),
    batch_id: str | None = Query(default=None),
    _: Actor = Depends(require_roles("admin")),
    db: Session = Depends(get_db),
) -> AttendanceMatrix:
    if start_date and end_date and end_date < start_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_date must not be before start_date")

    students = directory.list_students(db, department_id=department_id, batch_id=batch_id)
    departments = directory.department_names(db, {item.department_id for item in students})
    batches = directory.batch_names(db, {item.batch_id for item in students})
    sessions = AttendanceStore(db).list_sessions(start_date=start_date, end_date=end_date)
    return build_attendance_matrix(
        [
            StudentInfo(
                student_id=item.id,
                name=item.name,
                roll_number=item.roll_number,
                department=departments.get(item.department_id, "N/A"),
                batch=batches.get(item.batch_id, "N/A"),
            )
            for item in students
        ],
        sessions,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/students/{student_id}/summary", response_model=StudentAttendanceSummary)
def get_student_summary(
    student_id: str,
    actor: Actor = Depends(require_roles("admin", "student")),
    db: Session = Depends(get_db),
) -> StudentAttendanceSummary:
    if actor.role == "student" and actor.id != student_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    student = directory.get_student(db, student_id)
    sessions = AttendanceStore(db).list_sessions()
    return StudentAttendanceSummary(
        student_id=student.id,
        name=student.name,
        roll_number=student.roll_number,
        summary=summarize_student(student.id, sessions),
    )

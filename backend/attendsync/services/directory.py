from __future__ import annotations

from collections import defaultdict

from sqlalchemy import select
from sqlalchemy.orm import Session

from attendsync.core.exceptions import NotFoundError
from attendsync.models.batch import Batch
from attendsync.models.department import Department
from attendsync.models.student import Student
from attendsync.models.subject import Subject
from attendsync.models.teacher import Teacher, TeacherDepartment, TeacherSubject


def get_teacher(db: Session, teacher_id: str) -> Teacher:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise NotFoundError("Teacher", teacher_id)
    return teacher


def get_batch(db: Session, batch_id: str) -> Batch:
    batch = db.get(Batch, batch_id)
    if batch is None:
        raise NotFoundError("Batch", batch_id, message="Batch not found")
    return batch


def get_subject(db: Session, subject_id: str) -> Subject:
    subject = db.get(Subject, subject_id)
    if subject is None:
        raise NotFoundError("Subject", subject_id)
    return subject


def get_student(db: Session, student_id: str) -> Student:
    student = db.get(Student, student_id)
    if student is None:
        raise NotFoundError("Student", student_id, message="Student not found")
    return student


def list_active_teachers_in_department(db: Session, department_id: str) -> list[Teacher]:
    query = (
        select(Teacher)
        .join(TeacherDepartment, TeacherDepartment.teacher_id == Teacher.id)
        .where(TeacherDepartment.department_id == department_id, Teacher.is_active.is_(True))
        .order_by(Teacher.name, Teacher.id)
    )
    return list(db.execute(query).scalars().unique())


def subjects_by_teacher(db: Session, teacher_ids: list[str]) -> dict[str, list[Subject]]:
    if not teacher_ids:
        return {}
    rows = db.execute(
        select(TeacherSubject.teacher_id, Subject)
        .join(Subject, Subject.id == TeacherSubject.subject_id)
        .where(TeacherSubject.teacher_id.in_(teacher_ids))
        .order_by(Subject.name, Subject.id)
    ).all()
    output: dict[str, list[Subject]] = defaultdict(list)
    for teacher_id, subject in rows:
        output[teacher_id].append(subject)
    return dict(output)


def teacher_subject_by_name(db: Session, teacher_id: str, subject_name: str) -> Subject | None:
    return db.execute(
        select(Subject)
        .join(TeacherSubject, TeacherSubject.subject_id == Subject.id)
        .where(TeacherSubject.teacher_id == teacher_id, Subject.name == subject_name)
        .order_by(Subject.id)
    ).scalars().first()


def subject_exists_by_name(db: Session, subject_name: str) -> bool:
    return db.execute(select(Subject.id).where(Subject.name == subject_name)).first() is not None


def list_students(
    db: Session,
    *,
    department_id: str | None = None,
    batch_id: str | None = None,
) -> list[Student]:
    query = select(Student).where(Student.is_active.is_(True))
    if department_id:
        query = query.where(Student.department_id == department_id)
    if batch_id:
        query = query.where(Student.batch_id == batch_id)
    return list(db.execute(query.order_by(Student.name, Student.roll_number)).scalars())


def department_names(db: Session, department_ids: set[str]) -> dict[str, str]:
    if not department_ids:
        return {}
    rows = db.execute(select(Department.id, Department.name).where(Department.id.in_(department_ids))).all()
    return {row[0]: row[1] for row in rows}


def batch_names(db: Session, batch_ids: set[str]) -> dict[str, str]:
    if not batch_ids:
        return {}
    rows = db.execute(select(Batch.id, Batch.name).where(Batch.id.in_(batch_ids))).all()
    return {row[0]: row[1] for row in rows}

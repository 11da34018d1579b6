from dataclasses import dataclass, field
from decimal import Decimal

from attendsync.services.attendance_matrix import (
    StudentInfo,
    build_attendance_matrix,
    percentage,
    round_half_up,
    session_statistics,
    summarize_student,
)


@dataclass
class FakeSession:
    subject: str
    records: list[dict] = field(default_factory=list)


def record(student_ref, status="present", roll_number="R1"):
    return {"studentId": student_ref, "rollNumber": roll_number, "status": status}


STUDENTS = [
    StudentInfo(student_id="s1", name="Deepa Nair", roll_number="CSE001", department="CSE", batch="2024 A"),
    StudentInfo(student_id="s2", name="Arjun Menon", roll_number="CSE002", department="CSE", batch="2024 A"),
]


def _sessions():
    return [
        FakeSession("Networks", [record("s1", "present"), record({"_id": "s2"}, "absent", "CSE002")]),
        FakeSession("Networks", [record("ObjectId('s1')", "absent"), record("s2", "present", "CSE002")]),
        FakeSession("Databases", [record('{"_id": "s1"}', "present"), record(None, "present")]),
        FakeSession("Databases", [record("s1", "present"), record("s2", "absent", "CSE002")]),
        FakeSession("Databases", [record("s1", "absent"), record("s2", "absent", "CSE002")]),
    ]


def test_two_networks_sessions_give_fifty_percent():
    matrix = build_attendance_matrix(STUDENTS, _sessions())
    row = matrix.students[0]

    assert matrix.subjects == ["Databases", "Networks"]
    assert row.subjects["Networks"].model_dump() == {"total_classes": 2, "present_classes": 1, "percentage": 50}


def test_row_totals_are_conserved_and_overall_is_class_weighted():
    matrix = build_attendance_matrix(STUDENTS, _sessions())

    for row in matrix.students:
        assert row.total_classes == sum(item.total_classes for item in row.subjects.values())
        assert row.total_present == sum(item.present_classes for item in row.subjects.values())

    deepa = matrix.students[0]
    # Networks 1/2 and Databases 2/3: weighted 3/5, not the mean of 50 and 67.
    assert deepa.subjects["Databases"].percentage == 67
    assert deepa.overall_percentage == 60


def test_matrix_is_idempotent():
    first = build_attendance_matrix(STUDENTS, _sessions())
    second = build_attendance_matrix(STUDENTS, _sessions())

    assert first.model_dump_json() == second.model_dump_json()


def test_student_counted_once_per_session():
    sessions = [FakeSession("Networks", [record("s1", "present"), record({"_id": "s1"}, "absent")])]
    matrix = build_attendance_matrix(STUDENTS[:1], sessions)

    assert matrix.students[0].subjects["Networks"].model_dump() == {
        "total_classes": 1,
        "present_classes": 1,
        "percentage": 100,
    }


def test_student_without_records_gets_zero_cells():
    sessions = [FakeSession("Networks", [record("s1")])]
    matrix = build_attendance_matrix(STUDENTS, sessions)
    arjun = matrix.students[1]

    assert arjun.subjects["Networks"].total_classes == 0
    assert arjun.subjects["Networks"].percentage == 0
    assert arjun.overall_percentage == 0


def test_subject_summary():
    matrix = build_attendance_matrix(STUDENTS, _sessions())
    summary = {item.subject: item for item in matrix.summary}

    assert summary["Networks"].sessions == 2
    assert summary["Networks"].total_classes == 2
    assert summary["Networks"].average_percentage == 50
    assert summary["Databases"].sessions == 3
    assert summary["Databases"].total_classes == 3
    # Deepa 67, Arjun 0 -> 33.5 rounds up.
    assert summary["Databases"].average_percentage == 34


def test_empty_inputs():
    matrix = build_attendance_matrix([], [])

    assert matrix.students == []
    assert matrix.subjects == []
    assert matrix.summary == []
    assert matrix.total_students == 0


def test_round_half_up():
    assert round_half_up(Decimal("2.5")) == 3
    assert round_half_up(Decimal("0.5")) == 1
    assert round_half_up(Decimal("33.4")) == 33
    assert percentage(1, 8) == 13
    assert percentage(0, 0) == 0


def test_summarize_student_only_lists_attended_subjects():
    sessions = _sessions() + [FakeSession("Compilers", [record("s2", "present", "CSE002")])]
    summary = summarize_student("s1", sessions)

    assert [item.subject for item in summary] == ["Databases", "Networks"]
    assert summary[0].present_classes == 2
    assert summary[0].total_classes == 3


def test_session_statistics_sorted_by_roll_number():
    sessions = [
        FakeSession("Networks", [record("s2", "present", "CSE002"), record("s1", "absent", "CSE001")]),
        FakeSession("Networks", [record("s2", "present", "CSE002"), record("s1", "present", "CSE001")]),
    ]
    stats = session_statistics(sessions, subject="Networks")

    assert stats.total_classes == 2
    assert stats.overall_percentage == 75
    assert [item.roll_number for item in stats.student_statistics] == ["CSE001", "CSE002"]
    assert stats.student_statistics[0].percentage == 50
    assert stats.student_statistics[1].percentage == 100

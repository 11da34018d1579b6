import json

import pytest

from attendsync.services.identity import record_student_ref, resolve_student_ref

STUDENT_ID = "65f1c2a9e4b0a1d2c3f4a5b6"


class FakeObjectId:
    def __init__(self, value: str) -> None:
        self._value = value

    def __str__(self) -> str:
        return f"ObjectId('{self._value}')"


class StudentRow:
    def __init__(self, value) -> None:
        self.id = value


@pytest.mark.parametrize(
    "encoding",
    [
        {"_id": STUDENT_ID},
        {"$oid": STUDENT_ID},
        {"_id": {"$oid": STUDENT_ID}},
        StudentRow(STUDENT_ID),
        FakeObjectId(STUDENT_ID),
        f'new ObjectId("{STUDENT_ID}")',
        json.dumps({"_id": STUDENT_ID}),
        STUDENT_ID,
        f"  {STUDENT_ID}  ",
    ],
)
def test_every_encoding_resolves_to_the_same_id(encoding):
    assert resolve_student_ref(encoding) == STUDENT_ID


@pytest.mark.parametrize("value", [None, "", "   ", True, {}, {"name": "no id here"}])
def test_unattributable_references_resolve_to_none(value):
    assert resolve_student_ref(value) is None


def test_malformed_json_falls_back_to_raw_text():
    assert resolve_student_ref('{"_id": ') == '{"_id":'


def test_json_without_identifier_falls_back_to_raw_text():
    raw = '{"name": "x"}'
    assert resolve_student_ref(raw) == raw


def test_numeric_ids_are_stringified():
    assert resolve_student_ref(42) == "42"


def test_record_student_ref_reads_known_keys():
    assert record_student_ref({"studentId": "a"}) == "a"
    assert record_student_ref({"student_id": "b"}) == "b"
    assert record_student_ref({"student": {"_id": "c"}}) == {"_id": "c"}
    assert record_student_ref({"status": "present"}) is None

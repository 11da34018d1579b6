"""Normalisation of student references found in attendance records.

Records written over the lifetime of the system reference students in
several shapes: structured references (``{"_id": ...}``, ``{"$oid": ...}``),
driver objects whose string form is ``ObjectId('...')``, JSON-encoded
objects stored as text, and bare id strings. Everything that compares a
record to a student goes through :func:`resolve_student_ref`.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any, NewType

CanonicalId = NewType("CanonicalId", str)

IDENTIFIER_KEYS = ("_id", "id", "$oid", "studentId", "student_id")
WRAPPER_PATTERN = re.compile(r"""^(?:new\s+)?[A-Za-z_][\w.]*\(\s*(['"])([^'"]+)\1\s*\)$""")

# Guards against self-referencing structures.
_MAX_DEPTH = 8


def _unwrap(text: str) -> str:
    match = WRAPPER_PATTERN.match(text)
    return match.group(2).strip() if match else text


def _from_mapping(value: Mapping, depth: int) -> CanonicalId | None:
    for key in IDENTIFIER_KEYS:
        if key in value:
            return _resolve(value[key], depth + 1)
    return None


def _from_string(value: str, depth: int) -> CanonicalId | None:
    text = value.strip()
    if not text:
        return None
    if text.startswith("{"):
        try:
            parsed = json.loads(text)
        except ValueError:
            return CanonicalId(text)
        if isinstance(parsed, Mapping):
            resolved = _from_mapping(parsed, depth)
            if resolved is not None:
                return resolved
        return CanonicalId(text)
    return CanonicalId(_unwrap(text))


def _resolve(value: Any, depth: int) -> CanonicalId | None:
    if value is None or isinstance(value, bool) or depth > _MAX_DEPTH:
        return None
    if isinstance(value, str):
        return _from_string(value, depth)
    if isinstance(value, Mapping):
        return _from_mapping(value, depth)
    if isinstance(value, (int, float)):
        return CanonicalId(str(value))

    identifier = getattr(value, "id", None)
    if identifier is not None and not callable(identifier):
        return _resolve(identifier, depth + 1)
    return _from_string(str(value), depth)


def resolve_student_ref(value: Any) -> CanonicalId | None:
    """Canonical student id for a stored reference, or ``None`` when it names nobody.

    ``None`` results are dropped by the aggregation code rather than
    reported: an unattributable record cannot be charged to any student.
    """
    return _resolve(value, 0)


def record_student_ref(record: Mapping) -> Any:
    """The raw reference inside a stored record, whichever key it was written under."""
    for key in ("studentId", "student_id", "studentRef", "student"):
        if key in record:
            return record[key]
    return None

from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

import attendsync.models  # noqa: F401
from attendsync.db.base import Base
from attendsync.db.session import engine as default_engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "teachers": {"id", "email", "is_active"},
    "batches": {"id", "department_id"},
    "day_schedules": {"id", "batch_id", "weekday", "time_slots"},
    "substitution_requests": {
        "id",
        "original_teacher_id",
        "substitute_teacher_id",
        "batch_id",
        "date",
        "start_time",
        "end_time",
        "status",
    },
    "attendance_sessions": {"id", "date", "subject", "subject_id", "batch_id", "class_time", "records"},
}

REQUIRED_INDEXES: dict[str, str] = {
    "substitution_requests": "uq_substitution_requests_active_slot",
}


def missing_schema(engine: Engine) -> tuple[list[str], dict[str, list[str]]]:
    with engine.connect() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = sorted(name for name in REQUIRED_COLUMNS if name not in table_names)
        missing_columns: dict[str, list[str]] = {}
        for table_name, required in REQUIRED_COLUMNS.items():
            if table_name not in table_names:
                continue
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            missing = sorted(required - existing)
            if missing:
                missing_columns[table_name] = missing
    return missing_tables, missing_columns


def _assert_uniqueness_guards(engine: Engine) -> None:
    # The active-substitution guard lives only in the index; without it
    # concurrent creators could both insert a pending request.
    with engine.connect() as connection:
        inspector = inspect(connection)
        for table_name, index_name in REQUIRED_INDEXES.items():
            names = {item["name"] for item in inspector.get_indexes(table_name)}
            if index_name not in names:
                raise RuntimeError(f"Missing required index {index_name} on {table_name}")


def ensure_runtime_schema_compatibility(engine: Engine | None = None) -> None:
    target = engine or default_engine
    try:
        Base.metadata.create_all(bind=target)
        missing_tables, missing_columns = missing_schema(target)
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(missing_tables)}")
        if missing_columns:
            flattened = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
            raise RuntimeError(f"Missing required columns: {', '.join(flattened)}")
        _assert_uniqueness_guards(target)
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc

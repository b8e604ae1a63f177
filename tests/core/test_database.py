"""Tests for database helpers."""

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import create_async_engine

from src.core.database import create_session_factory, is_unique_violation


class _DriverError(Exception):
    def __init__(self, message: str, sqlstate: str | None = None) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


def _integrity_error(orig: Exception) -> IntegrityError:
    return IntegrityError("INSERT INTO containers ...", {}, orig)


@pytest.mark.parametrize(
    ("orig", "expected"),
    [
        (_DriverError("duplicate", sqlstate="23505"), True),
        (_DriverError("null value in column", sqlstate="23502"), False),
        (Exception("UNIQUE constraint failed: containers.container_number"), True),
        (Exception("FOREIGN KEY constraint failed"), False),
    ],
)
def test_is_unique_violation(orig: Exception, expected: bool) -> None:
    assert is_unique_violation(_integrity_error(orig)) is expected


@pytest.mark.asyncio
async def test_session_factory_keeps_objects_loaded_after_commit() -> None:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    factory = create_session_factory(engine)

    assert factory.kw["expire_on_commit"] is False
    assert factory.kw["autoflush"] is False
    await engine.dispose()

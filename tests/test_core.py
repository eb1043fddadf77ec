import sqlite3

import pytest

from reading_list_api.app.core.errors import StorageError
from reading_list_api.app.core.retry import retry_transient
from reading_list_api.app.core.security import hash_password, verify_password
from reading_list_api.app.core.timeutil import parse_timestamp


def test_hash_is_salted_and_verifiable():
    first = hash_password("pw")
    second = hash_password("pw")
    assert first != second
    assert verify_password("pw", first)
    assert not verify_password("PW", first)


@pytest.mark.parametrize("stored", ["", "nodollar", "zz$zz", None])
def test_malformed_hash_never_matches(stored):
    assert verify_password("pw", stored) is False


def test_transient_errors_are_retried():
    calls = []

    @retry_transient(attempts=3, delay=0)
    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise sqlite3.OperationalError("database is locked")
        return "ok"

    assert flaky() == "ok"
    assert len(calls) == 3


def test_retries_are_bounded():
    calls = []

    @retry_transient(attempts=2, delay=0)
    def always_locked():
        calls.append(1)
        raise sqlite3.OperationalError("database is busy")

    with pytest.raises(StorageError):
        always_locked()
    assert len(calls) == 2


def test_permanent_errors_are_not_retried():
    calls = []

    @retry_transient(attempts=5, delay=0)
    def broken():
        calls.append(1)
        raise sqlite3.OperationalError("no such table: users")

    with pytest.raises(StorageError):
        broken()
    assert len(calls) == 1


def test_parse_timestamp():
    assert parse_timestamp("2024-09-16T08:00:00.000Z").tzinfo is not None
    assert parse_timestamp("2024-09-16T08:00:00").tzinfo is not None
    assert parse_timestamp("") is None
    assert parse_timestamp("soon") is None

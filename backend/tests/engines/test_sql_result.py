"""Unit tests for engines.sql.result (tagged results)."""

import pytest

from notfound_data.engines.sql.result import ErrorKind, ExecutionError, ExecutionResult


def test_success() -> None:
    res = ExecutionResult.success(5, rowcount=2)
    assert res.ok
    assert bool(res) is True
    assert res.value == 5
    assert res.error is None
    assert res.rowcount == 2
    assert res.unwrap() == 5
    assert res.unwrap_or(0) == 5


def test_failure() -> None:
    cause = RuntimeError("boom")
    err = ExecutionError(ErrorKind.STATEMENT, "boom", sql="SELECT 1", cause=cause)
    res: ExecutionResult[int] = ExecutionResult.failure(err)

    assert not res.ok
    assert bool(res) is False
    assert res.value is None
    assert res.unwrap_or(-1) == -1
    with pytest.raises(ExecutionError) as exc_info:
        res.unwrap()
    assert exc_info.value is err
    assert exc_info.value.__cause__ is cause


def test_success_with_falsy_value_is_still_ok() -> None:
    res = ExecutionResult.success(0)
    assert res.ok
    assert res.unwrap_or(-1) == 0


def test_error_repr_and_fields() -> None:
    err = ExecutionError(ErrorKind.CONVERSION, "not an int")
    assert err.kind == ErrorKind.CONVERSION
    assert err.sql is None
    assert err.cause is None
    assert str(err) == "not an int"
    assert "conversion" in repr(err)
    assert "conversion" in repr(ExecutionResult.failure(err))

"""Unit tests for engines.sql.parameters: creation, coercion, binding."""

import uuid
from datetime import date, datetime
from decimal import Decimal

import pytest

from notfound_data.engines.sql.parameters import (
    ParamBindError,
    bind_parameters,
    coerce_value,
    create_parameter,
    create_return_parameter,
    to_int32,
)
from notfound_data.models import DbType, Parameter, ParameterDirection, ProductTypeEnum


def test_create_parameter_zero_size_becomes_one() -> None:
    p = create_parameter("@oldUrl", DbType.STRING, 0)
    assert p.size == 1
    assert p.direction == ParameterDirection.INPUT
    assert p.bind_name == "oldUrl"


def test_create_parameter_size_unchanged() -> None:
    assert create_parameter("x", DbType.INT32, 5).size == 5


def test_return_parameter() -> None:
    p = create_return_parameter()
    assert p.name == "ReturnValue"
    assert p.db_type == DbType.INT32
    assert p.direction == ParameterDirection.RETURN_VALUE


def test_string_truncated_to_size() -> None:
    p = create_parameter("u", DbType.STRING, 3, "/abcdef")
    assert coerce_value(p) == "/ab"


def test_binary_truncated_to_size() -> None:
    p = create_parameter("b", DbType.BINARY, 2, b"\x01\x02\x03")
    assert coerce_value(p) == b"\x01\x02"


@pytest.mark.parametrize("db_type", [DbType.STRING, DbType.BINARY])
def test_negative_size_means_unbounded(db_type: DbType) -> None:
    value = "x" * 5000 if db_type == DbType.STRING else b"x" * 5000
    p = create_parameter("body", db_type, -1, value)
    assert p.size == -1
    assert coerce_value(p) == value


def test_negative_size_binds_full_string() -> None:
    p = create_parameter("body", DbType.STRING, -1, "x" * 5000)
    assert bind_parameters([p], ProductTypeEnum.POSTGRES) == {"body": "x" * 5000}


def test_none_binds_as_null() -> None:
    assert coerce_value(create_parameter("n", DbType.INT32, 0)) is None


@pytest.mark.parametrize(
    ("db_type", "raw", "expected"),
    [
        (DbType.INT32, "12", 12),
        (DbType.INT64, 2**40, 2**40),
        (DbType.INT16, Decimal("4"), 4),
        (DbType.BOOLEAN, "yes", True),
        (DbType.BOOLEAN, 0, False),
        (DbType.DECIMAL, "1.50", Decimal("1.50")),
        (DbType.DOUBLE, "2.5", 2.5),
        (DbType.DATE, "2024-02-29", date(2024, 2, 29)),
        (DbType.DATETIME, date(2024, 1, 2), datetime(2024, 1, 2)),
        (DbType.GUID, "12345678-1234-5678-1234-567812345678", "12345678-1234-5678-1234-567812345678"),
    ],
)
def test_coerce_to_declared_type(db_type: DbType, raw: object, expected: object) -> None:
    p = Parameter(name="p", db_type=db_type, value=raw)
    assert coerce_value(p) == expected


def test_coerce_guid_from_uuid() -> None:
    u = uuid.uuid4()
    assert coerce_value(Parameter(name="g", db_type=DbType.GUID, value=u)) == str(u)


@pytest.mark.parametrize(
    ("db_type", "raw"),
    [
        (DbType.INT32, "abc"),
        (DbType.INT32, 2**31),
        (DbType.INT16, 40000),
        (DbType.INT32, True),
        (DbType.INT32, 1.5),
        (DbType.INT32, float("nan")),
        (DbType.BOOLEAN, "maybe"),
        (DbType.DECIMAL, "x1"),
        (DbType.DATE, "not-a-date"),
        (DbType.GUID, "nope"),
        (DbType.BINARY, 12),
    ],
)
def test_coerce_invalid_raises(db_type: DbType, raw: object) -> None:
    with pytest.raises(ParamBindError, match="Parameter 'p'"):
        coerce_value(Parameter(name="p", db_type=db_type, value=raw))


def test_bind_pyformat_returns_mapping_in_order() -> None:
    params = [
        create_parameter("@a", DbType.STRING, 10, "x"),
        create_parameter("b", DbType.INT32, 0, 2),
    ]
    out = bind_parameters(params, ProductTypeEnum.POSTGRES)
    assert out == {"a": "x", "b": 2}
    assert list(out) == ["a", "b"]  # type: ignore[arg-type]


def test_bind_qmark_returns_list() -> None:
    params = [
        create_parameter("a", DbType.STRING, 10, "x"),
        create_parameter("b", DbType.INT32, 0, 2),
    ]
    assert bind_parameters(params, ProductTypeEnum.TRINO) == ["x", 2]


def test_bind_nothing_returns_none() -> None:
    assert bind_parameters((), ProductTypeEnum.MYSQL) is None
    assert bind_parameters((create_return_parameter(),), ProductTypeEnum.MYSQL) is None


def test_bind_duplicate_name_raises() -> None:
    params = [
        create_parameter("a", DbType.STRING, 1, "x"),
        create_parameter("@a", DbType.STRING, 1, "y"),
    ]
    with pytest.raises(ParamBindError, match="Duplicate"):
        bind_parameters(params, ProductTypeEnum.MYSQL)


def test_bind_empty_name_raises() -> None:
    with pytest.raises(ParamBindError, match="empty"):
        bind_parameters([create_parameter("@", DbType.STRING, 1, "x")], ProductTypeEnum.POSTGRES)


class TestToInt32:
    def test_int(self):
        assert to_int32(7) == 7

    def test_numeric_string(self):
        assert to_int32(" -3 ") == -3

    def test_bytes(self):
        assert to_int32(b"12") == 12

    def test_bounds(self):
        assert to_int32(2**31 - 1) == 2**31 - 1
        with pytest.raises(ValueError):
            to_int32(2**31)

    def test_null(self):
        with pytest.raises(ValueError, match="NULL"):
            to_int32(None)

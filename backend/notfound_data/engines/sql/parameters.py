"""
Parameter creation and binding.

Values are coerced to the Python type of their declared DbType, string and
binary values are truncated to the declared size, and the parameter list is
turned into what the driver's paramstyle expects: a mapping for ``pyformat``
(psycopg, pymysql) or a positional list for ``qmark`` (trino).
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from notfound_data.core.config import settings
from notfound_data.models import (
    DbType,
    Parameter,
    ParameterDirection,
    ProductTypeEnum,
)


class ParamBindError(ValueError):
    """Raised when a parameter cannot be bound (bad value, duplicate name)."""

    pass


_INT_RANGES = {
    DbType.INT16: (-(2**15), 2**15 - 1),
    DbType.INT32: (-(2**31), 2**31 - 1),
    DbType.INT64: (-(2**63), 2**63 - 1),
}


def create_parameter(
    name: str,
    db_type: DbType,
    size: int,
    value: Any = None,
) -> Parameter:
    """Build an input parameter. Size 0 becomes 1 (zero-length fields are invalid for some types)."""
    return Parameter(
        name=name,
        db_type=db_type,
        size=1 if size == 0 else size,
        direction=ParameterDirection.INPUT,
        value=value,
    )


def create_return_parameter() -> Parameter:
    """The reserved output parameter that receives a stored procedure's return code."""
    return Parameter(
        name=settings.RETURN_VALUE_PARAMETER,
        db_type=DbType.INT32,
        direction=ParameterDirection.RETURN_VALUE,
    )


def _coerce_integer(value: Any, db_type: DbType) -> int:
    if isinstance(value, bool):
        raise ParamBindError("Boolean not allowed for integer")
    if isinstance(value, int):
        x = value
    elif isinstance(value, (float, Decimal)):
        try:
            x = int(value)
        except (ValueError, OverflowError) as e:
            raise ParamBindError(f"Invalid integer: {value!r}") from e
        if value != x:
            raise ParamBindError(f"Expected integer, got: {value!r}")
    else:
        s = str(value).strip()
        try:
            x = int(s)
        except ValueError as e:
            raise ParamBindError(f"Invalid integer: {s!r}") from e
    lo, hi = _INT_RANGES[db_type]
    if not lo <= x <= hi:
        raise ParamBindError(f"Integer {x} out of range for {db_type.value}")
    return x


def _coerce_boolean(value: Any, db_type: DbType) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    s = str(value).strip().lower()
    if s in ("true", "1", "yes"):
        return True
    if s in ("false", "0", "no"):
        return False
    raise ParamBindError(f"Expected boolean, got: {value!r}")


def _coerce_decimal(value: Any, db_type: DbType) -> Decimal:
    if isinstance(value, bool):
        raise ParamBindError("Boolean not allowed for decimal")
    try:
        return Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ParamBindError(f"Invalid decimal: {value!r}") from e


def _coerce_double(value: Any, db_type: DbType) -> float:
    if isinstance(value, bool):
        raise ParamBindError("Boolean not allowed for double")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ParamBindError(f"Invalid number: {value!r}") from e


def _coerce_date(value: Any, db_type: DbType) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as e:
        raise ParamBindError(f"Invalid date: {value!r}") from e


def _coerce_datetime(value: Any, db_type: DbType) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError as e:
        raise ParamBindError(f"Invalid datetime: {value!r}") from e


def _coerce_guid(value: Any, db_type: DbType) -> str:
    if isinstance(value, uuid.UUID):
        return str(value)
    try:
        return str(uuid.UUID(str(value).strip()))
    except ValueError as e:
        raise ParamBindError(f"Invalid guid: {value!r}") from e


def _coerce_string(value: Any, db_type: DbType) -> str:
    return value if isinstance(value, str) else str(value)


def _coerce_binary(value: Any, db_type: DbType) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    raise ParamBindError(f"Expected bytes, got: {type(value).__name__}")


_COERCERS = {
    DbType.STRING: _coerce_string,
    DbType.ANSI_STRING: _coerce_string,
    DbType.INT16: _coerce_integer,
    DbType.INT32: _coerce_integer,
    DbType.INT64: _coerce_integer,
    DbType.BOOLEAN: _coerce_boolean,
    DbType.DECIMAL: _coerce_decimal,
    DbType.DOUBLE: _coerce_double,
    DbType.DATE: _coerce_date,
    DbType.DATETIME: _coerce_datetime,
    DbType.GUID: _coerce_guid,
    DbType.BINARY: _coerce_binary,
}


def coerce_value(parameter: Parameter) -> Any:
    """Coerce parameter.value to its DbType; None binds as NULL. Raises ParamBindError."""
    value = parameter.value
    if value is None:
        return None
    try:
        out = _COERCERS[parameter.db_type](value, parameter.db_type)
    except ParamBindError as e:
        raise ParamBindError(f"Parameter '{parameter.name}' {e}") from e
    # size <= 0: no length limit.
    if parameter.size > 0 and isinstance(out, (str, bytes)):
        out = out[: parameter.size]
    return out


def bind_parameters(
    parameters: tuple[Parameter, ...] | list[Parameter],
    product_type: ProductTypeEnum,
) -> dict[str, Any] | list[Any] | None:
    """
    Turn input parameters into driver params.

    Returns None when there is nothing to bind, a name -> value dict for pyformat
    drivers, or a list in declaration order for trino. Output and return-value
    parameters are skipped; the procedure protocol handles them.
    """
    inputs = [
        p
        for p in parameters
        if p.direction in (ParameterDirection.INPUT, ParameterDirection.INPUT_OUTPUT)
    ]
    if not inputs:
        return None

    if product_type == ProductTypeEnum.TRINO:
        return [coerce_value(p) for p in inputs]

    bound: dict[str, Any] = {}
    for p in inputs:
        name = p.bind_name
        if not name:
            raise ParamBindError(f"Parameter name is empty: {p.name!r}")
        if name in bound:
            raise ParamBindError(f"Duplicate parameter name: {name!r}")
        bound[name] = coerce_value(p)
    return bound


def to_int32(value: Any) -> int:
    """Convert a scalar or return value to a signed 32-bit int. Raises ValueError."""
    if value is None:
        raise ValueError("Value is NULL")
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("ascii", errors="replace")
    return _coerce_integer(value, DbType.INT32)

"""
Stored-procedure return-value protocol, per dialect.

The procedure reports its code through a reserved output parameter
(settings.RETURN_VALUE_PARAMETER, "ReturnValue" by default):

- PostgreSQL: trailing ``INOUT "ReturnValue" integer`` argument; ``CALL name(NULL)``
  returns the INOUT values as a row.
- MySQL: trailing ``OUT ReturnValue INT`` argument, read back through a session variable.
- Trino: procedures cannot return values; NotSupportedError.

A NULL return value (procedure never assigned it) is returned as None; the
executor reads it as 0.
"""

import logging
import re
from typing import Any

from notfound_data.core.connect import cursor_to_table, execute
from notfound_data.engines.sql.result import NotSupportedError
from notfound_data.models import Parameter, ProductTypeEnum

logger = logging.getLogger(__name__)

_IDENT = r"[A-Za-z_][A-Za-z0-9_$]*"
_PROC_NAME_RE = re.compile(rf"^{_IDENT}(\.{_IDENT})*$")


def validate_procedure_name(name: str) -> str:
    """Return the stripped name; ValueError unless it is a plain or dotted identifier."""
    s = (name or "").strip()
    if not _PROC_NAME_RE.match(s):
        raise ValueError(f"Invalid stored procedure name: {name!r}")
    return s


def _call_postgres(conn: Any, name: str, return_parameter: Parameter) -> Any:
    cur = execute(conn, f"CALL {name}(NULL)")
    try:
        table = cursor_to_table(cur)
    finally:
        cur.close()
    if table is None or not table.rows:
        return None
    wanted = return_parameter.bind_name.lower()
    for idx, col in enumerate(table.columns):
        if col.name.lower() == wanted:
            return table.rows[0][idx]
    return None


def _call_mysql(conn: Any, name: str, return_parameter: Parameter) -> Any:
    var = "@" + validate_procedure_name(return_parameter.bind_name)
    cur = conn.cursor()
    try:
        cur.execute(f"SET {var} = NULL")
        cur.execute(f"CALL {name}({var})")
        cur.execute(f"SELECT {var}")
        row = cur.fetchone()
    finally:
        cur.close()
    return row[0] if row else None


def call_procedure(
    conn: Any,
    name: str,
    product_type: ProductTypeEnum,
    return_parameter: Parameter,
) -> Any:
    """Run procedure *name* on *conn* and return the raw value of the return parameter."""
    name = validate_procedure_name(name)
    logger.debug("Calling stored procedure %s (%s)", name, product_type.value)
    if product_type == ProductTypeEnum.POSTGRES:
        return _call_postgres(conn, name, return_parameter)
    if product_type == ProductTypeEnum.MYSQL:
        return _call_mysql(conn, name, return_parameter)
    raise NotSupportedError(
        f"Stored procedure return values are not supported for {product_type.value}"
    )

"""
DataExecutor: run SQL text or stored procedures against the configured database.

Every call opens its own connection, runs one command and closes the connection
again, so an executor can be shared between threads. Failures never escape:

- try_query / try_non_query / try_scalar / try_stored_procedure return an
  ExecutionResult (value, or ExecutionError with the failing step);
- execute_query / execute_non_query / execute_scalar / execute_stored_procedure
  return a default instead (empty ResultSet, False, 0, the caller's sentinel).

A failed call writes exactly one log entry.
"""

import logging
import re
from collections.abc import Iterator
from contextlib import closing, contextmanager
from typing import Any

from notfound_data.core.config import settings
from notfound_data.core.connect import (
    DRIVER_ERRORS,
    apply_statement_timeout,
    connect,
    cursor_to_table,
    execute,
    parse_connection_string,
)
from notfound_data.engines.sql.parameters import (
    bind_parameters,
    create_parameter,
    create_return_parameter,
    to_int32,
)
from notfound_data.engines.sql.procedure import call_procedure, validate_procedure_name
from notfound_data.engines.sql.result import (
    ErrorKind,
    ExecutionError,
    ExecutionResult,
    NotSupportedError,
)
from notfound_data.models import (
    Command,
    CommandType,
    ConnectionConfig,
    DbType,
    Parameter,
    ProductTypeEnum,
    ResultSet,
    ResultTable,
)

_log = logging.getLogger(__name__)

_ERROR_TEMPLATE = "An error occurred in the %s method with the following sql: %s"


_DOLLAR_TAG_RE = re.compile(r"\$(?:[A-Za-z_][A-Za-z0-9_]*)?\$")


def _skip_quoted(sql: str, start: int) -> int:
    """Index just past the '...' or "..." literal opening at *start*."""
    quote = sql[start]
    i = start + 1
    while i < len(sql):
        c = sql[i]
        if c == "\\":
            i += 2
            continue
        if c == quote:
            if sql.startswith(quote, i + 1):
                i += 2
                continue
            return i + 1
        i += 1
    return len(sql)


def _skip_to(sql: str, start: int, terminator: str) -> int:
    """Index just past the next *terminator* (end of text when unterminated)."""
    end = sql.find(terminator, start)
    return len(sql) if end == -1 else end + len(terminator)


def _opens_dollar_quote(sql: str, i: int) -> re.Match[str] | None:
    # A tag glued to an identifier (a$b$) is part of the name, not a quote.
    if i > 0 and (sql[i - 1].isalnum() or sql[i - 1] in "_$"):
        return None
    return _DOLLAR_TAG_RE.match(sql, i)


def _split_statements(sql: str) -> list[str]:
    """
    Split a batch on ``;`` outside literals and comments.

    Skips '...' and "..." (doubled-quote and backslash escapes), dollar quotes
    with or without a tag (``$$...$$``, ``$body$...$body$``), ``--`` line comments
    and ``/* */`` block comments. ``$1`` placeholders are not dollar quotes.
    """
    stmts: list[str] = []
    start = 0
    i = 0
    length = len(sql)

    while i < length:
        ch = sql[i]
        if ch in ("'", '"'):
            i = _skip_quoted(sql, i)
        elif ch == "$" and (m := _opens_dollar_quote(sql, i)):
            i = _skip_to(sql, m.end(), m.group(0))
        elif sql.startswith("--", i):
            i = _skip_to(sql, i + 2, "\n")
        elif sql.startswith("/*", i):
            i = _skip_to(sql, i + 2, "*/")
        elif ch == ";":
            stmt = sql[start:i].strip()
            if stmt:
                stmts.append(stmt)
            i += 1
            start = i
        else:
            i += 1

    tail = sql[start:].strip()
    if tail:
        stmts.append(tail)
    return stmts


def _sql_for_log(sql: Any) -> str:
    s = sql if isinstance(sql, str) else repr(sql)
    limit = settings.LOG_SQL_MAX_LENGTH
    if limit and len(s) > limit:
        return s[:limit] + "..."
    return s


class DataExecutor:
    """Per-call connection SQL executor over psycopg, pymysql or trino."""

    def __init__(
        self,
        connection_string: str | ConnectionConfig | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        """
        - connection_string: URL such as ``postgresql://u:p@host/db`` or an already
          parsed ConnectionConfig. Defaults to settings.CONNECTION_STRING.
        - logger: where failures are reported; defaults to this module's logger.

        Raises ValueError when no usable connection string is available.
        """
        if isinstance(connection_string, ConnectionConfig):
            self._config = connection_string
        else:
            raw = connection_string if connection_string is not None else settings.CONNECTION_STRING
            self._config = parse_connection_string(raw or "")
        self._log = logger or _log

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    def __repr__(self) -> str:
        c = self._config
        return f"DataExecutor({c.product_type.value}://{c.host or ''}:{c.port}/{c.database or ''})"

    # ------------------------------------------------------------------
    # Compatibility operations: failures become default values
    # ------------------------------------------------------------------

    def execute_query(self, sql: str, *parameters: Parameter) -> ResultSet:
        """Run SQL text and return its rows; an empty ResultSet on any failure."""
        return self.try_query(sql, *parameters).unwrap_or(ResultSet())

    def execute_non_query(self, sql: str, *parameters: Parameter) -> bool:
        """Run SQL text for its side effects; True on success, False on any failure."""
        return self.try_non_query(sql, *parameters).ok

    def execute_scalar(self, sql: str) -> int:
        """Return row 0 / column 0 as an int; 0 on any failure or non-integer value."""
        return self.try_scalar(sql).unwrap_or(0)

    def execute_stored_procedure(self, sql: str, default_return_value: int = -1) -> int:
        """Run stored procedure *sql* and return its return value, or *default_return_value* on failure."""
        return self.try_stored_procedure(sql).unwrap_or(default_return_value)

    def create_parameter(
        self,
        name: str,
        db_type: DbType,
        size: int,
        value: Any = None,
    ) -> Parameter:
        return create_parameter(name, db_type, size, value)

    # ------------------------------------------------------------------
    # Strict operations: tagged results
    # ------------------------------------------------------------------

    def try_query(self, sql: str, *parameters: Parameter) -> ExecutionResult[ResultSet]:
        try:
            command = Command(text=sql, parameters=parameters)
            with self._open() as conn:
                tables, _ = self._run_text(conn, command)
        except Exception as e:
            return self._fail("execute_query", sql, e)
        return ExecutionResult.success(ResultSet(tables=tables))

    def try_non_query(self, sql: str, *parameters: Parameter) -> ExecutionResult[bool]:
        """Success value is True; ``rowcount`` holds the rows affected by the batch."""
        try:
            command = Command(text=sql, parameters=parameters)
            with self._open() as conn:
                _, rowcount = self._run_text(conn, command)
        except Exception as e:
            return self._fail("execute_non_query", sql, e)
        return ExecutionResult.success(True, rowcount=rowcount)

    def try_scalar(self, sql: str) -> ExecutionResult[int]:
        try:
            command = Command(text=sql)
            with self._open() as conn:
                tables, _ = self._run_text(conn, command)
        except Exception as e:
            return self._fail("execute_scalar", sql, e)

        first = tables[0] if tables else ResultTable()
        raw = first.rows[0][0] if first.rows and first.rows[0] else None
        try:
            value = to_int32(raw)
        except ValueError as e:
            return self._fail("execute_scalar", sql, e, kind=ErrorKind.CONVERSION)
        return ExecutionResult.success(value)

    def try_stored_procedure(self, sql: str) -> ExecutionResult[int]:
        """
        Run stored procedure *sql* with the reserved return-value parameter appended.

        Driver-reported errors (unknown procedure, refused connection, ...) are logged
        at INFO with kind PROCEDURE_NOT_FOUND (CONNECTIVITY when connecting failed);
        everything else at ERROR. A procedure that never sets its return value yields 0.
        """
        return_parameter = create_return_parameter()
        try:
            command = Command(
                text=validate_procedure_name(sql),
                command_type=CommandType.STORED_PROCEDURE,
                parameters=(return_parameter,),
            )
            with self._open() as conn:
                raw = call_procedure(
                    conn,
                    command.text,
                    self._config.product_type,
                    command.parameters[-1],
                )
        except Exception as e:
            return self._fail_procedure(sql, e)

        if raw is None:
            return ExecutionResult.success(0)
        try:
            value = to_int32(raw)
        except ValueError as e:
            error = ExecutionError(
                ErrorKind.CONVERSION,
                f"Return value is not an integer: {raw!r}",
                sql=sql,
                cause=e,
            )
            self._log.error("Error while running stored procedure %s", sql, exc_info=e)
            return ExecutionResult.failure(error)
        return ExecutionResult.success(value)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def _open(self) -> Iterator[Any]:
        """Connection scoped to one call: commit on success, rollback on failure, always close."""
        try:
            conn = connect(self._config)
        except Exception as e:
            where = self._config.host or "local socket"
            raise ExecutionError(
                ErrorKind.CONNECTIVITY,
                f"Could not open {self._config.product_type.value} connection to {where}",
                cause=e,
            ) from e
        try:
            apply_statement_timeout(conn, self._config.product_type)
            yield conn
            conn.commit()
        except BaseException:
            self._rollback_quiet(conn)
            raise
        finally:
            self._close_quiet(conn)

    def _run_text(self, conn: Any, command: Command) -> tuple[list[ResultTable], int]:
        """Run each statement of the batch; return row-returning tables and total rowcount."""
        statements = _split_statements(command.text or "")
        if not statements:
            raise ValueError("SQL text is empty")
        params = bind_parameters(command.parameters, self._config.product_type)

        tables: list[ResultTable] = []
        rowcount = 0
        for stmt in statements:
            with closing(execute(conn, stmt, params)) as cur:
                table = cursor_to_table(cur)
                if table is not None:
                    tables.append(table)
                elif self._config.product_type == ProductTypeEnum.TRINO:
                    # Trino runs lazily; drain so the statement completes before commit.
                    cur.fetchall()
                if cur.rowcount is not None and cur.rowcount > 0:
                    rowcount += cur.rowcount
        return tables, rowcount

    def _fail(
        self,
        method: str,
        sql: str,
        exc: Exception,
        *,
        kind: ErrorKind = ErrorKind.STATEMENT,
    ) -> ExecutionResult[Any]:
        if isinstance(exc, ExecutionError):
            error = exc
            error.sql = sql
        else:
            error = ExecutionError(kind, str(exc) or type(exc).__name__, sql=sql, cause=exc)
        self._log.error(_ERROR_TEMPLATE, method, _sql_for_log(sql), exc_info=error.cause or error)
        return ExecutionResult.failure(error)

    def _fail_procedure(self, sql: str, exc: Exception) -> ExecutionResult[int]:
        if isinstance(exc, ExecutionError):
            error = exc
            error.sql = sql
        elif isinstance(exc, NotSupportedError):
            error = ExecutionError(ErrorKind.NOT_SUPPORTED, str(exc), sql=sql, cause=exc)
        elif isinstance(exc, DRIVER_ERRORS):
            error = ExecutionError(ErrorKind.PROCEDURE_NOT_FOUND, str(exc), sql=sql, cause=exc)
        else:
            error = ExecutionError(
                ErrorKind.STATEMENT, str(exc) or type(exc).__name__, sql=sql, cause=exc
            )

        if isinstance(error.cause, DRIVER_ERRORS):
            self._log.info("Stored procedure not found: %s (%s)", _sql_for_log(sql), error.cause)
        else:
            self._log.error(
                "Error while running stored procedure %s",
                _sql_for_log(sql),
                exc_info=error.cause or error,
            )
        return ExecutionResult.failure(error)

    @staticmethod
    def _rollback_quiet(conn: Any) -> None:
        try:
            conn.rollback()
        except Exception:
            _log.debug("Rollback failed", exc_info=True)

    @staticmethod
    def _close_quiet(conn: Any) -> None:
        try:
            conn.close()
        except Exception:
            _log.debug("Close failed", exc_info=True)

"""
DB connection helpers for the data executor.

Uses psycopg (PostgreSQL), pymysql (MySQL) or trino (Trino) based on the
backend named in the connection string. Connection strings are SQLAlchemy-style
URLs, parsed with ``sqlalchemy.engine.make_url``; no SQLAlchemy engine is created.
"""

import logging
from typing import Any

import psycopg
import pymysql
import trino.exceptions
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError
from trino.auth import BasicAuthentication
from trino.dbapi import connect as trino_connect

from notfound_data.core.config import settings
from notfound_data.models import Column, ConnectionConfig, ProductTypeEnum, ResultTable

logger = logging.getLogger(__name__)

# PEP 249 base classes (plus Trino's HTTP/query errors, which do not derive from them).
DRIVER_ERRORS: tuple[type[BaseException], ...] = (
    psycopg.Error,
    pymysql.Error,
    trino.exceptions.Error,
    trino.exceptions.HttpError,
    trino.exceptions.TrinoQueryError,
)

_DEFAULT_PORTS = {
    ProductTypeEnum.POSTGRES: 5432,
    ProductTypeEnum.MYSQL: 3306,
    ProductTypeEnum.TRINO: 8080,
}

_TRUE_VALUES = ("true", "1", "yes")
_MYSQL_INT_OPTIONS = ("read_timeout", "write_timeout", "client_flag", "max_allowed_packet")
_MYSQL_BOOL_OPTIONS = (
    "autocommit",
    "local_infile",
    "binary_prefix",
    "ssl_disabled",
    "ssl_verify_cert",
    "ssl_verify_identity",
)
_TRINO_INT_OPTIONS = ("max_attempts",)
_TRINO_BOOL_OPTIONS = ("legacy_primitive_types", "legacy_prepared_statements")
_BOOL_STRINGS = _TRUE_VALUES + ("false", "0", "no")


def _resolve_product_type(backend: str) -> ProductTypeEnum:
    b = backend.lower()
    if b.startswith("postgres"):
        return ProductTypeEnum.POSTGRES
    if b.startswith(("mysql", "mariadb")):
        return ProductTypeEnum.MYSQL
    if b == "trino":
        return ProductTypeEnum.TRINO
    raise ValueError(f"Unsupported database backend: {backend}")


def parse_connection_string(connection_string: str) -> ConnectionConfig:
    """
    Parse a connection URL into a ConnectionConfig.

    Examples: ``postgresql://u:p@host:5432/db``, ``mysql+pymysql://u:p@host/db``,
    ``trino://u@host:8080/catalog?schema=web``. Query-string items become ``options``.
    Raises ValueError when the string is empty, malformed or names an unsupported backend.
    """
    if not connection_string or not connection_string.strip():
        raise ValueError("connection string is required")
    try:
        url = make_url(connection_string.strip())
    except ArgumentError as e:
        raise ValueError(f"Invalid connection string: {e}") from e

    pt = _resolve_product_type(url.get_backend_name())
    # psycopg and pymysql can reach a local socket; trino always needs an HTTP host.
    if pt == ProductTypeEnum.TRINO and not url.host:
        raise ValueError("connection string must provide a host")

    options: dict[str, str] = {}
    for key, val in url.query.items():
        # Repeated keys come back as tuples; last one wins.
        options[key] = val[-1] if isinstance(val, tuple) else val

    return ConnectionConfig(
        connection_string=connection_string,
        product_type=pt,
        host=url.host,
        port=url.port or _DEFAULT_PORTS[pt],
        database=url.database or None,
        username=url.username,
        password=url.password,
        options=options,
    )


def _is_true(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _typed_options(
    options: dict[str, str],
    int_keys: tuple[str, ...],
    bool_keys: tuple[str, ...],
) -> dict[str, Any]:
    """URL query values are strings; convert the ones the driver expects as int / bool."""
    out: dict[str, Any] = {}
    for key, val in options.items():
        if key in int_keys:
            try:
                out[key] = int(val)
            except ValueError as e:
                raise ValueError(f"Option {key!r} must be an integer, got {val!r}") from e
        elif key in bool_keys:
            out[key] = _is_true(val)
        else:
            out[key] = val
    return out


def _without_none(**kwargs: Any) -> dict[str, Any]:
    return {k: v for k, v in kwargs.items() if v is not None}


def connect(config: ConnectionConfig) -> Any:
    """
    Open a DB-API connection for *config*.

    ``connect_timeout`` in the connection string overrides settings.CONNECT_TIMEOUT.
    Every other query-string option is passed to the driver as a keyword argument
    (libpq parameters for psycopg, ``pymysql.connect`` / ``trino.dbapi.connect``
    arguments otherwise), so an option the driver does not know fails the connect.
    Trino's ``use_ssl`` selects the HTTP scheme.
    """
    options = dict(config.options)
    timeout = int(options.pop("connect_timeout", settings.CONNECT_TIMEOUT))
    logger.debug(
        "Opening %s connection to %s:%s/%s",
        config.product_type.value,
        config.host or options.get("host") or options.get("unix_socket") or "",
        config.port,
        config.database or "",
    )

    if config.product_type == ProductTypeEnum.POSTGRES:
        kwargs = _without_none(
            host=config.host,
            port=config.port,
            dbname=config.database,
            user=config.username,
            password=config.password,
            connect_timeout=timeout,
        )
        kwargs.update(options)
        return psycopg.connect(**kwargs)
    if config.product_type == ProductTypeEnum.MYSQL:
        kwargs = _without_none(
            host=config.host,
            port=config.port,
            database=config.database,
            user=config.username,
            password=config.password if config.password is not None else "",
            charset="utf8mb4",
            connect_timeout=timeout,
        )
        kwargs.update(_typed_options(options, _MYSQL_INT_OPTIONS, _MYSQL_BOOL_OPTIONS))
        return pymysql.connect(**kwargs)
    if config.product_type == ProductTypeEnum.TRINO:
        password = config.password or ""
        use_ssl = _is_true(options.pop("use_ssl", ""))
        if use_ssl and not password.strip():
            raise ValueError("Password is required for Trino when using SSL/HTTPS.")
        kwargs = {
            "host": config.host,
            "port": config.port,
            "user": config.username or "notfound",
            "auth": BasicAuthentication(config.username or "", password) if password else None,
            "catalog": config.database,
            "schema": options.pop("schema", "default"),
            "source": options.pop("source", "notfound-data"),
            "http_scheme": "https" if use_ssl else "http",
            "request_timeout": timeout,
        }
        verify = options.pop("verify", None)
        if verify is not None:
            # true/false toggles certificate checks; anything else is a CA bundle path.
            kwargs["verify"] = _is_true(verify) if verify.strip().lower() in _BOOL_STRINGS else verify
        kwargs.update(_typed_options(options, _TRINO_INT_OPTIONS, _TRINO_BOOL_OPTIONS))
        return trino_connect(**kwargs)
    raise ValueError(f"Unsupported product_type: {config.product_type}")


def apply_statement_timeout(
    conn: Any,
    product_type: ProductTypeEnum,
    timeout_sec: float | None = None,
) -> None:
    """
    Set a per-session statement timeout. No-op when the timeout is unset or <= 0.

    The session is never reused, so the setting is not reset afterwards.
    """
    if timeout_sec is None:
        timeout_sec = settings.STATEMENT_TIMEOUT
    if timeout_sec is None or timeout_sec <= 0:
        return
    timeout_ms = int(timeout_sec * 1000)
    cur = conn.cursor()
    try:
        if product_type == ProductTypeEnum.POSTGRES:
            cur.execute("SET statement_timeout = %s" % timeout_ms)
        elif product_type == ProductTypeEnum.MYSQL:
            cur.execute("SET SESSION max_execution_time = %s", (timeout_ms,))
        elif product_type == ProductTypeEnum.TRINO:
            cur.execute("SET SESSION query_max_execution_time = '%ss'" % int(timeout_sec))
    finally:
        cur.close()


def execute(
    conn: Any,
    sql: str,
    params: dict | list | tuple | None = None,
) -> Any:
    """
    Execute SQL and return the cursor. Caller reads it and closes it.

    ``params=None`` runs the SQL without placeholder processing, so literal ``%``
    needs no escaping.
    """
    cur = conn.cursor()
    try:
        if params is not None:
            cur.execute(sql, params)
        else:
            cur.execute(sql)
    except Exception:
        cur.close()
        raise
    return cur


def cursor_to_table(cursor: Any) -> ResultTable | None:
    """
    Read the cursor into a ResultTable. Works for psycopg, pymysql and trino.

    Returns None when the statement produced no result set (DML, DDL, SET ...).
    """
    desc = cursor.description
    if not desc:
        return None
    columns = [Column(name=d[0], type_code=d[1]) for d in desc]
    return ResultTable(columns=columns, rows=[tuple(row) for row in cursor.fetchall()])

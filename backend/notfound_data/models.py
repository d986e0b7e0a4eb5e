"""
Value types for the data executor.

Enums: ProductTypeEnum, DbType, ParameterDirection, CommandType.
Models: ConnectionConfig, Parameter, Command, Column, ResultTable, ResultSet.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ProductTypeEnum(str, Enum):
    """Supported database product types (postgres, mysql, trino)."""

    POSTGRES = "postgres"
    MYSQL = "mysql"
    TRINO = "trino"


class DbType(str, Enum):
    """Declared parameter type; decides how a value is coerced before binding."""

    STRING = "string"
    ANSI_STRING = "ansi_string"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    BOOLEAN = "boolean"
    DECIMAL = "decimal"
    DOUBLE = "double"
    DATE = "date"
    DATETIME = "datetime"
    GUID = "guid"
    BINARY = "binary"


class ParameterDirection(str, Enum):
    INPUT = "input"
    OUTPUT = "output"
    INPUT_OUTPUT = "input_output"
    RETURN_VALUE = "return_value"


class CommandType(str, Enum):
    """Plain SQL text or the name of a stored procedure."""

    TEXT = "text"
    STORED_PROCEDURE = "stored_procedure"


# ---------------------------------------------------------------------------
# Connection
# ---------------------------------------------------------------------------


class ConnectionConfig(BaseModel):
    """Parsed, immutable connection string. Build with core.connect.parse_connection_string."""

    model_config = ConfigDict(frozen=True)

    connection_string: str = Field(repr=False)
    product_type: ProductTypeEnum
    # None: driver default (e.g. a libpq Unix socket, or ?host=/ ?unix_socket= in options).
    host: str | None = None
    port: int
    database: str | None = None
    username: str | None = None
    password: str | None = Field(default=None, repr=False)
    options: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Commands and parameters
# ---------------------------------------------------------------------------


class Parameter(BaseModel):
    """
    Bound parameter descriptor. ``value`` may be set after creation.

    ``name`` may carry a leading ``@``; it is stripped when binding.
    """

    name: str
    db_type: DbType = DbType.STRING
    # <= 0: no length limit (-1 is the conventional "max").
    size: int = 0
    direction: ParameterDirection = ParameterDirection.INPUT
    value: Any = None

    @property
    def bind_name(self) -> str:
        return self.name.lstrip("@")


class Command(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    command_type: CommandType = CommandType.TEXT
    parameters: tuple[Parameter, ...] = ()


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class Column(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    # Driver-specific type code from cursor.description (OID, MySQL field type, Trino type name).
    type_code: Any = None


class ResultTable(BaseModel):
    """Rows returned by one statement."""

    columns: list[Column] = Field(default_factory=list)
    rows: list[tuple[Any, ...]] = Field(default_factory=list)

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def to_dicts(self) -> list[dict[str, Any]]:
        names = self.column_names
        return [dict(zip(names, row, strict=True)) for row in self.rows]

    def __len__(self) -> int:
        return len(self.rows)


class ResultSet(BaseModel):
    """
    In-memory result of a query batch: one ResultTable per row-returning statement.

    Empty (no tables) when the query failed. Row-level helpers read the first table.
    """

    tables: list[ResultTable] = Field(default_factory=list)

    @property
    def table(self) -> ResultTable:
        return self.tables[0] if self.tables else ResultTable()

    @property
    def columns(self) -> list[Column]:
        return self.table.columns

    @property
    def rows(self) -> list[tuple[Any, ...]]:
        return self.table.rows

    def to_dicts(self) -> list[dict[str, Any]]:
        return self.table.to_dicts()

    def is_empty(self) -> bool:
        return not any(t.rows for t in self.tables)

    def __len__(self) -> int:
        """Rows across all tables; an empty set is falsy."""
        return sum(len(t) for t in self.tables)

"""
SQL execution façade for the "page not found" redirect store.

Exports: DataExecutor, ExecutionResult, ExecutionError, ErrorKind and the value types.
"""

from notfound_data.engines.sql import (
    DataExecutor,
    ErrorKind,
    ExecutionError,
    ExecutionResult,
)
from notfound_data.models import (
    CommandType,
    ConnectionConfig,
    DbType,
    Parameter,
    ParameterDirection,
    ProductTypeEnum,
    ResultSet,
)

__all__ = [
    "DataExecutor",
    "ExecutionResult",
    "ExecutionError",
    "ErrorKind",
    "CommandType",
    "ConnectionConfig",
    "DbType",
    "Parameter",
    "ParameterDirection",
    "ProductTypeEnum",
    "ResultSet",
]

"""
SQL execution engine.

Exports: DataExecutor, ExecutionResult, ExecutionError, ErrorKind, create_parameter.
"""

from notfound_data.engines.sql.executor import DataExecutor
from notfound_data.engines.sql.parameters import create_parameter
from notfound_data.engines.sql.result import ErrorKind, ExecutionError, ExecutionResult

__all__ = [
    "DataExecutor",
    "ExecutionResult",
    "ExecutionError",
    "ErrorKind",
    "create_parameter",
]

"""
Engines: SQL (DataExecutor over psycopg / pymysql / trino).
"""

from notfound_data.engines.sql import DataExecutor, ExecutionResult

__all__ = [
    "DataExecutor",
    "ExecutionResult",
]

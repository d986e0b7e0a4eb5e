"""
Settings for the data executor (pydantic-settings).

Values come from environment variables prefixed with ``NOTFOUND_`` or from a
``.env`` file in the working directory.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="NOTFOUND_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Default connection string for DataExecutor() when none is passed.
    CONNECTION_STRING: str | None = None

    # Seconds; passed to the driver when opening a connection.
    CONNECT_TIMEOUT: int = Field(default=10, ge=1)
    # Seconds; None leaves the driver/server default untouched.
    STATEMENT_TIMEOUT: float | None = None

    RETURN_VALUE_PARAMETER: str = "ReturnValue"
    LOG_SQL_MAX_LENGTH: int = Field(default=2000, ge=0)


settings = Settings()

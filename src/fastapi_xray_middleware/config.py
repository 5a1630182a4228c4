"""Settings for the log formatter and tracing middleware.

Values are read from environment variables by default, but every
component takes a settings instance explicitly so tests can build one
with keyword arguments.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TRACE_HEADER = "X-Amzn-Trace-Id"


class MiddlewareSettings(BaseSettings):
    """Configuration shared by the formatter, middleware and transports."""

    model_config = SettingsConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    app_name: str = Field("", alias="APP_NAME")
    segment_name: str = Field("service", alias="XRAY_NAME", min_length=1)
    trace_header: str = Field(DEFAULT_TRACE_HEADER, alias="XRAY_TRACE", min_length=1)

    # 02/01/2006 15:04:05 with milliseconds appended by the formatter
    timestamp_format: str = Field("%d/%m/%Y %H:%M:%S", alias="LOG_TIMESTAMP_FORMAT")
    number_locale: str = Field("id", alias="LOG_NUMBER_LOCALE")


@lru_cache
def get_settings() -> MiddlewareSettings:
    """Return settings loaded from the process environment (cached)."""
    return MiddlewareSettings()

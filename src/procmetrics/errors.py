"""Exceptions raised by procmetrics."""

from typing import Any


class ConfigError(ValueError):
    """
    Raised when a reader configuration is invalid.

    Metric operations never raise; configuration is validated eagerly so that
    a misconfigured reader fails at construction instead of silently
    returning zero values.
    """

    def __init__(self, message: str, field_name: str | None = None, value: Any = None) -> None:
        super().__init__(message)
        self.field_name = field_name
        self.value = value

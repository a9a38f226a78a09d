"""Reader configuration for procmetrics."""

import logging
import os
import tomllib
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any

from procmetrics.errors import ConfigError

logger = logging.getLogger(__name__)

# Used where os.sysconf is unavailable; matches USER_HZ on every mainstream Linux build.
FALLBACK_CLOCK_TICKS = 100


class ParseMode(Enum):
    """How the reader resolves the historically ambiguous metrics."""

    CONVENTIONAL = "conventional"
    LEGACY = "legacy"


def system_clock_ticks() -> int:
    """Return the platform clock-ticks-per-second constant."""
    try:
        ticks = os.sysconf("SC_CLK_TCK")
    except (AttributeError, ValueError, OSError):
        return FALLBACK_CLOCK_TICKS
    return ticks if ticks > 0 else FALLBACK_CLOCK_TICKS


@dataclass(slots=True, frozen=True)
class ReaderConfig:
    """Immutable settings shared by every read a MetricsReader performs."""

    proc_root: Path = field(default_factory=lambda: Path("/proc"))
    etc_root: Path = field(default_factory=lambda: Path("/etc"))
    mode: ParseMode = ParseMode.CONVENTIONAL
    clock_ticks: int | None = None

    def __post_init__(self) -> None:
        # Accept plain strings from callers and TOML alike
        object.__setattr__(self, "proc_root", Path(self.proc_root))
        object.__setattr__(self, "etc_root", Path(self.etc_root))
        object.__setattr__(self, "mode", _coerce_mode(self.mode))

        if self.clock_ticks is not None:
            if isinstance(self.clock_ticks, bool) or not isinstance(self.clock_ticks, int):
                raise ConfigError(
                    f"clock_ticks must be an integer, got {self.clock_ticks!r}",
                    field_name="clock_ticks",
                    value=self.clock_ticks,
                )
            if self.clock_ticks <= 0:
                raise ConfigError(
                    f"clock_ticks must be positive, got {self.clock_ticks}",
                    field_name="clock_ticks",
                    value=self.clock_ticks,
                )

    @property
    def resolved_clock_ticks(self) -> int:
        """Clock ticks per second, falling back to the platform constant."""
        if self.clock_ticks is not None:
            return self.clock_ticks
        return system_clock_ticks()

    def with_overrides(self, **overrides: Any) -> "ReaderConfig":
        """Return a copy with the given fields replaced."""
        unknown = set(overrides) - set(self.__dataclass_fields__)
        if unknown:
            name = sorted(unknown)[0]
            raise ConfigError(f"Unknown reader setting: {name}", field_name=name)
        return replace(self, **overrides)


def _coerce_mode(value: Any) -> ParseMode:
    if isinstance(value, ParseMode):
        return value
    try:
        return ParseMode(str(value).lower())
    except ValueError:
        choices = ", ".join(m.value for m in ParseMode)
        raise ConfigError(
            f"Unknown parse mode {value!r}; expected one of: {choices}",
            field_name="mode",
            value=value,
        ) from None


def config_from_mapping(data: dict[str, Any]) -> ReaderConfig:
    """
    Build a ReaderConfig from a plain mapping, e.g. a parsed TOML table.

    Args:
        data: Mapping with any of proc_root, etc_root, mode, clock_ticks.

    Returns:
        The validated configuration.

    Raises:
        ConfigError: If a key is unknown or a value has the wrong type.
    """
    settings: dict[str, Any] = {}
    for key, value in data.items():
        if key not in ReaderConfig.__dataclass_fields__:
            raise ConfigError(f"Unknown reader setting: {key}", field_name=key, value=value)
        if key in ("proc_root", "etc_root") and not isinstance(value, str):
            raise ConfigError(f"{key} must be a path string, got {value!r}", field_name=key, value=value)
        settings[key] = value
    return ReaderConfig(**settings)


def load_config(config_path: str | os.PathLike[str]) -> ReaderConfig:
    """
    Load reader settings from the ``[reader]`` table of a TOML file.

    Args:
        config_path: Path to the TOML file.

    Returns:
        The validated configuration. A file without a ``[reader]`` table
        yields the defaults.

    Raises:
        ConfigError: If the file is missing, malformed, or holds invalid values.
    """
    path = Path(config_path)
    logger.info(f"Loading reader configuration from: {path}")

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        raise ConfigError(f"Configuration file not found: {path}", value=str(path)) from None
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Malformed configuration file {path}: {e}", value=str(path)) from e

    table = data.get("reader", {})
    if not isinstance(table, dict):
        raise ConfigError("[reader] must be a table", field_name="reader", value=table)
    return config_from_mapping(table)

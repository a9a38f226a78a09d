"""procmetrics - typed metrics from the Linux /proc and /etc text interfaces."""

from procmetrics.config import ParseMode, ReaderConfig, load_config
from procmetrics.errors import ConfigError
from procmetrics.models import CpuAggregate, CpuState, MemorySnapshot, ProcessSnapshot, SystemIdentity
from procmetrics.reader import MetricsReader

__all__ = [
    "ConfigError",
    "CpuAggregate",
    "CpuState",
    "MemorySnapshot",
    "MetricsReader",
    "ParseMode",
    "ProcessSnapshot",
    "ReaderConfig",
    "SystemIdentity",
    "load_config",
]

__version__ = "0.1.0"

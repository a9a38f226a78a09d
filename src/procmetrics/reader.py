"""Metrics reader for procmetrics."""

import logging
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from procmetrics import parsing
from procmetrics.config import ParseMode, ReaderConfig
from procmetrics.models import CpuAggregate, MemorySnapshot, ProcessSnapshot, SystemIdentity

logger = logging.getLogger(__name__)

OS_RELEASE_FILENAME = "os-release"
PASSWORD_FILENAME = "passwd"
VERSION_FILENAME = "version"
MEMINFO_FILENAME = "meminfo"
UPTIME_FILENAME = "uptime"
STAT_FILENAME = "stat"
TIMER_LIST_FILENAME = "timer_list"
STATUS_FILENAME = "status"
CMDLINE_FILENAME = "cmdline"

EMPTY_MEMORY = MemorySnapshot()


class MetricsReader:
    """
    Reads point-in-time system and process metrics from /proc and /etc.

    Every operation opens one pseudo-file, reads it inside a ``with`` block
    and decodes a single metric. When the file cannot be read, or the value
    is missing or malformed, the operation returns its ``default`` argument,
    which is the documented zero value unless the caller overrides it. Pass
    ``default=None`` to tell "unavailable" apart from a genuine zero.

    The reader holds only its configuration; nothing read from disk is kept
    between calls, so two metrics never describe the exact same instant.
    """

    def __init__(self, config: ReaderConfig | None = None, **overrides: Any) -> None:
        """
        Initialize the MetricsReader.

        Args:
            config: Reader settings. Defaults to ReaderConfig().
            **overrides: Individual ReaderConfig fields to replace, e.g.
                ``proc_root=tmp_path`` or ``mode="legacy"``.
        """
        config = config or ReaderConfig()
        if overrides:
            config = config.with_overrides(**overrides)
        self._config = config
        self._clock_ticks = config.resolved_clock_ticks

    @property
    def config(self) -> ReaderConfig:
        return self._config

    @property
    def mode(self) -> ParseMode:
        """Which behavior the historically ambiguous metrics follow."""
        return self._config.mode

    @property
    def clock_ticks(self) -> int:
        """Clock ticks per second used to convert jiffies to seconds."""
        return self._clock_ticks

    @property
    def _legacy(self) -> bool:
        return self._config.mode is ParseMode.LEGACY

    def _proc_path(self, *parts: str | int) -> Path:
        return self._config.proc_root.joinpath(*(str(part) for part in parts))

    def _etc_path(self, name: str) -> Path:
        return self._config.etc_root / name

    def _read_text(self, path: Path) -> str | None:
        """Return the whole content of ``path``, or None if it cannot be read."""
        try:
            with open(path, encoding="utf-8", errors="replace") as f:
                return f.read()
        except OSError as e:
            logger.debug(f"Cannot read {path}: {e}")
            return None

    # System identity

    def operating_system(self, default: str | None = "") -> str | None:
        """Return PRETTY_NAME from os-release."""
        text = self._read_text(self._etc_path(OS_RELEASE_FILENAME))
        value = parsing.parse_os_release(text) if text is not None else None
        return default if value is None else value

    def kernel(self, default: str | None = "") -> str | None:
        """Return the kernel release from /proc/version."""
        text = self._read_text(self._proc_path(VERSION_FILENAME))
        value = parsing.parse_kernel_version(text) if text is not None else None
        return default if value is None else value

    def system_identity(self) -> SystemIdentity:
        return SystemIdentity(pretty_name=self.operating_system(), kernel_version=self.kernel())

    # Processes

    def pids(self, default: Sequence[int] | None = ()) -> list[int] | None:
        """
        Return the pids of live processes in directory enumeration order.

        A pid is any subdirectory of the process root whose name is made of
        ASCII decimal digits only. Processes may exit before they are queried.
        """
        pids: list[int] = []
        try:
            with os.scandir(self._config.proc_root) as entries:
                for entry in entries:
                    name = entry.name
                    if name.isascii() and name.isdigit() and entry.is_dir(follow_symlinks=False):
                        pids.append(int(name))
        except OSError as e:
            logger.debug(f"Cannot list {self._config.proc_root}: {e}")
            return None if default is None else list(default)
        return pids

    def _process_counter(self, key: str, default: int | None) -> int | None:
        # Legacy behavior looks these keys up in meminfo, where they never appear
        filename = MEMINFO_FILENAME if self._legacy else STAT_FILENAME
        text = self._read_text(self._proc_path(filename))
        value = parsing.parse_keyed_int(text, key) if text is not None else None
        return default if value is None else value

    def total_processes(self, default: int | None = -1) -> int | None:
        """Return the number of processes created since boot."""
        return self._process_counter("processes", default)

    def running_processes(self, default: int | None = -1) -> int | None:
        """Return the number of processes currently runnable."""
        return self._process_counter("procs_running", default)

    # Memory

    def memory_snapshot(self, default: MemorySnapshot | None = EMPTY_MEMORY) -> MemorySnapshot | None:
        text = self._read_text(self._proc_path(MEMINFO_FILENAME))
        if text is None:
            return default
        return parsing.parse_meminfo(text)

    def memory_utilization(self, default: float | None = 0.0) -> float | None:
        """
        Return used memory in kB as MemTotal minus MemFree.

        A key missing from an otherwise readable meminfo counts as 0.
        """
        snapshot = self.memory_snapshot(default=None)
        if snapshot is None:
            return default
        return snapshot.utilization

    # Time and CPU

    def uptime(self, default: int | None = 0) -> int | None:
        """Return whole seconds since boot."""
        text = self._read_text(self._proc_path(UPTIME_FILENAME))
        value = parsing.parse_uptime(text) if text is not None else None
        return default if value is None else value

    def cpu_aggregate(self, default: CpuAggregate | None = None) -> CpuAggregate | None:
        """Return the aggregate cpu counters from /proc/stat."""
        text = self._read_text(self._proc_path(STAT_FILENAME))
        value = parsing.parse_cpu_line(text) if text is not None else None
        return default if value is None else value

    def cpu_utilization(self, default: Sequence[str] | None = ()) -> list[str] | None:
        """
        Return the ten cpu counters as strings, in CpuState order.

        The values stay textual so callers choose their own numeric type.
        """
        aggregate = self.cpu_aggregate()
        if aggregate is None:
            return None if default is None else list(default)
        return aggregate.as_strings()

    def active_jiffies(self, default: int | None = 0) -> int | None:
        """Return user + nice + system + irq + softirq + steal jiffies."""
        aggregate = self.cpu_aggregate()
        return default if aggregate is None else aggregate.active

    def idle_jiffies(self, default: int | None = 0) -> int | None:
        """Return idle + iowait jiffies."""
        aggregate = self.cpu_aggregate()
        return default if aggregate is None else aggregate.idle_total

    def jiffies(self, default: int | None = 0) -> int | None:
        """
        Return the system jiffy count.

        Conventional mode sums the active and idle cpu counters. Legacy mode
        looks for a ``jiffies <value>`` line in /proc/timer_list.
        """
        if self._legacy:
            text = self._read_text(self._proc_path(TIMER_LIST_FILENAME))
            value = parsing.parse_keyed_int(text, "jiffies") if text is not None else None
            return default if value is None else value

        aggregate = self.cpu_aggregate()
        return default if aggregate is None else aggregate.total

    # Per-process metrics

    def _process_stat(self, pid: int) -> str | None:
        return self._read_text(self._proc_path(pid, STAT_FILENAME))

    def _process_status_field(self, pid: int, key: str) -> str | None:
        text = self._read_text(self._proc_path(pid, STATUS_FILENAME))
        return parsing.parse_keyed_field(text, key) if text is not None else None

    def process_active_jiffies(self, pid: int, default: int | None = 0) -> int | None:
        """Return the utime + stime ticks of ``pid``."""
        text = self._process_stat(pid)
        value = parsing.parse_process_active_jiffies(text, legacy=self._legacy) if text is not None else None
        return default if value is None else value

    def process_start_ticks(self, pid: int, default: int | None = 0) -> int | None:
        """Return the ticks after boot at which ``pid`` started."""
        text = self._process_stat(pid)
        value = parsing.parse_process_start_ticks(text, legacy=self._legacy) if text is not None else None
        return default if value is None else value

    def process_uptime(self, pid: int, default: int | None = 0) -> int | None:
        """Return how many seconds ``pid`` has been running."""
        if self._legacy:
            text = self._process_stat(pid)
            if text is None:
                return default
            value = parsing.parse_legacy_process_uptime(text, self._clock_ticks)
            return default if value is None else value

        start_ticks = self.process_start_ticks(pid, default=None)
        system_uptime = self.uptime(default=None)
        if start_ticks is None or system_uptime is None:
            return default
        return max(system_uptime - start_ticks // self._clock_ticks, 0)

    def command(self, pid: int, default: str | None = "") -> str | None:
        """Return the command line of ``pid``."""
        text = self._read_text(self._proc_path(pid, CMDLINE_FILENAME))
        if text is None:
            return default
        return parsing.parse_cmdline(text, legacy=self._legacy)

    def ram(self, pid: int, default: str | None = "") -> str | None:
        """
        Return the memory indicator of ``pid``.

        Conventional mode reports resident set size (VmRSS, in kB). Legacy
        mode reports the raw Mems_allowed mask.
        """
        key = "Mems_allowed:" if self._legacy else "VmRSS:"
        value = self._process_status_field(pid, key)
        return default if value is None else value

    def uid(self, pid: int, default: str | None = "") -> str | None:
        """Return the real user id of ``pid``."""
        value = self._process_status_field(pid, "Uid:")
        return default if value is None else value

    def user(self, pid: int, default: str | None = "") -> str | None:
        """Return the name of the user owning ``pid``."""
        uid = self.uid(pid, default=None)
        if uid is None:
            return default
        text = self._read_text(self._etc_path(PASSWORD_FILENAME))
        value = parsing.find_username(text, uid) if text is not None else None
        return default if value is None else value

    def process(self, pid: int) -> ProcessSnapshot:
        """
        Collect every per-process metric of ``pid``.

        Each field is read independently; a process exiting midway leaves
        the remaining fields at their zero values.
        """
        return ProcessSnapshot(
            pid=pid,
            active_jiffies=self.process_active_jiffies(pid),
            start_ticks=self.process_start_ticks(pid),
            ram=self.ram(pid),
            uid=self.uid(pid),
            user=self.user(pid),
            command=self.command(pid),
            uptime_seconds=self.process_uptime(pid),
        )

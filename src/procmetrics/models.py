"""Data models for procmetrics."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType


class CpuState(IntEnum):
    """Column index of each counter on the aggregate ``cpu`` line."""

    USER = 0
    NICE = 1
    SYSTEM = 2
    IDLE = 3
    IOWAIT = 4
    IRQ = 5
    SOFTIRQ = 6
    STEAL = 7
    GUEST = 8
    GUEST_NICE = 9


CPU_STATE_COUNT = len(CpuState)

ACTIVE_STATES = (
    CpuState.USER,
    CpuState.NICE,
    CpuState.SYSTEM,
    CpuState.IRQ,
    CpuState.SOFTIRQ,
    CpuState.STEAL,
)
IDLE_STATES = (CpuState.IDLE, CpuState.IOWAIT)


@dataclass(slots=True, frozen=True)
class SystemIdentity:
    """Human-readable OS name and running kernel release."""

    pretty_name: str
    kernel_version: str


@dataclass(slots=True, frozen=True)
class MemorySnapshot:
    """
    Parsed meminfo quantities, keyed exactly as they appear in the file.

    Keys keep their trailing colon (``"MemTotal:"``) and values are in kB.
    """

    values: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def get(self, key: str) -> float:
        """Return the quantity for ``key``, or 0.0 when it is absent."""
        return self.values.get(key, 0.0)

    @property
    def total(self) -> float:
        return self.get("MemTotal:")

    @property
    def free(self) -> float:
        return self.get("MemFree:")

    @property
    def utilization(self) -> float:
        """Used memory in kB (MemTotal minus MemFree)."""
        return self.total - self.free


@dataclass(slots=True, frozen=True)
class CpuAggregate:
    """Cumulative jiffy counters from the aggregate ``cpu`` line."""

    user: int
    nice: int
    system: int
    idle: int
    iowait: int
    irq: int
    softirq: int
    steal: int
    guest: int
    guest_nice: int

    @classmethod
    def from_counters(cls, counters: list[int]) -> "CpuAggregate":
        """Build from counters in CpuState order, padding missing columns with 0."""
        padded = list(counters[:CPU_STATE_COUNT])
        padded.extend([0] * (CPU_STATE_COUNT - len(padded)))
        return cls(*padded)

    def __getitem__(self, state: CpuState) -> int:
        return self.counters[state]

    @property
    def counters(self) -> tuple[int, ...]:
        return (
            self.user,
            self.nice,
            self.system,
            self.idle,
            self.iowait,
            self.irq,
            self.softirq,
            self.steal,
            self.guest,
            self.guest_nice,
        )

    @property
    def active(self) -> int:
        """Jiffies spent doing work (user, nice, system, irq, softirq, steal)."""
        return sum(self[state] for state in ACTIVE_STATES)

    @property
    def idle_total(self) -> int:
        """Jiffies spent idle or waiting on I/O."""
        return sum(self[state] for state in IDLE_STATES)

    @property
    def total(self) -> int:
        return self.active + self.idle_total

    def as_strings(self) -> list[str]:
        """Counters as decimal strings in CpuState order."""
        return [str(value) for value in self.counters]

    def utilization_since(self, previous: "CpuAggregate") -> float:
        """
        Fraction of time spent active between ``previous`` and this sample.

        Returns 0.0 when no time elapsed between the two samples or the
        counters went backwards.
        """
        total_delta = self.total - previous.total
        if total_delta <= 0:
            return 0.0
        active_delta = self.active - previous.active
        return min(max(active_delta / total_delta, 0.0), 1.0)


@dataclass(slots=True, frozen=True)
class ProcessSnapshot:
    """Immutable snapshot of the metrics of one process."""

    pid: int
    active_jiffies: int
    start_ticks: int
    ram: str  # Mems_allowed in legacy mode, VmRSS kB otherwise
    uid: str
    user: str
    command: str
    uptime_seconds: int

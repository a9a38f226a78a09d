"""Shared fixtures: synthetic /proc and /etc trees."""

from pathlib import Path

import pytest

from procmetrics.reader import MetricsReader

OS_RELEASE = """\
NAME="Ubuntu"
VERSION="22.04.3 LTS (Jammy Jellyfish)"
ID=ubuntu
PRETTY_NAME="Ubuntu 22.04.3 LTS"
VERSION_ID="22.04"
"""

VERSION = "Linux version 5.15.0-foo (buildd@lcy02) (gcc 11.4.0) #1 SMP Fri Jan 1 00:00:00 UTC 2024\n"

MEMINFO = """\
MemTotal:        1000 kB
MemFree:          300 kB
MemAvailable:     600 kB
Buffers:           20 kB
HugePages_Total:    0
"""

UPTIME = "12345.67 54321.00\n"

STAT = """\
cpu  10 20 30 40 50 60 70 80 90 100
cpu0 5 10 15 20 25 30 35 40 45 50
intr 1000 0 0
ctxt 2000
btime 1700000000
processes 4242
procs_running 3
procs_blocked 0
"""

TIMER_LIST = """\
Timer List Version: v0.9
now at 1234 nsecs
jiffies 4295000000
"""

PASSWD = """\
root:x:0:0:root:/root:/bin/bash
daemon::1:1:daemon:/usr/sbin:/usr/sbin/nologin
alice:x:1000:1000:Alice,,,:/home/alice:/bin/bash
"""

CLOCK_TICKS = 100


def stat_line(pid: int, comm: str = "bash", utime: int = 12, stime: int = 34, starttime: int = 50000) -> str:
    """Build a per-process stat line with 52 fields."""
    fields = [str(pid), f"({comm})", "S"] + ["0"] * 49
    fields[13] = str(utime)
    fields[14] = str(stime)
    fields[21] = str(starttime)
    return " ".join(fields) + "\n"


def status_text(uid: str = "1000", rss: str = "5120", mems_allowed: str = "00000001") -> str:
    return (
        "Name:\tbash\n"
        "State:\tS (sleeping)\n"
        f"Uid:\t{uid}\t{uid}\t{uid}\t{uid}\n"
        "Gid:\t1000\t1000\t1000\t1000\n"
        f"VmRSS:\t    {rss} kB\n"
        f"Mems_allowed:\t{mems_allowed}\n"
        "Mems_allowed_list:\t0\n"
    )


def add_process(proc_root: Path, pid: int, stat: str | None = None, status: str | None = None,
                cmdline: str = "/bin/bash\0--login\0") -> Path:
    """Create a <proc_root>/<pid>/ directory with stat, status and cmdline."""
    pid_dir = proc_root / str(pid)
    pid_dir.mkdir()
    (pid_dir / "stat").write_text(stat if stat is not None else stat_line(pid))
    (pid_dir / "status").write_text(status if status is not None else status_text())
    (pid_dir / "cmdline").write_text(cmdline)
    return pid_dir


@pytest.fixture
def fake_roots(tmp_path: Path) -> tuple[Path, Path]:
    """A populated proc root and etc root with one process, pid 42."""
    proc_root = tmp_path / "proc"
    etc_root = tmp_path / "etc"
    proc_root.mkdir()
    etc_root.mkdir()

    (etc_root / "os-release").write_text(OS_RELEASE)
    (etc_root / "passwd").write_text(PASSWD)
    (proc_root / "version").write_text(VERSION)
    (proc_root / "meminfo").write_text(MEMINFO)
    (proc_root / "uptime").write_text(UPTIME)
    (proc_root / "stat").write_text(STAT)
    (proc_root / "timer_list").write_text(TIMER_LIST)
    add_process(proc_root, 42)
    return proc_root, etc_root


@pytest.fixture
def reader(fake_roots: tuple[Path, Path]) -> MetricsReader:
    proc_root, etc_root = fake_roots
    return MetricsReader(proc_root=proc_root, etc_root=etc_root, clock_ticks=CLOCK_TICKS)


@pytest.fixture
def legacy_reader(fake_roots: tuple[Path, Path]) -> MetricsReader:
    proc_root, etc_root = fake_roots
    return MetricsReader(proc_root=proc_root, etc_root=etc_root, clock_ticks=CLOCK_TICKS, mode="legacy")


@pytest.fixture
def empty_reader(tmp_path: Path) -> MetricsReader:
    """A reader whose roots do not exist."""
    return MetricsReader(proc_root=tmp_path / "missing-proc", etc_root=tmp_path / "missing-etc", clock_ticks=CLOCK_TICKS)

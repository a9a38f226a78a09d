"""
Pure decoders for the /proc and /etc text formats.

Each function takes the text of one pseudo-file and returns the extracted
value, or None when the sought key or field is missing or malformed. None of
them touch the filesystem; MetricsReader owns all I/O.
"""

import logging
import re

from procmetrics.models import CPU_STATE_COUNT, CpuAggregate, MemorySnapshot

logger = logging.getLogger(__name__)

# 0-based positions on a per-process stat line, counted from the pid
UTIME_FIELD = 13
STIME_FIELD = 14
STARTTIME_FIELD = 21

# Plain ASCII decimal, as procfs writes it; rejects "1_000", padding and non-ASCII digits
_INTEGER = re.compile(r"[+-]?[0-9]+")
_LEADING_INTEGER = re.compile(r"\s*([+-]?[0-9]+)")


def _to_int(token: str) -> int | None:
    if not _INTEGER.fullmatch(token):
        logger.debug(f"Malformed integer field: {token!r}")
        return None
    return int(token)


def _first_line(text: str) -> str:
    return text.split("\n", 1)[0]


def parse_os_release(text: str, key: str = "PRETTY_NAME") -> str | None:
    """
    Return the value of ``key`` from os-release content.

    Each line is normalized before tokenizing: spaces become underscores and
    ``=`` and ``"`` become spaces, so ``PRETTY_NAME="Ubuntu 22.04"`` reads as
    the pair ``PRETTY_NAME Ubuntu_22.04``. Underscores in the value are turned
    back into spaces on return.
    """
    for line in text.splitlines():
        line = line.replace(" ", "_").replace("=", " ").replace('"', " ")
        tokens = line.split()
        for name, value in zip(tokens[0::2], tokens[1::2]):
            if name == key:
                return value.replace("_", " ")
    return None


def parse_kernel_version(text: str) -> str | None:
    """Return the third token of the first line of /proc/version."""
    tokens = _first_line(text).split()
    if len(tokens) < 3:
        return None
    return tokens[2]


def parse_meminfo(text: str) -> MemorySnapshot:
    """
    Parse ``Key: value [unit]`` lines into a MemorySnapshot.

    Lines whose value is not numeric are skipped; a repeated key keeps its
    last value.
    """
    values: dict[str, float] = {}
    for line in text.splitlines():
        tokens = line.split()
        if len(tokens) < 2:
            continue
        try:
            values[tokens[0]] = float(tokens[1])
        except ValueError:
            logger.debug(f"Skipping malformed meminfo line: {line!r}")
    return MemorySnapshot(values)


def parse_uptime(text: str) -> int | None:
    """Return whole seconds from the first token of /proc/uptime."""
    tokens = _first_line(text).split()
    if not tokens:
        return None
    try:
        return int(float(tokens[0]))
    except (ValueError, OverflowError):
        logger.debug(f"Malformed uptime: {tokens[0]!r}")
        return None


def parse_keyed_int(text: str, key: str) -> int | None:
    """
    Return the integer following ``key`` on the first line that starts with it.

    Used for ``processes``/``procs_running`` in /proc/stat and ``jiffies`` in
    /proc/timer_list. The key must match the first token exactly.
    """
    for line in text.splitlines():
        tokens = line.split()
        if len(tokens) >= 2 and tokens[0] == key:
            return _to_int(tokens[1])
    return None


def parse_keyed_field(text: str, key: str) -> str | None:
    """Return the first token after ``key`` on a ``Key:\\tvalue`` status line."""
    for line in text.splitlines():
        tokens = line.split()
        if len(tokens) >= 2 and tokens[0] == key:
            return tokens[1]
    return None


def parse_cpu_line(text: str) -> CpuAggregate | None:
    """
    Parse the aggregate ``cpu`` line of /proc/stat.

    Kernels that expose fewer than ten counters have the missing trailing
    columns padded with zeros. A ``cpu`` line without any numeric counter
    counts as not found.
    """
    for line in text.splitlines():
        tokens = line.split()
        if not tokens or tokens[0] != "cpu":
            continue
        counters: list[int] = []
        for token in tokens[1 : CPU_STATE_COUNT + 1]:
            value = _to_int(token)
            if value is None:
                break
            counters.append(value)
        if not counters:
            return None
        return CpuAggregate.from_counters(counters)
    return None


def split_stat_fields(text: str, legacy: bool = False) -> list[str]:
    """
    Split a per-process stat line into fields indexed from the pid.

    The command name (field 2) is wrapped in parentheses and may itself hold
    spaces or parentheses, so the fields after it are taken from the last
    ``)`` onwards. With ``legacy`` set, the line is split on whitespace only.
    """
    line = _first_line(text)
    if legacy:
        return line.split()

    open_paren = line.find("(")
    close_paren = line.rfind(")")
    if open_paren == -1 or close_paren < open_paren:
        return line.split()
    head = line[:open_paren].split()
    comm = line[open_paren : close_paren + 1]
    return head + [comm] + line[close_paren + 1 :].split()


def parse_process_active_jiffies(text: str, legacy: bool = False) -> int | None:
    """
    Return utime + stime from a per-process stat line.

    In legacy mode the two fields are concatenated as strings before being
    read as one integer, matching the historic output of this metric.
    """
    fields = split_stat_fields(text, legacy=legacy)
    if len(fields) <= STIME_FIELD:
        return None
    utime, stime = fields[UTIME_FIELD], fields[STIME_FIELD]
    if legacy:
        return _to_int(utime + stime)
    utime_value, stime_value = _to_int(utime), _to_int(stime)
    if utime_value is None or stime_value is None:
        return None
    return utime_value + stime_value


def parse_process_start_ticks(text: str, legacy: bool = False) -> int | None:
    """Return the starttime field (22nd, 1-indexed) of a per-process stat line."""
    fields = split_stat_fields(text, legacy=legacy)
    if len(fields) <= STARTTIME_FIELD:
        return None
    return _to_int(fields[STARTTIME_FIELD])


def parse_legacy_process_uptime(text: str, clock_ticks: int) -> int | None:
    """
    Read the leading integer of the first stat line as ticks and convert to seconds.

    On a real stat line the leading integer is the pid, so the result is
    pid / clock ticks. A line that does not start with an integer yields None.
    """
    match = _LEADING_INTEGER.match(_first_line(text))
    if match is None:
        logger.debug(f"No leading integer in stat line: {text[:40]!r}")
        return None
    return int(match.group(1)) // clock_ticks


def parse_cmdline(text: str, legacy: bool = False) -> str:
    """
    Return the command line of a process.

    Legacy mode returns the first line verbatim, NUL separators included.
    Otherwise NUL separators become spaces and trailing separators are dropped.
    """
    line = _first_line(text)
    if legacy:
        return line
    return line.replace("\0", " ").rstrip(" ")


def find_username(text: str, uid: str) -> str | None:
    """
    Return the username whose uid matches ``uid`` in passwd content.

    Lines are ``:``-separated; the username is field 1 and the uid field 3.
    The first matching line wins.
    """
    for line in text.splitlines():
        fields = line.split(":")
        if len(fields) >= 3 and fields[2] == uid:
            return fields[0]
    return None

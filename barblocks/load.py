"""System load average block."""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path

from .common import BlockError, State, render_format

__all__ = ["LoadConfig", "Load", "count_logical_cores", "parse_loadavg", "load_state"]


@dataclass
class LoadConfig:
    """Configuration of the load block."""

    format: str = "{1m}"
    interval: float = 5.0
    info: float = 0.3
    warning: float = 0.6
    critical: float = 0.9


def count_logical_cores(cpuinfo_text: str) -> int:
    """Count the logical processors listed in a /proc/cpuinfo dump."""
    return sum(1 for line in cpuinfo_text.splitlines() if line.startswith("processor"))


def parse_loadavg(text: str) -> dict[str, str]:
    """Split a /proc/loadavg line into its 1, 5 and 15 minute averages."""
    fields = text.split(" ")
    if len(fields) < 3:
        raise BlockError("load", "failed to read the load average")
    return {"1m": fields[0], "5m": fields[1], "15m": fields[2]}


def load_state(used: float, info: float, warning: float, critical: float) -> State:
    """Pick a state for a per-core load value; thresholds are exclusive."""
    if used > critical:
        return State.CRITICAL
    if used > warning:
        return State.WARNING
    if used > info:
        return State.INFO
    return State.IDLE


class Load:
    """Shows the load average, coloured by load per logical core."""

    icon = "cogs"

    def __init__(
        self,
        config: LoadConfig | None = None,
        cpuinfo_path: str | Path = "/proc/cpuinfo",
        loadavg_path: str | Path = "/proc/loadavg",
    ) -> None:
        self.config = config or LoadConfig()
        try:
            content = Path(cpuinfo_path).read_text()
        except OSError as exc:
            raise BlockError("load", "Your system doesn't support /proc/cpuinfo") from exc
        self.logical_cores = count_logical_cores(content)
        self.loadavg_path = Path(loadavg_path)
        self.text = ""
        self.state = State.INFO

    def update(self) -> float:
        """Refresh text and state; return seconds until the next update."""
        try:
            loadavg = self.loadavg_path.read_text()
        except OSError as exc:
            raise BlockError(
                "load",
                "Your system does not support reading the load average from /proc/loadavg",
            ) from exc

        values = parse_loadavg(loadavg)
        try:
            one_minute = float(values["1m"])
        except ValueError as exc:
            raise BlockError("load", "failed to parse float percentage") from exc

        if self.logical_cores:
            used = one_minute / self.logical_cores
        else:
            used = math.inf if one_minute > 0 else math.nan

        cfg = self.config
        self.state = load_state(used, cfg.info, cfg.warning, cfg.critical)
        self.text = render_format(cfg.format, values)
        return cfg.interval
"""Memory and swap usage block."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, fields
from pathlib import Path

from .common import BlockError, State, render_format

__all__ = [
    "Memtype",
    "MemState",
    "MemoryConfig",
    "Memory",
    "parse_meminfo",
    "percent",
    "format_values",
    "usage_state",
]


class Memtype(enum.Enum):
    """Which view the block shows."""

    SWAP = "swap"
    MEMORY = "memory"


@dataclass(frozen=True)
class MemState:
    """Memory figures from /proc/meminfo, in KiB."""

    mem_total: int = 0
    mem_free: int = 0
    buffers: int = 0
    cached: int = 0
    s_reclaimable: int = 0
    shmem: int = 0
    swap_total: int = 0
    swap_free: int = 0


_MEMINFO_KEYS = {
    "MemTotal:": "mem_total",
    "MemFree:": "mem_free",
    "Buffers:": "buffers",
    "Cached:": "cached",
    "SReclaimable:": "s_reclaimable",
    "Shmem:": "shmem",
    "SwapTotal:": "swap_total",
    "SwapFree:": "swap_free",
}
_ALL_FIELDS = frozenset(f.name for f in fields(MemState))


def parse_meminfo(lines: Iterable[str]) -> MemState:
    """Read the fields of a MemState from /proc/meminfo lines.

    Reading stops as soon as every field has been seen.
    """
    found: dict[str, int] = {}
    for line in lines:
        if found.keys() >= _ALL_FIELDS:
            break
        parts = line.split()
        if not parts or parts[0] not in _MEMINFO_KEYS:
            continue
        name = _MEMINFO_KEYS[parts[0]]
        raw = parts[1] if len(parts) > 1 else ""
        if not (raw.isascii() and raw.isdigit()):
            raise BlockError("memory", f"failed to parse {name}")
        found[name] = int(raw)
    return MemState(**found)


def percent(value: int, reference: int) -> float:
    """Share of *value* in *reference* as a percentage; 100 if reference is empty."""
    if reference < 1:
        return 100.0
    return value / reference * 100.0


def _group(prefix: str, kib: int, reference: int) -> dict[str, str]:
    share = percent(kib, reference)
    return {
        f"{prefix}g": f"{kib / 1024 ** 2:.1f}",
        f"{prefix}m": str(kib // 1024),
        f"{prefix}p": f"{share:.2f}",
        f"{prefix}pi": f"{int(share):02}",
    }


def format_values(state: MemState) -> dict[str, str]:
    """Build the placeholder values offered to the format strings."""
    mem_total = state.mem_total
    mem_total_used = mem_total - state.mem_free
    cached = state.cached + state.s_reclaimable - state.shmem
    mem_used = mem_total_used - (state.buffers + cached)
    mem_avail = mem_total - mem_used
    swap_total = state.swap_total
    swap_used = swap_total - state.swap_free

    values = {
        "MTg": f"{mem_total / 1024 ** 2:.1f}",
        "MTm": str(mem_total // 1024),
        "STg": f"{swap_total / 1024 ** 2:.1f}",
        "STm": str(swap_total // 1024),
    }
    values.update(_group("MF", state.mem_free, mem_total))
    values.update(_group("MU", mem_total_used, mem_total))
    values.update(_group("Mu", mem_used, mem_total))
    values.update(_group("MA", mem_avail, mem_total))
    values.update(_group("SF", state.swap_free, swap_total))
    values.update(_group("SU", swap_used, swap_total))
    values.update(_group("B", state.buffers, mem_total))
    values.update(_group("C", cached, mem_total))
    return values


def usage_state(percentage: float, warning: float, critical: float) -> State:
    """Pick a state for a usage percentage; thresholds are exclusive."""
    if percentage > critical:
        return State.CRITICAL
    if percentage > warning:
        return State.WARNING
    return State.IDLE


@dataclass
class MemoryConfig:
    """Configuration of the memory block."""

    format_mem: str = "{MFm}MB/{MTm}MB({MUp}%)"
    format_swap: str = "{SFm}MB/{STm}MB({SUp}%)"
    display_type: Memtype = Memtype.MEMORY
    icons: bool = True
    clickable: bool = True
    interval: float = 5.0
    warning_mem: float = 80.0
    warning_swap: float = 80.0
    critical_mem: float = 95.0
    critical_swap: float = 95.0


class Memory:
    """Shows memory or swap usage; a left click switches between them."""

    def __init__(
        self,
        config: MemoryConfig | None = None,
        meminfo_path: str | Path = "/proc/meminfo",
    ) -> None:
        self.config = config or MemoryConfig()
        self.meminfo_path = Path(meminfo_path)
        self.memtype = self.config.display_type
        self.clickable = self.config.clickable
        self._texts = {Memtype.MEMORY: "", Memtype.SWAP: ""}
        self._states = {Memtype.MEMORY: State.IDLE, Memtype.SWAP: State.IDLE}
        if self.config.icons:
            self._icons = {Memtype.MEMORY: "memory_mem", Memtype.SWAP: "memory_swap"}
        else:
            self._icons = {Memtype.MEMORY: None, Memtype.SWAP: None}

    @property
    def text(self) -> str:
        """Text of the view currently shown."""
        return self._texts[self.memtype]

    @property
    def state(self) -> State:
        """State of the view currently shown."""
        return self._states[self.memtype]

    @property
    def icon(self) -> str | None:
        """Icon name of the view currently shown, if icons are enabled."""
        return self._icons[self.memtype]

    def switch(self) -> None:
        """Toggle between the memory and the swap view."""
        self.memtype = Memtype.SWAP if self.memtype is Memtype.MEMORY else Memtype.MEMORY

    def update(self) -> float:
        """Refresh the current view; return seconds until the next update."""
        try:
            with self.meminfo_path.open() as handle:
                mem_state = parse_meminfo(handle)
        except OSError as exc:
            raise BlockError("memory", "/proc/meminfo does not exist") from exc

        cfg = self.config
        values = format_values(mem_state)
        if self.memtype is Memtype.MEMORY:
            cached = mem_state.cached + mem_state.s_reclaimable - mem_state.shmem
            used = mem_state.mem_total - mem_state.mem_free - (mem_state.buffers + cached)
            share = percent(used, mem_state.mem_total)
            state = usage_state(share, cfg.warning_mem, cfg.critical_mem)
            template = cfg.format_mem
        else:
            used = mem_state.swap_total - mem_state.swap_free
            share = percent(used, mem_state.swap_total)
            state = usage_state(share, cfg.warning_swap, cfg.critical_swap)
            template = cfg.format_swap

        self._states[self.memtype] = state
        self._texts[self.memtype] = render_format(template, values)
        return cfg.interval

    def click(self, button: str) -> bool:
        """Handle a mouse click; a left click switches views when clickable.

        Returns True when the click switched the view.
        """
        if button == "left" and self.clickable:
            self.switch()
            self.update()
            return True
        return False
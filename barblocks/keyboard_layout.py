"""Keyboard layout block and the layout sources it can read from."""

from __future__ import annotations

import enum
import re
import subprocess
import threading
from dataclasses import dataclass, field

from .common import BlockError, render_format

__all__ = [
    "KeyboardLayoutDriver",
    "SetXkbMap",
    "KbddLayout",
    "SwayLayout",
    "KeyboardLayoutConfig",
    "KeyboardLayout",
    "parse_setxkbmap_layout",
    "select_layout",
    "split_sway_layout",
]

_NOT_AVAILABLE = "N/A"


class KeyboardLayoutDriver(enum.Enum):
    """Where the layout is read from."""

    SETXKBMAP = "setxkbmap"
    LOCALEBUS = "localebus"
    KBDDBUS = "kbddbus"
    SWAY = "sway"


def parse_setxkbmap_layout(output: str) -> str:
    """Return the value of the ``layout`` entry of ``setxkbmap -query`` output."""
    for line in output.split("\n"):
        if line.startswith("layout"):
            return re.split(r"\s", line)[-1]
    raise BlockError("keyboard_layout", "Could not find the layout entry from setxkbmap.")


def _setxkbmap_layouts() -> str:
    try:
        result = subprocess.run(["setxkbmap", "-query"], capture_output=True, check=False)
    except OSError as exc:
        raise BlockError("keyboard_layout", "Failed to execute setxkbmap.") from exc
    try:
        output = result.stdout.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise BlockError("keyboard_layout", "Non-UTF8 input.") from exc
    return parse_setxkbmap_layout(output)


def select_layout(layouts: str, index: int) -> str:
    """Pick the layout at *index* from a comma separated list.

    A variant attached as ``layout:variant`` is dropped. When the index is out
    of range the whole list is returned.
    """
    parts = layouts.split(",")
    if 0 <= index < len(parts):
        return parts[index].split(":")[0]
    return layouts


def split_sway_layout(name: str) -> tuple[str, str]:
    """Split a sway layout name ``layout (variant)`` into layout and variant."""
    pos = name.find("(")
    if pos < 0:
        return name, _NOT_AVAILABLE
    head, tail = name[:pos], name[pos:]
    words = head.split()
    layout = words[0] if words else head
    return layout, tail[1:-1]


class SetXkbMap:
    """Reads the layout by polling ``setxkbmap -query``."""

    def keyboard_layout(self) -> str:
        return _setxkbmap_layouts()

    def keyboard_variant(self) -> str:
        return _NOT_AVAILABLE

    def must_poll(self) -> bool:
        return True


class KbddLayout:
    """Layout selected by the kbdd daemon as an index into setxkbmap's layouts."""

    def __init__(self, layout_id: int = 0) -> None:
        self._lock = threading.Lock()
        self._layout_id = layout_id

    def set_layout_id(self, layout_id: int) -> None:
        """Record a layout index reported by the daemon."""
        with self._lock:
            self._layout_id = layout_id

    def keyboard_layout(self) -> str:
        layouts = _setxkbmap_layouts()
        with self._lock:
            index = self._layout_id
        return select_layout(layouts, index)

    def keyboard_variant(self) -> str:
        return _NOT_AVAILABLE

    def must_poll(self) -> bool:
        return False


class SwayLayout:
    """Layout name as reported by sway's input events."""

    def __init__(self, name: str) -> None:
        self._lock = threading.Lock()
        self._name = name

    def set_name(self, name: str) -> None:
        """Record a new active layout name."""
        with self._lock:
            self._name = name

    def _split(self) -> tuple[str, str]:
        with self._lock:
            return split_sway_layout(self._name)

    def keyboard_layout(self) -> str:
        return self._split()[0]

    def keyboard_variant(self) -> str:
        return self._split()[1]

    def must_poll(self) -> bool:
        return False


@dataclass
class KeyboardLayoutConfig:
    """Configuration of the keyboard layout block."""

    format: str = "{layout}"
    driver: KeyboardLayoutDriver = KeyboardLayoutDriver.SETXKBMAP
    interval: float = 60.0
    sway_kb_identifier: str = ""
    mappings: dict[str, str] = field(default_factory=dict)


class KeyboardLayout:
    """Shows the current keyboard layout, optionally renamed via mappings."""

    def __init__(self, config: KeyboardLayoutConfig | None = None, monitor=None) -> None:
        self.config = config or KeyboardLayoutConfig()
        if monitor is None:
            if self.config.driver is not KeyboardLayoutDriver.SETXKBMAP:
                raise BlockError(
                    "keyboard_layout",
                    f"driver '{self.config.driver.value}' needs a layout source",
                )
            monitor = SetXkbMap()
        self.monitor = monitor
        self.update_interval = self.config.interval if monitor.must_poll() else None
        self.text = ""

    def update(self) -> float | None:
        """Refresh the text; return seconds until the next poll, or None."""
        layout = self.monitor.keyboard_layout()
        variant = self.monitor.keyboard_variant()
        mapped = self.config.mappings.get(f"{layout} ({variant})")
        if mapped is not None:
            layout = mapped
        self.text = render_format(self.config.format, {"layout": layout, "variant": variant})
        return self.update_interval
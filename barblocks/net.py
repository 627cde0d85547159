"""Network throughput and connection details block."""

from __future__ import annotations

import enum
import math
import time
from dataclasses import dataclass
from html import escape

from .common import BlockError, render_format
from .net_device import NetworkDevice

__all__ = ["SpeedUnit", "NetConfig", "Net", "format_speed"]

_HISTORY = 10
_BAR_GRAPH_CHARS = "▁▂▃▄▅▆▇█"
_PERCENT_BAR_PARTIALS = " ▏▎▍▌▋▊▉"


class SpeedUnit(enum.Enum):
    """Smallest unit used when showing throughput."""

    B = "B"
    K = "K"
    M = "M"
    G = "G"
    T = "T"

    @property
    def level(self) -> int:
        """Power of 1000 this unit stands for."""
        return list(SpeedUnit).index(self)

    @property
    def prefix(self) -> str:
        """Prefix written before the base unit; bytes have none."""
        return "" if self is SpeedUnit.B else self.value


def format_speed(value: float, digits: int, min_unit: SpeedUnit | str, suffix: str) -> str:
    """Format *value* with a decimal prefix no smaller than *min_unit*.

    *digits* is the number of significant digits shown.
    """
    unit = min_unit if isinstance(min_unit, SpeedUnit) else SpeedUnit(min_unit)
    units = list(SpeedUnit)
    if value > 0:
        level = math.floor(math.log10(value) / 3)
    else:
        level = unit.level
    level = max(unit.level, min(level, len(units) - 1))
    scaled = value / 1000 ** level
    if scaled >= 100:
        decimals = digits - 3
    elif scaled >= 10:
        decimals = digits - 2
    else:
        decimals = digits - 1
    decimals = max(decimals, 0)
    return f"{scaled:.{decimals}f}{units[level].prefix}{suffix}"


def _bar_graph(values: list[float]) -> str:
    low, high = min(values), max(values)
    if high == low:
        return _BAR_GRAPH_CHARS[0] * len(values)
    top = len(_BAR_GRAPH_CHARS) - 1
    return "".join(
        _BAR_GRAPH_CHARS[min(top, int((v - low) / (high - low) * top))] for v in values
    )


def _percent_bar(percentage: float) -> str:
    cells = 10
    eighths = round(max(0.0, min(100.0, percentage)) / 100 * cells * 8)
    full, rest = divmod(eighths, 8)
    bar = "█" * full
    if full < cells:
        bar += _PERCENT_BAR_PARTIALS[rest]
    return bar.ljust(cells)


@dataclass
class NetConfig:
    """Configuration of the network block."""

    interval: float = 1.0
    format: str = "{speed_up} {speed_down}"
    format_alt: str | None = None
    device: str | None = None
    max_ssid_width: int = 21
    hide_inactive: bool = False
    hide_missing: bool = False
    use_bits: bool = False
    speed_digits: int = 3
    speed_min_unit: SpeedUnit = SpeedUnit.K


def _auto_device_name() -> str:
    name = NetworkDevice.default_device()
    return name if name else "lo"


class Net:
    """Shows throughput and details of one network device."""

    def __init__(self, config: NetConfig | None = None, device: NetworkDevice | None = None) -> None:
        self.config = config or NetConfig()
        cfg = self.config
        self.auto_device = cfg.device is None and device is None
        if device is None:
            device = NetworkDevice(cfg.device if cfg.device is not None else _auto_device_name())
        self.device = device
        self.icon = device.icon()
        self.icons: dict[str, str] = {}

        self.format = cfg.format
        self.format_alt = cfg.format_alt

        wireless = device.is_wireless()
        self.ssid: str | None = None
        self.signal_strength = "0" if wireless and "{signal_strength}" in cfg.format else None
        self.signal_strength_bar = (
            "" if wireless and "{signal_strength_bar}" in cfg.format else None
        )
        self.bitrate = "" if "{bitrate}" in cfg.format else None
        self.ip_addr = "" if "{ip}" in cfg.format else None
        self.ipv6_addr = "" if "{ipv6}" in cfg.format else None

        self.output_tx = ""
        self.output_rx = ""
        self.graph_tx = ""
        self.graph_rx = ""
        self.tx_buff = [0.0] * _HISTORY
        self.rx_buff = [0.0] * _HISTORY
        self.tx_bytes = self._initial(device.tx_bytes)
        self.rx_bytes = self._initial(device.rx_bytes)

        self.active = True
        self.exists = True
        self.text = ""
        self.last_update = time.monotonic() - 30

    @staticmethod
    def _initial(read) -> int:
        try:
            return read()
        except BlockError:
            return 0

    def _update_device(self) -> None:
        if not self.auto_device:
            return
        name = _auto_device_name()
        if self.device.device != name:
            self.device = NetworkDevice(name)
            self.icon = self.device.icon()

    def _update_bitrate(self) -> None:
        if self.bitrate is not None:
            rate = self.device.bitrate()
            if rate is not None:
                self.bitrate = rate

    def _update_ssid(self) -> None:
        found = self.device.ssid()
        if found is None:
            self.ssid = None
        else:
            self.ssid = escape(found[: self.config.max_ssid_width])

    def _update_signal_strength(self) -> None:
        if self.signal_strength is None and self.signal_strength_bar is None:
            return
        value = self.device.signal_strength()
        if value is None:
            return
        if self.signal_strength is not None:
            self.signal_strength = f"{value}%"
        if self.signal_strength_bar is not None:
            self.signal_strength_bar = _percent_bar(value)

    def _update_ip_addr(self) -> None:
        if self.ip_addr is not None:
            address = self.device.ip_addr()
            if address is not None:
                self.ip_addr = address
        if self.ipv6_addr is not None:
            address = self.device.ipv6_addr()
            if address is not None:
                self.ipv6_addr = address

    def _rate(self, current: int, previous: int) -> int:
        return int(max(current - previous, 0) / self.config.interval)

    def _format_rate(self, rate: int) -> str:
        cfg = self.config
        if cfg.use_bits:
            return format_speed(rate * 8, cfg.speed_digits, cfg.speed_min_unit, "b")
        return format_speed(rate, cfg.speed_digits, cfg.speed_min_unit, "B")

    def _update_tx_rx(self) -> None:
        current_tx = self.device.tx_bytes()
        tx_rate = self._rate(current_tx, self.tx_bytes)
        self.tx_bytes = current_tx
        self.output_tx = self._format_rate(tx_rate)
        self.tx_buff = self.tx_buff[1:] + [float(tx_rate)]
        self.graph_tx = _bar_graph(self.tx_buff)

        current_rx = self.device.rx_bytes()
        rx_rate = self._rate(current_rx, self.rx_bytes)
        self.rx_bytes = current_rx
        self.output_rx = self._format_rate(rx_rate)
        self.rx_buff = self.rx_buff[1:] + [float(rx_rate)]
        self.graph_rx = _bar_graph(self.rx_buff)

    def update(self) -> float:
        """Refresh the text; return seconds until the next update."""
        self._update_device()

        self.exists = self.device.exists()
        self.active = self.exists and self.device.is_up()
        if not self.active:
            self.text = "×"
            return self.config.interval

        now = time.monotonic()
        elapsed = int(now - self.last_update)
        if elapsed % 10 == 0:
            self._update_bitrate()

        if elapsed > 30 or self.ip_addr == "" or self.ipv6_addr == "":
            self._update_ssid()
            self._update_signal_strength()
            self._update_ip_addr()
            self.last_update = now

        self._update_tx_rx()

        values = {
            "ssid": self.ssid if self.ssid is not None else "N/A",
            "signal_strength": self.signal_strength if self.signal_strength is not None else "N/A",
            "signal_strength_bar": self.signal_strength_bar or "",
            "bitrate": self.bitrate or "",
            "ip": self.ip_addr or "",
            "ipv6": self.ipv6_addr or "",
            "speed_up": self.icons.get("net_up", "") + self.output_tx,
            "speed_down": self.icons.get("net_down", "") + self.output_rx,
            "graph_up": self.graph_tx,
            "graph_down": self.graph_rx,
        }
        self.text = render_format(self.format, values)
        return self.config.interval

    def click(self, button: str) -> None:
        """A left click swaps to the alternative format, if any, and refreshes."""
        if button == "left":
            if self.format_alt is not None:
                self.format, self.format_alt = self.format_alt, self.format
            self.update()

    def visible(self) -> bool:
        """Whether the block is shown, given the hide options."""
        hidden = (not self.active and self.config.hide_inactive) or (
            not self.exists and self.config.hide_missing
        )
        return not hidden
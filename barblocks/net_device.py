"""Network device inspection: sysfs statistics and command-line queries."""

from __future__ import annotations

import json
import re
import subprocess
from pathlib import Path

from .common import BlockError

__all__ = [
    "NetworkDevice",
    "decode_escaped_unicode",
    "maybe_ssid_convert",
    "parse_default_device",
    "parse_ip_json",
    "parse_iw_ssid",
    "parse_wpa_ssid",
    "parse_nmcli_ssid",
    "parse_iwctl_ssid",
    "parse_iw_bitrate",
    "parse_ethtool_speed",
    "parse_iw_signal",
    "relative_signal_strength",
]

_DEFAULT_DEV_REGEX = re.compile(rb"default.*dev (\w*).*")
_ETHTOOL_SPEED_REGEX = re.compile(rb"Speed: (\d+\w\w/s)")
_IW_SSID_REGEX = re.compile(rb"SSID: (.*)")
_WPA_SSID_REGEX = re.compile(rb"^ssid=(.*)")
_IWCTL_SSID_REGEX = re.compile(rb"Connected network\s+([A-Za-z0-9]+)")
_IW_BITRATE_REGEX = re.compile(rb"tx bitrate: (\d+(?:\.?\d+) [A-Za-z]+/s)")
_IW_SIGNAL_REGEX = re.compile(rb"signal: (-?\d+) dBm")

_NOISE_FLOOR_DBM = -90.0
_SIGNAL_MAX_DBM = -20.0


def decode_escaped_unicode(raw: bytes) -> bytes:
    """Turn ``\\xNN`` escapes into the bytes they stand for."""
    result = bytearray()
    idx = 0
    while idx < len(raw):
        if raw[idx] == ord("\\"):
            idx += 2  # skip "\x"
            hex_digits = raw[idx:idx + 2]
            try:
                result.append(int(hex_digits.decode("ascii"), 16))
            except (UnicodeDecodeError, ValueError) as exc:
                raise BlockError("net", "Malformed escape in SSID") from exc
            idx += 2
        else:
            result.append(raw[idx])
            idx += 1
    return bytes(result)


def maybe_ssid_convert(raw: bytes | None) -> str | None:
    """Decode an escaped raw SSID into text; None stays None."""
    if raw is None:
        return None
    try:
        return decode_escaped_unicode(raw).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise BlockError("net", "Non-UTF8 SSID") from exc


def parse_default_device(output: bytes) -> str | None:
    """Extract the device of the default route from ``ip route show default``."""
    match = _DEFAULT_DEV_REGEX.search(output)
    if match is None:
        return None
    try:
        return match.group(1).decode("utf-8")
    except UnicodeDecodeError:
        return None


def parse_ip_json(output: str) -> str:
    """Return the first local address in ``ip -json address show`` output, or ''."""
    try:
        devices = json.loads(output)
    except ValueError as exc:
        raise BlockError("net", "Failed to parse JSON response") from exc
    if not isinstance(devices, list):
        raise BlockError("net", "Failed to parse JSON response")
    for dev in devices:
        for addr in dev.get("addr_info") or []:
            local = addr.get("local")
            if local is not None:
                return local
    return ""


def _first_line_match(output: bytes, pattern: re.Pattern[bytes]) -> bytes | None:
    for line in output.split(b"\n"):
        match = pattern.search(line)
        if match is not None:
            return match.group(1)
    return None


def parse_iw_ssid(output: bytes) -> str | None:
    """SSID from ``iw dev DEV link`` output."""
    return maybe_ssid_convert(_first_line_match(output, _IW_SSID_REGEX))


def parse_wpa_ssid(output: bytes) -> str | None:
    """SSID from ``wpa_cli status`` output."""
    return maybe_ssid_convert(_first_line_match(output, _WPA_SSID_REGEX))


def parse_nmcli_ssid(output: bytes) -> str | None:
    """SSID from ``nmcli -g general.connection device show`` output: its first line."""
    return maybe_ssid_convert(output.split(b"\n")[0])


def parse_iwctl_ssid(output: bytes) -> str | None:
    """SSID from ``iwctl station DEV show`` output."""
    return maybe_ssid_convert(_first_line_match(output, _IWCTL_SSID_REGEX))


def _decode_capture(match: re.Match[bytes] | None, what: str) -> str | None:
    if match is None:
        return None
    try:
        return match.group(1).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise BlockError("net", f"Non-UTF8 {what}") from exc


def parse_iw_bitrate(output: bytes) -> str | None:
    """Transmit bitrate from ``iw dev DEV link`` output."""
    return _decode_capture(_IW_BITRATE_REGEX.search(output), "bitrate")


def parse_ethtool_speed(output: bytes) -> str | None:
    """Link speed from ``ethtool DEV`` output."""
    return _decode_capture(_ETHTOOL_SPEED_REGEX.search(output), "bitrate")


def parse_iw_signal(output: bytes) -> int | None:
    """Signal level in dBm from ``iw dev DEV link`` output."""
    text = _decode_capture(_IW_SIGNAL_REGEX.search(output), "signal strength")
    if text is None:
        return None
    try:
        return int(text)
    except ValueError as exc:
        raise BlockError("net", "Non numerical signal strength.") from exc


def relative_signal_strength(dbm: float) -> int:
    """Map a dBm level onto a 30..100 quality percentage."""
    level = min(max(float(dbm), _NOISE_FLOOR_DBM), _SIGNAL_MAX_DBM)
    result = 100.0 - 70.0 * ((_SIGNAL_MAX_DBM - level) / (_SIGNAL_MAX_DBM - _NOISE_FLOOR_DBM))
    return int(result)


def _run(args: list[str], error: str) -> bytes:
    try:
        return subprocess.run(args, capture_output=True, check=False).stdout
    except OSError as exc:
        raise BlockError("net", error) from exc


def _run_ssid_query(args: list[str]) -> bytes | None:
    """Run an SSID query; a missing program gives None."""
    try:
        return subprocess.run(args, capture_output=True, check=False).stdout
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise BlockError("net", f"Failed to execute SSID query using {args[0]}") from exc


def _read_file(path: Path) -> str:
    try:
        content = path.read_text()
    except OSError as exc:
        raise BlockError("net", f"failed to read {path}") from exc
    # Drop the trailing newline.
    return content[:-1]


class NetworkDevice:
    """A network interface as seen under /sys/class/net."""

    def __init__(self, device: str, sys_root: str | Path = "/sys/class/net") -> None:
        self.device = device
        self.device_path = Path(sys_root) / device
        self.wireless = (self.device_path / "wireless").exists()
        self.tun = (
            (self.device_path / "tun_flags").exists()
            or device.startswith("tun")
            or device.startswith("tap")
        )
        try:
            uevent = (self.device_path / "uevent").read_text()
        except (OSError, UnicodeDecodeError):
            uevent = None
        self.wg = uevent is not None and "wireguard" in uevent
        self.ppp = uevent is not None and "ppp" in uevent

    @staticmethod
    def default_device() -> str | None:
        """Name of the device carrying the default route, if any."""
        try:
            result = subprocess.run(
                ["ip", "route", "show", "default"], capture_output=True, check=False
            )
        except OSError:
            return None
        return parse_default_device(result.stdout)

    def exists(self) -> bool:
        """Whether the device directory exists."""
        return self.device_path.exists()

    def is_up(self) -> bool:
        """Whether the device is up; a device that is not up need not be down."""
        operstate_file = self.device_path / "operstate"
        if not operstate_file.exists():
            return False
        if self.is_vpn():
            return True
        operstate = _read_file(operstate_file)
        carrier_file = self.device_path / "carrier"
        if not carrier_file.exists():
            return operstate == "up"
        if operstate == "up":
            return True
        try:
            return _read_file(carrier_file) == "1"
        except BlockError:
            return operstate == "up"

    def _statistic(self, name: str) -> int:
        raw = _read_file(self.device_path / "statistics" / name)
        try:
            value = int(raw)
        except ValueError as exc:
            raise BlockError("net", f"Failed to parse {name}") from exc
        if value < 0 or not raw.isdigit():
            raise BlockError("net", f"Failed to parse {name}")
        return value

    def tx_bytes(self) -> int:
        """Bytes transmitted so far."""
        return self._statistic("tx_bytes")

    def rx_bytes(self) -> int:
        """Bytes received so far."""
        return self._statistic("rx_bytes")

    def is_wireless(self) -> bool:
        return self.wireless

    def is_vpn(self) -> bool:
        return self.tun or self.wg or self.ppp

    def ssid(self) -> str | None:
        """SSID of the wireless network the device is connected to, if any."""
        if not (self.is_up() and self.wireless):
            return None
        queries = (
            (["iw", "dev", self.device, "link"], parse_iw_ssid),
            (["wpa_cli", "status", "-i", self.device], parse_wpa_ssid),
            (["nmcli", "-g", "general.connection", "device", "show", self.device],
             parse_nmcli_ssid),
            (["iwctl", "station", self.device, "show"], parse_iwctl_ssid),
        )
        for args, parse in queries:
            output = _run_ssid_query(args)
            if output is None:
                continue
            found = parse(output)
            if found is not None:
                return found
        return None

    def signal_strength(self) -> int | None:
        """Relative wireless signal strength in percent, if available."""
        if not self.is_up() or not self.wireless:
            return None
        output = _run(
            ["iw", "dev", self.device, "link"], "Failed to execute signal strength query."
        )
        dbm = parse_iw_signal(output)
        return None if dbm is None else relative_signal_strength(dbm)

    def _address(self, family: str) -> str | None:
        if not self.is_up():
            return None
        output = _run(
            ["ip", "-json", "-family", family, "address", "show", self.device],
            "Failed to execute IP address query.",
        )
        try:
            text = output.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BlockError("net", "Response contained non-UTF8 characters.") from exc
        return parse_ip_json(text)

    def ip_addr(self) -> str | None:
        """IPv4 address of the device; None when it is not up."""
        return self._address("inet")

    def ipv6_addr(self) -> str | None:
        """IPv6 address of the device; None when it is not up."""
        return self._address("inet6")

    def bitrate(self) -> str | None:
        """Link bitrate as reported by iw or ethtool, if available."""
        if not self.is_up():
            return None
        if self.wireless:
            output = _run(
                ["iw", "dev", self.device, "link"],
                "Failed to execute bitrate query with iw.",
            )
            return parse_iw_bitrate(output)
        output = _run(
            ["ethtool", self.device], "Failed to execute bitrate query with ethtool"
        )
        return parse_ethtool_speed(output)

    def icon(self) -> str:
        """Icon name matching the kind of device."""
        if self.is_wireless():
            return "net_wireless"
        if self.is_vpn():
            return "net_vpn"
        if self.device == "lo":
            return "net_loopback"
        return "net_wired"
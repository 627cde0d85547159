# barblocks

Building blocks for a desktop status bar on Linux. Each block reads system
state and keeps a short `text` and, where it has one, a `state`
(`barblocks.common.State`: idle, info, good, warning, critical) that a bar
can colour. Calling a block's `update()` refreshes it and returns the number
of seconds until the next refresh is due (or `None` when no polling is
needed).

## Blocks

- `barblocks.load.Load` – load average from `/proc/loadavg`, with the state
  chosen from the one-minute load divided by the number of logical cores in
  `/proc/cpuinfo`. Placeholders: `{1m}`, `{5m}`, `{15m}`. Configured with
  `LoadConfig` (`format`, `interval`, `info`, `warning`, `critical`).
- `barblocks.memory.Memory` – memory or swap usage from `/proc/meminfo`.
  Placeholders such as `{MTm}`, `{MFm}`, `{MUp}`, `{Mupi}`, `{MAg}`,
  `{SFm}`, `{SUp}`, `{Bm}`, `{Cp}` are built by `format_values`.
  `Memory.click("left")` switches between the memory and swap views when the
  block is clickable. Configured with `MemoryConfig`.
- `barblocks.maildir.Maildir` – counts new, current or all messages
  (`MailType`) across the maildirs listed in `MaildirConfig.inboxes`.
- `barblocks.keyboard_layout.KeyboardLayout` – current keyboard layout, with
  `mappings` to rename a `"layout (variant)"` pair. Placeholders:
  `{layout}`, `{variant}`. Layout sources:
  - `SetXkbMap` polls `setxkbmap -query` (the default).
  - `KbddLayout` picks an entry from setxkbmap's layout list by an index
    you record with `set_layout_id`.
  - `SwayLayout` splits a sway layout name set with `set_name`.
- `barblocks.net.Net` – throughput, bar graphs, SSID, signal strength,
  bitrate and IPv4/IPv6 addresses of one device. Placeholders:
  `{speed_up}`, `{speed_down}`, `{graph_up}`, `{graph_down}`, `{ssid}`,
  `{signal_strength}`, `{signal_strength_bar}`, `{bitrate}`, `{ip}`,
  `{ipv6}`. A left click swaps in `format_alt`; `visible()` honours
  `hide_inactive` and `hide_missing`. Throughput is written by
  `format_speed`.
- `barblocks.net_device.NetworkDevice` – reads `/sys/class/net/<device>` and
  queries `ip`, `iw`, `wpa_cli`, `nmcli`, `iwctl` and `ethtool`. The output
  parsers (`parse_iw_ssid`, `parse_ip_json`, `maybe_ssid_convert`, …) can be
  used on their own.

## Usage

```python
from barblocks.load import Load, LoadConfig

block = Load(LoadConfig(format="{1m} {5m} {15m}"))
block.update()
print(block.text, block.state)
```

```python
from barblocks.keyboard_layout import KeyboardLayout, KeyboardLayoutConfig, SwayLayout

source = SwayLayout("English (US) (intl)")
block = KeyboardLayout(KeyboardLayoutConfig(format="{layout}/{variant}"), source)
block.update()
```

Format strings use `{name}` placeholders; `barblocks.common.render_format`
fills them from a dictionary and raises `BlockError` for an unknown name.
Errors while reading system state are raised as
`barblocks.common.BlockError`.

## What is not included

- There is no bar program: nothing here runs blocks on a schedule, reads
  click events or writes i3bar output.
- There is no music player block.
- Nothing listens to D-Bus or sway events. `KbddLayout` and `SwayLayout`
  only hold the value you give them, and the `localebus` driver has no layout
  source in this package, so `KeyboardLayout` needs one passed in for any
  driver other than `setxkbmap`.

## Tests

```
pip install .[test]
pytest
```
import re

import pytest

from barblocks.common import BlockError, State
from barblocks.memory import (
    MemState,
    Memory,
    MemoryConfig,
    Memtype,
    format_values,
    parse_meminfo,
    percent,
    usage_state,
)

MEMINFO = """MemTotal:        2097152 kB
MemFree:          524288 kB
MemAvailable:    1048576 kB
Buffers:          102400 kB
Cached:           409600 kB
SwapCached:            0 kB
Shmem:             20480 kB
SReclaimable:      51200 kB
SwapTotal:       1048576 kB
SwapFree:         786432 kB
"""


def _meminfo(tmp_path, text=MEMINFO):
    path = tmp_path / "meminfo"
    path.write_text(text)
    return path


def test_parse_meminfo_reads_all_fields():
    state = parse_meminfo(MEMINFO.splitlines())
    assert state == MemState(
        mem_total=2097152,
        mem_free=524288,
        buffers=102400,
        cached=409600,
        s_reclaimable=51200,
        shmem=20480,
        swap_total=1048576,
        swap_free=786432,
    )


def test_parse_meminfo_missing_fields_default_to_zero():
    state = parse_meminfo(["MemTotal: 1000 kB"])
    assert state.mem_total == 1000
    assert state.swap_total == 0


def test_parse_meminfo_stops_once_complete():
    lines = MEMINFO.splitlines() + ["MemTotal: garbage kB"]
    assert parse_meminfo(lines).mem_total == 2097152


def test_parse_meminfo_bad_number_raises():
    with pytest.raises(BlockError) as info:
        parse_meminfo(["MemFree: nope kB"])
    assert "mem_free" in info.value.message


def test_parse_meminfo_missing_value_raises():
    with pytest.raises(BlockError):
        parse_meminfo(["MemTotal:"])


def test_percent_with_empty_reference():
    assert percent(5, 0) == 100.0
    assert percent(0, 0) == 100.0


def test_percent_of_whole_is_hundred():
    assert percent(777, 777) == 100.0
    assert percent(0, 777) == 0.0


@pytest.mark.parametrize(
    "value, expected",
    [(96.0, State.CRITICAL), (95.0, State.WARNING), (81.0, State.WARNING), (80.0, State.IDLE)],
)
def test_usage_state(value, expected):
    assert usage_state(value, 80.0, 95.0) is expected


def test_format_values_invariants():
    values = format_values(parse_meminfo(MEMINFO.splitlines()))
    assert values["MTg"] == "2.0"
    assert values["STm"] == "1024"
    assert int(values["MUm"]) <= int(values["MTm"])
    assert float(values["MFp"]) + float(values["MUp"]) == pytest.approx(100.0, abs=0.02)
    assert float(values["SFp"]) + float(values["SUp"]) == pytest.approx(100.0, abs=0.02)
    assert re.fullmatch(r"\d\d", values["Mupi"])


def test_format_values_without_swap():
    values = format_values(MemState(mem_total=1024))
    assert values["SFp"] == f"{100.0:.2f}"
    assert values["STm"] == "0"


def test_update_memory_view(tmp_path):
    block = Memory(meminfo_path=_meminfo(tmp_path))
    assert block.update() == 5.0
    assert re.fullmatch(r"\d+MB/\d+MB\(\d+\.\d\d%\)", block.text)
    assert block.state is State.IDLE
    assert block.icon == "memory_mem"


def test_update_swap_view(tmp_path):
    config = MemoryConfig(display_type=Memtype.SWAP, format_swap="{SFm}/{STm}")
    block = Memory(config, _meminfo(tmp_path))
    block.update()
    values = format_values(parse_meminfo(MEMINFO.splitlines()))
    assert block.text == f"{values['SFm']}/{values['STm']}"
    assert block.icon == "memory_swap"


def test_critical_memory_state(tmp_path):
    config = MemoryConfig(warning_mem=1.0, critical_mem=2.0)
    block = Memory(config, _meminfo(tmp_path))
    block.update()
    assert block.state is State.CRITICAL


def test_switch_toggles_back_and_forth(tmp_path):
    block = Memory(meminfo_path=_meminfo(tmp_path))
    block.switch()
    assert block.memtype is Memtype.SWAP
    block.switch()
    assert block.memtype is Memtype.MEMORY


def test_left_click_switches_and_updates(tmp_path):
    block = Memory(meminfo_path=_meminfo(tmp_path))
    assert block.click("left") is True
    assert block.memtype is Memtype.SWAP
    assert re.fullmatch(r"\d+MB/\d+MB\(\d+\.\d\d%\)", block.text)


def test_other_clicks_do_nothing(tmp_path):
    block = Memory(meminfo_path=_meminfo(tmp_path))
    assert block.click("right") is False
    assert block.memtype is Memtype.MEMORY


def test_not_clickable(tmp_path):
    block = Memory(MemoryConfig(clickable=False), _meminfo(tmp_path))
    assert block.click("left") is False
    assert block.memtype is Memtype.MEMORY


def test_no_icons(tmp_path):
    block = Memory(MemoryConfig(icons=False), _meminfo(tmp_path))
    assert block.icon is None


def test_missing_meminfo_raises(tmp_path):
    block = Memory(meminfo_path=tmp_path / "absent")
    with pytest.raises(BlockError):
        block.update()
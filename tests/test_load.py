import pytest

from barblocks.common import BlockError, State
from barblocks.load import Load, LoadConfig, count_logical_cores, load_state, parse_loadavg

CPUINFO = """processor\t: 0
model name\t: Test CPU
processor\t: 1
model name\t: Test CPU
"""


def _files(tmp_path, loadavg, cpuinfo=CPUINFO):
    cpu = tmp_path / "cpuinfo"
    cpu.write_text(cpuinfo)
    avg = tmp_path / "loadavg"
    avg.write_text(loadavg)
    return cpu, avg


def test_count_logical_cores():
    text = "\n".join(["processor : %d" % i for i in range(4)] + ["flags : x"])
    assert count_logical_cores(text) == 4


def test_count_logical_cores_empty():
    assert count_logical_cores("") == 0


def test_parse_loadavg():
    assert parse_loadavg("0.50 0.40 0.30 1/100 123\n") == {
        "1m": "0.50",
        "5m": "0.40",
        "15m": "0.30",
    }


def test_parse_loadavg_too_short():
    with pytest.raises(BlockError):
        parse_loadavg("0.50")


@pytest.mark.parametrize(
    "used, expected",
    [
        (0.95, State.CRITICAL),
        (0.9, State.WARNING),
        (0.7, State.WARNING),
        (0.6, State.INFO),
        (0.31, State.INFO),
        (0.3, State.IDLE),
        (0.0, State.IDLE),
    ],
)
def test_load_state_thresholds(used, expected):
    assert load_state(used, 0.3, 0.6, 0.9) is expected


def test_initial_state_is_info(tmp_path):
    cpu, avg = _files(tmp_path, "0.10 0.20 0.30 1/1 1\n")
    block = Load(cpuinfo_path=cpu, loadavg_path=avg)
    assert block.state is State.INFO
    assert block.logical_cores == 2


def test_update_default_format(tmp_path):
    cpu, avg = _files(tmp_path, "1.90 0.20 0.30 1/1 1\n")
    block = Load(cpuinfo_path=cpu, loadavg_path=avg)
    assert block.update() == 5.0
    assert block.text == "1.90"
    assert block.state is State.CRITICAL


def test_update_low_load_is_idle(tmp_path):
    cpu, avg = _files(tmp_path, "0.10 0.20 0.30 1/1 1\n")
    block = Load(cpuinfo_path=cpu, loadavg_path=avg)
    block.update()
    assert block.state is State.IDLE


def test_update_custom_format_and_interval(tmp_path):
    cpu, avg = _files(tmp_path, "0.10 0.20 0.30 1/1 1\n")
    config = LoadConfig(format="{1m}|{5m}|{15m}", interval=2.5)
    block = Load(config, cpu, avg)
    assert block.update() == 2.5
    assert block.text == "0.10|0.20|0.30"


def test_missing_cpuinfo_raises(tmp_path):
    with pytest.raises(BlockError):
        Load(cpuinfo_path=tmp_path / "nope", loadavg_path=tmp_path / "nope2")


def test_missing_loadavg_raises(tmp_path):
    cpu, _ = _files(tmp_path, "")
    block = Load(cpuinfo_path=cpu, loadavg_path=tmp_path / "nope")
    with pytest.raises(BlockError):
        block.update()


def test_unparsable_load_raises(tmp_path):
    cpu, avg = _files(tmp_path, "abc 0.20 0.30 1/1 1\n")
    block = Load(cpuinfo_path=cpu, loadavg_path=avg)
    with pytest.raises(BlockError):
        block.update()
from pathlib import Path

import pytest

from barblocks.common import State
from barblocks.maildir import (
    MailType,
    Maildir,
    MaildirConfig,
    count_mail,
    mail_state,
)


def make_maildir(root: Path, new: int, cur: int) -> Path:
    for sub in ("new", "cur", "tmp"):
        (root / sub).mkdir(parents=True)
    for i in range(new):
        (root / "new" / f"msg{i}").write_text("x")
    for i in range(cur):
        (root / "cur" / f"msg{i}:2,S").write_text("x")
    return root


def test_count_by_type(tmp_path):
    box = make_maildir(tmp_path / "box", new=2, cur=5)
    assert count_mail(box, MailType.NEW) == 2
    assert count_mail(box, MailType.CUR) == 5
    assert count_mail(box, MailType.ALL) == 2 + 5


def test_hidden_files_ignored(tmp_path):
    box = make_maildir(tmp_path / "box", new=1, cur=0)
    (box / "new" / ".hidden").write_text("x")
    assert count_mail(box) == 1


def test_missing_maildir_counts_zero(tmp_path):
    assert count_mail(tmp_path / "absent", MailType.ALL) == 0


@pytest.mark.parametrize(
    "count, expected",
    [(0, State.IDLE), (1, State.WARNING), (9, State.WARNING), (10, State.CRITICAL)],
)
def test_mail_state(count, expected):
    assert mail_state(count, 1, 10) is expected


def test_block_update_sums_inboxes(tmp_path):
    a = make_maildir(tmp_path / "a", new=3, cur=1)
    b = make_maildir(tmp_path / "b", new=4, cur=0)
    block = Maildir(MaildirConfig(inboxes=[str(a), str(b)]))
    assert block.update() == 5.0
    assert block.text == str(3 + 4)
    assert block.state is State.WARNING
    assert block.icon == "mail"


def test_block_critical_and_no_icon(tmp_path):
    a = make_maildir(tmp_path / "a", new=0, cur=2)
    cfg = MaildirConfig(
        inboxes=[str(a)], display_type=MailType.CUR, threshold_critical=2, icon=False
    )
    block = Maildir(cfg)
    block.update()
    assert block.state is State.CRITICAL
    assert block.icon is None


def test_block_idle_when_empty(tmp_path):
    a = make_maildir(tmp_path / "a", new=0, cur=0)
    block = Maildir(MaildirConfig(inboxes=[str(a)]))
    block.update()
    assert block.text == "0"
    assert block.state is State.IDLE
"""Maildir mail counter block."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path

from .common import State

__all__ = ["MailType", "MaildirConfig", "Maildir", "count_mail", "mail_state"]


class MailType(enum.Enum):
    """Which messages of a maildir are counted."""

    NEW = "new"
    CUR = "cur"
    ALL = "all"


def _count_entries(directory: Path) -> int:
    try:
        return sum(1 for entry in directory.iterdir() if not entry.name.startswith("."))
    except OSError:
        return 0


def count_mail(path: str | Path, mail_type: MailType = MailType.NEW) -> int:
    """Count the messages of the given kind in the maildir at *path*."""
    root = Path(path)
    if mail_type is MailType.NEW:
        return _count_entries(root / "new")
    if mail_type is MailType.CUR:
        return _count_entries(root / "cur")
    return _count_entries(root / "new") + _count_entries(root / "cur")


def mail_state(count: int, threshold_warning: int, threshold_critical: int) -> State:
    """Pick a state for a mail count; thresholds are inclusive."""
    if count >= threshold_critical:
        return State.CRITICAL
    if count >= threshold_warning:
        return State.WARNING
    return State.IDLE


@dataclass
class MaildirConfig:
    """Configuration of the maildir block."""

    inboxes: list[str]
    interval: float = 5.0
    threshold_warning: int = 1
    threshold_critical: int = 10
    display_type: MailType = MailType.NEW
    icon: bool = True


class Maildir:
    """Shows the number of messages across a set of maildirs."""

    def __init__(self, config: MaildirConfig) -> None:
        self.config = config
        self.icon = "mail" if config.icon else None
        self.text = ""
        self.state = State.IDLE

    def update(self) -> float:
        """Recount the mail; return seconds until the next update."""
        cfg = self.config
        total = sum(count_mail(inbox, cfg.display_type) for inbox in cfg.inboxes)
        self.state = mail_state(total, cfg.threshold_warning, cfg.threshold_critical)
        self.text = str(total)
        return cfg.interval
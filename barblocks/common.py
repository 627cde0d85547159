"""Shared pieces for status blocks: widget states, errors and format templates."""

from __future__ import annotations

import enum
import re
from collections.abc import Mapping

__all__ = ["State", "BlockError", "render_format"]

_PLACEHOLDER = re.compile(r"\{([^{}]*)\}")


class State(enum.Enum):
    """Visual state of a block's widget."""

    IDLE = "idle"
    INFO = "info"
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


class BlockError(Exception):
    """An error raised by a block, tagged with the block's name."""

    def __init__(self, block: str, message: str) -> None:
        super().__init__(f"{block}: {message}")
        self.block = block
        self.message = message


def render_format(template: str, values: Mapping[str, object]) -> str:
    """Replace every ``{name}`` in *template* with ``values[name]``.

    Raises BlockError when the template names a placeholder that has no value.
    """

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        try:
            return str(values[name])
        except KeyError:
            raise BlockError("format", f"unknown placeholder '{name}'") from None

    return _PLACEHOLDER.sub(substitute, template)
"""Status bar blocks reporting load, memory, mail, network and keyboard layout state."""

__version__ = "0.1.0"
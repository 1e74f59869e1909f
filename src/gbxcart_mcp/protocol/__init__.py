"""Protocol layer: reader commands, bank switching, and stream decoding."""

from .commands import (
    Address,
    Command,
    Continue,
    Sleep,
    Start,
    Stop,
    UnsupportedPlatformError,
    encode,
)
from .banking import bank_switch_commands

from .mechanisms import InstantMechanism, ResumableMechanism, WorkerRelayMechanism
from .page import TerminalPageParser, parse_terminal_page
from .selector import (
    DEFAULT_PRIORITY,
    TerminalResolution,
    TerminalStrategySelector,
    select_option,
)

__all__ = [
    "DEFAULT_PRIORITY",
    "InstantMechanism",
    "ResumableMechanism",
    "TerminalPageParser",
    "TerminalResolution",
    "TerminalStrategySelector",
    "WorkerRelayMechanism",
    "parse_terminal_page",
    "select_option",
]

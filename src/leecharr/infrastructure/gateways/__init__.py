from .chain import RedirectChainResolver
from .encoded_redirect import EncodedRedirectHop, decode_target
from .hosts import SID_HOSTS, TERMINAL_HOSTS, host_matches, is_terminal
from .scrape import ScrapeHop, ScrapeRule
from .sid import SidBypass, SidSelectors

__all__ = [
    "EncodedRedirectHop",
    "RedirectChainResolver",
    "SID_HOSTS",
    "ScrapeHop",
    "ScrapeRule",
    "SidBypass",
    "SidSelectors",
    "TERMINAL_HOSTS",
    "decode_target",
    "host_matches",
    "is_terminal",
]

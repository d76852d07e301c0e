"""Host identifiers used to dispatch redirect-chain hops."""

from __future__ import annotations

from typing import Iterable
from urllib.parse import urlsplit

# Hosts running the form/token/cookie interstitial.
SID_HOSTS: tuple[str, ...] = (
    "tech.unblockedgames.world",
    "tech.creativeexpressionsblog.com",
)

# File hosts that end a redirect chain.
TERMINAL_HOSTS: tuple[str, ...] = ("driveseed.org", "driveleech.net")


def host_of(url: str) -> str:
    return (urlsplit(url).hostname or "").lower()


def origin_of(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


def host_matches(url: str, hosts: Iterable[str]) -> bool:
    """True if *url*'s host is one of *hosts* or a subdomain of one."""
    host = host_of(url)
    return any(host == h or host.endswith(f".{h}") for h in hosts)


def is_terminal(url: str) -> bool:
    return host_matches(url, TERMINAL_HOSTS)

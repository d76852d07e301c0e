"""Port for liveness checks of resolved download URLs."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class LinkValidatorPort(Protocol):
    """Confirms a candidate URL serves live content.

    Implementations never raise; every failure collapses to ``False``.
    """

    async def validate(self, url: str) -> bool:
        """Probe *url* with a minimal byte range.

        Returns:
            True for any 2xx/3xx answer, False otherwise (including
            network errors and timeouts).
        """
        ...

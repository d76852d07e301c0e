"""Port for terminal download mechanisms."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from leecharr.domain.entities import DownloadMechanism, MechanismKind, TerminalPage


@runtime_checkable
class MechanismResolverPort(Protocol):
    @property
    def kind(self) -> MechanismKind: ...

    async def resolve(
        self, mechanism: DownloadMechanism, page: TerminalPage
    ) -> str | None:
        """Turn the mechanism's locator into a final URL (unvalidated)."""
        ...

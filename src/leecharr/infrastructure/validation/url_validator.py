"""Byte-range liveness probe for resolved download URLs."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from httpx import HTTPError, TimeoutException

if TYPE_CHECKING:
    from httpx import AsyncClient

log = structlog.get_logger(__name__)


class RangeProbeValidator:
    """Validates a download URL by requesting its first two bytes.

    A HEAD request with ``Range: bytes=0-1`` is enough to tell a live file
    from an expired or broken one without pulling any payload.

    Args:
        http_client: Shared httpx.AsyncClient (injected).
        timeout_seconds: Max time per probe.
    """

    def __init__(self, http_client: AsyncClient, timeout_seconds: float = 10.0) -> None:
        self.http_client = http_client
        self.timeout = timeout_seconds

    async def validate(self, url: str) -> bool:
        """True if *url* answers with 2xx/3xx; False on anything else."""
        if not url.startswith(("http://", "https://")):
            return False
        try:
            response = await self.http_client.head(
                url,
                headers={"Range": "bytes=0-1"},
                timeout=self.timeout,
                follow_redirects=True,
            )
        except TimeoutException:
            log.info("url_validation_timeout", url=url[:100], timeout=self.timeout)
            return False
        except HTTPError as e:
            log.info("url_validation_http_error", url=url[:100], error=str(e))
            return False

        is_valid = 200 <= response.status_code < 400
        log.debug(
            "url_validation_result",
            url=url[:100],
            status_code=response.status_code,
            valid=is_valid,
        )
        return is_valid

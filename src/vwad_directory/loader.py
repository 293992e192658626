"""One-shot catalog loading from a JSON file or URL.

The loader resolves exactly once. Every caller awaiting :meth:`load`
shares the same in-flight fetch and then the same outcome, whether that
is a :class:`~vwad_directory.models.Catalog` or a
:class:`~vwad_directory.exceptions.CatalogLoadError`. Transport-level
retries for URL sources happen here and nowhere else.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from vwad_directory.exceptions import CatalogLoadError, CatalogValidationError
from vwad_directory.logging import catalog_logging_context
from vwad_directory.models import Catalog

if TYPE_CHECKING:
    from vwad_directory.config import Settings

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_URL_SCHEMES = ("http://", "https://")
_PAYLOAD_KEY = "collection"


def decode_payload(raw: str | bytes, source: str = "<memory>") -> list[Any]:
    """Extract the record list from a collection document.

    Accepts a top-level JSON array, or an object holding the array under
    ``"collection"``.

    Raises:
        CatalogLoadError: If the text is not JSON or has no record array.
    """
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CatalogLoadError(source, f"invalid JSON ({exc.msg})") from exc
    except UnicodeDecodeError as exc:
        raise CatalogLoadError(source, "not valid UTF-8") from exc

    if isinstance(payload, dict):
        payload = payload.get(_PAYLOAD_KEY)
    if not isinstance(payload, list):
        raise CatalogLoadError(source, "expected an array of entry records")
    return payload


class CatalogLoader:
    """Fetches and decodes the catalog once, sharing the result.

    Attributes:
        source: Filesystem path or http(s) URL of the collection document.
    """

    def __init__(
        self,
        source: str | Path,
        *,
        timeout: float = 10.0,
        retries: int = 3,
        backoff: float = 0.5,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.source = str(source)
        self._timeout = timeout
        self._retries = retries
        self._backoff = backoff
        self._client = client
        self._task: asyncio.Task[Catalog] | None = None
        self._catalog: Catalog | None = None
        self._error: CatalogLoadError | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> CatalogLoader:
        return cls(
            settings.catalog.source,
            timeout=settings.catalog.timeout,
            retries=settings.catalog.retries,
        )

    @property
    def is_url(self) -> bool:
        return self.source.startswith(_URL_SCHEMES)

    @property
    def resolved(self) -> bool:
        """True once the single load has finished, successfully or not."""
        return self._catalog is not None or self._error is not None

    async def load(self) -> Catalog:
        """Return the shared catalog, loading it on first use.

        Raises:
            CatalogLoadError: If the one load attempt failed.
        """
        if self._catalog is not None:
            return self._catalog
        if self._error is not None:
            raise self._error
        # No await between the check and the assignment, so concurrent
        # callers always end up sharing one task.
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._load_once())
        return await asyncio.shield(self._task)

    async def _load_once(self) -> Catalog:
        try:
            with catalog_logging_context(self.source) as log:
                raw = await (self._fetch() if self.is_url else self._read_file())
                records = decode_payload(raw, self.source)
                try:
                    catalog = Catalog(records)
                except CatalogValidationError as exc:
                    raise CatalogLoadError(self.source, str(exc)) from exc
                log.info("catalog_loaded", entries=len(catalog))
        except CatalogLoadError as exc:
            self._error = exc
            raise
        self._catalog = catalog
        return catalog

    async def _read_file(self) -> str:
        path = Path(self.source)
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise CatalogLoadError(self.source, "not valid UTF-8") from exc
        except OSError as exc:
            raise CatalogLoadError(self.source, exc.strerror or str(exc)) from exc

    async def _fetch(self) -> bytes:
        if self._client is not None:
            return await self._fetch_with(self._client)
        async with httpx.AsyncClient(
            timeout=self._timeout, follow_redirects=True
        ) as client:
            return await self._fetch_with(client)

    async def _fetch_with(self, client: httpx.AsyncClient) -> bytes:
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(httpx.TransportError),
                stop=stop_after_attempt(self._retries),
                wait=wait_exponential(multiplier=self._backoff, max=10),
                reraise=True,
            ):
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        logger.warning(
                            "catalog_fetch_retry",
                            attempt=attempt.retry_state.attempt_number,
                        )
                    response = await client.get(self.source)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise CatalogLoadError(
                self.source, f"HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise CatalogLoadError(self.source, str(exc) or type(exc).__name__) from exc
        return response.content

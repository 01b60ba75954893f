"""Registry client over the PyPI JSON API.

Only reads happen here; uploads go through `uv publish` (see publisher.py).
Transient failures (rate limiting, 5xx, dropped connections) are retried
with exponential backoff before giving up.
"""

from __future__ import annotations

import time
from typing import Any, Final

import httpx

from .errors import ExternalCollaboratorFailure
from .logs import get_logger
from .versions import sort_versions

log = get_logger(__name__)

DEFAULT_INDEX_URL: Final[str] = "https://pypi.org"
DEFAULT_TIMEOUT: Final[float] = 30.0

MAX_RETRIES: Final[int] = 3
RETRY_BACKOFF_BASE: Final[float] = 1.0

RETRYABLE_STATUS_CODES: Final[frozenset[int]] = frozenset({429, 500, 502, 503, 504})


class RegistryClient:
    """Queries a PyPI-compatible index.

    Args:
        index_url: Base URL serving ``/pypi/<name>/json``.
        client: Preconfigured httpx client (tests pass one with a
            MockTransport).
        max_retries: Retry attempts for transient failures.
        backoff_base: Base delay in seconds for exponential backoff.
    """

    def __init__(
        self,
        index_url: str = DEFAULT_INDEX_URL,
        *,
        client: httpx.Client | None = None,
        max_retries: int = MAX_RETRIES,
        backoff_base: float = RETRY_BACKOFF_BASE,
    ) -> None:
        self.index_url = index_url.rstrip("/")
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(DEFAULT_TIMEOUT), follow_redirects=True
        )
        self.max_retries = max_retries
        self.backoff_base = backoff_base

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> RegistryClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _get(self, url: str, *, package: str | None = None) -> httpx.Response:
        for attempt in range(self.max_retries + 1):
            delay = self.backoff_base * (2**attempt)
            try:
                response = self.client.get(url)
            except (httpx.ConnectError, httpx.ReadTimeout, httpx.WriteTimeout) as exc:
                if attempt == self.max_retries:
                    raise ExternalCollaboratorFailure(
                        f"Request to {url} failed: {exc}",
                        package=package,
                        operation="query",
                    ) from exc
                log.warning("http retry", url=url, error=str(exc), attempt=attempt + 1, delay=delay)
            else:
                if response.status_code not in RETRYABLE_STATUS_CODES:
                    return response
                if attempt == self.max_retries:
                    break
                log.warning(
                    "http retry",
                    url=url,
                    status=response.status_code,
                    attempt=attempt + 1,
                    delay=delay,
                )
            time.sleep(delay)
        raise ExternalCollaboratorFailure(
            f"Request to {url} kept failing with status {response.status_code}",
            package=package,
            operation="query",
        )

    def _get_json(self, url: str, *, package: str) -> dict[str, Any] | None:
        response = self._get(url, package=package)
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise ExternalCollaboratorFailure(
                f"Unexpected status {response.status_code} from {url}",
                package=package,
                operation="query",
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ExternalCollaboratorFailure(
                f"Invalid JSON from {url}", package=package, operation="query"
            ) from exc

    def query_versions(self, name: str) -> list[str]:
        """Published versions of `name`, oldest first.

        A project the index has never heard of has no versions. Releases
        with no files left were deleted, and count as published because
        the index never accepts their filenames again.
        """
        data = self._get_json(f"{self.index_url}/pypi/{name}/json", package=name)
        if data is None:
            log.debug("project not on registry", package=name)
            return []
        releases = data.get("releases", {})
        versions = sort_versions(releases)
        log.debug("queried registry", package=name, versions=versions)
        return versions

    def sdist_url(self, name: str, version: str) -> str | None:
        """Download URL of the source distribution of `name` `version`."""
        data = self._get_json(f"{self.index_url}/pypi/{name}/{version}/json", package=name)
        if data is None:
            return None
        for file_info in data.get("urls", []):
            if file_info.get("packagetype") == "sdist":
                return file_info.get("url")
        return None

    def download(self, url: str) -> bytes:
        response = self._get(url)
        if response.status_code != 200:
            raise ExternalCollaboratorFailure(
                f"Download of {url} failed with status {response.status_code}",
                operation="download",
            )
        return response.content

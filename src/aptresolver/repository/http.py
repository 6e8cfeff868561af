"""Debian repository HTTP client.

`HttpRepositoryClient` is bound to a repository root URL: the value that
follows `deb` in an apt sources line, e.g. `https://deb.debian.org/debian`
for `deb https://deb.debian.org/debian stable main`. Distribution and
release clients are obtained from it via `distribution_client()` and
`DistributionClient.fetch_inrelease()`.
"""

import logging
from collections.abc import AsyncIterator

import httpx

from aptresolver.constants import HTTP_TIMEOUT, USER_AGENT
from aptresolver.errors import HttpStatusError, PathNotFoundError, TransportError, UrlError
from aptresolver.repository import RepositoryReader

logger = logging.getLogger(__name__)


class HttpRepositoryClient(RepositoryReader):
    """Client for a Debian repository served via HTTP.

    Responses are streamed, so concurrent fetches may share one client.
    """

    def __init__(self, url: str | httpx.URL, client: httpx.AsyncClient | None = None):
        """Initialize the client.

        Args:
            url: Base URL of the repository (the directory containing `dists/`)
            client: httpx client to use. A client created here is closed by `aclose()`.
        """
        try:
            root_url = httpx.URL(url)
        except (httpx.InvalidURL, TypeError) as e:
            raise UrlError(str(url), f"invalid URL: {e}") from e
        if root_url.scheme not in ("http", "https") or not root_url.host:
            raise UrlError(str(url), "repository URL must be an absolute http(s) URL")

        # joins are relative to the last "/" of the base, so make the root a directory
        if not root_url.path.endswith("/"):
            root_url = root_url.copy_with(path=f"{root_url.path}/")
        self.root_url = root_url

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            timeout=HTTP_TIMEOUT,
            headers={"User-Agent": USER_AGENT},
        )

    def url_for(self, path: str) -> httpx.URL:
        try:
            return self.root_url.join(path.lstrip("/"))
        except httpx.InvalidURL as e:
            raise UrlError(path, f"invalid URL: {e}") from e

    async def get_path(self, path: str) -> AsyncIterator[bytes]:
        url = self.url_for(path)
        logger.debug(f"Fetching {url}")
        try:
            async with self._client.stream("GET", url) as response:
                if response.status_code == 404:
                    logger.debug(f"Not found: {url}")
                    raise PathNotFoundError(path)
                if not response.is_success:
                    logger.warning(f"Failed to fetch {url}: HTTP {response.status_code}")
                    raise HttpStatusError(path, response.status_code)
                async for chunk in response.aiter_bytes():
                    yield chunk
        except httpx.RequestError as e:
            logger.warning(f"Failed to fetch {url}: {e!r}")
            raise TransportError(path, f"error sending HTTP request: {e!r}") from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpRepositoryClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"HttpRepositoryClient({str(self.root_url)!r})"

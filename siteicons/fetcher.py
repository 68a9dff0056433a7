"""Partial fetcher for downloading pages and image byte prefixes"""

import asyncio
import logging

import httpx

from siteicons.constants import ALLOW_REDIRECTS, MAX_PAGE_BYTES, PREFIX_BYTES, TIMEOUT
from siteicons.exceptions import FetchError
from siteicons.models import PageResponse, PrefixResponse

logger = logging.getLogger(__name__)


class PartialFetcher:
    """Fetch pages and the leading bytes of images over a shared `httpx.AsyncClient`.

    Every call is bounded by `timeout` as a whole, so a slow server trickling bytes
    cannot hold a probe past its budget.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        user_agent: str,
        timeout: float = TIMEOUT,
        prefix_bytes: int = PREFIX_BYTES,
        max_page_bytes: int = MAX_PAGE_BYTES,
    ) -> None:
        self.client = client
        self.user_agent = user_agent
        self.timeout = timeout
        self.prefix_bytes = prefix_bytes
        self.max_page_bytes = max_page_bytes

    async def fetch_page(self, url: str) -> PageResponse:
        """Download the page body without a range restriction.

        Raises:
            FetchError: on connection failure, timeout or a non-2xx status.
        """
        response, content = await self._get(url, {}, self.max_page_bytes)
        return PageResponse(
            url=str(response.url),
            content_type=response.headers.get("Content-Type", ""),
            content=content,
            encoding=response.charset_encoding,
        )

    async def fetch_prefix(self, url: str) -> PrefixResponse:
        """Download only the first `prefix_bytes` of a resource.

        Servers that ignore the `Range` header are tolerated: the body is read only until
        enough bytes are buffered and the connection is then released.

        Raises:
            FetchError: on connection failure, timeout or a non-2xx status.
        """
        headers = {"Range": f"bytes=0-{self.prefix_bytes - 1}"}
        response, content = await self._get(url, headers, self.prefix_bytes)
        return PrefixResponse(
            url=str(response.url),
            status_code=response.status_code,
            headers=dict(response.headers),
            content=content,
        )

    async def _get(
        self, url: str, headers: dict[str, str], limit: int
    ) -> tuple[httpx.Response, bytes]:
        """Issue a GET and read at most `limit` bytes of the body."""
        request_headers = {"User-Agent": self.user_agent, **headers}
        try:
            return await asyncio.wait_for(
                self._read(url, request_headers, limit), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise FetchError(f"Timed out after {self.timeout}s fetching {url}") from e
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch {url}: {e!r}") from e
        except httpx.InvalidURL as e:
            raise FetchError(f"Invalid URL {url}: {e}") from e

    async def _read(
        self, url: str, headers: dict[str, str], limit: int
    ) -> tuple[httpx.Response, bytes]:
        async with self.client.stream(
            "GET",
            url,
            headers=headers,
            timeout=self.timeout,
            follow_redirects=ALLOW_REDIRECTS,
        ) as response:
            if not response.is_success:
                raise FetchError(f"Received status {response.status_code} from {url}")

            buffer = bytearray()
            async for chunk in response.aiter_bytes():
                buffer.extend(chunk)
                if len(buffer) >= limit:
                    break

            logger.debug(
                f"Fetched {url}: status {response.status_code}, kept {min(len(buffer), limit)}"
                f" of {len(buffer)} buffered bytes"
            )
            return response, bytes(buffer[:limit])

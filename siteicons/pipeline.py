"""Pipeline orchestrating icon discovery, resolution and probing"""

import asyncio
import logging
from typing import Optional

import httpx

from siteicons.configs import settings
from siteicons.constants import DEFAULT_FAVICON_PATH, MAX_CONCURRENCY
from siteicons.exceptions import InvalidUrlError, SiteIconsError
from siteicons.fetcher import PartialFetcher
from siteicons.models import CandidateReference, ImageDescriptor, PageResponse
from siteicons.scanner import decode_markup, scan_markup
from siteicons.sniffer import sniff
from siteicons.urls import resolve, validate_page_url
from siteicons.utils.http_client import create_http_client

logger = logging.getLogger(__name__)

FALLBACK_CANDIDATE = CandidateReference(
    value=DEFAULT_FAVICON_PATH, element="fallback", key="favicon.ico"
)


class IconExtractor:
    """Find icon candidates on a page and keep those that turn out to be images.

    Page-level failures propagate to the caller. Candidate-level failures (resolution,
    fetch, sniff) only remove that candidate from the result.
    """

    def __init__(self, fetcher: PartialFetcher, max_concurrency: int = MAX_CONCURRENCY) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
        self.fetcher = fetcher
        self.max_concurrency = max_concurrency

    async def extract(self, url: str) -> list[ImageDescriptor]:
        """Return the reachable icons of the page at `url`, in no particular order.

        Raises:
            InvalidUrlError: if `url` is not an absolute http(s) URL.
            FetchError: if the page itself cannot be fetched. No probes are started.
        """
        url = validate_page_url(url)
        page = await self.fetcher.fetch_page(url)

        candidates = self.scan_page(page)
        candidates.append(FALLBACK_CANDIDATE)

        icon_urls = self.resolve_candidates(page.url, candidates)
        logger.debug(
            f"Probing {len(icon_urls)} icon URLs from {len(candidates)} candidates on {page.url}"
        )

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded_probe(icon_url: str) -> Optional[ImageDescriptor]:
            async with semaphore:
                return await self.probe(icon_url)

        results = await asyncio.gather(
            *(bounded_probe(icon_url) for icon_url in icon_urls), return_exceptions=True
        )

        icons = []
        for icon_url, result in zip(icon_urls, results):
            if isinstance(result, BaseException):
                logger.warning(f"Unexpected error probing {icon_url}: {result!r}")
                continue
            if result is not None:
                icons.append(result)

        logger.info(f"Found {len(icons)} of {len(icon_urls)} icon candidates on {page.url}")
        return icons

    def scan_page(self, page: PageResponse) -> list[CandidateReference]:
        """Scan HTML pages for candidates; any other content type has none."""
        if not page.is_html():
            logger.debug(f"Not scanning {page.url} with content type {page.content_type!r}")
            return []
        markup = decode_markup(page.content, page.encoding)
        return list(scan_markup(markup))

    def resolve_candidates(self, base_url: str, candidates: list[CandidateReference]) -> list[str]:
        """Resolve candidates against the page URL, dropping invalid and duplicate ones."""
        resolved: dict[str, None] = {}
        for candidate in candidates:
            try:
                resolved.setdefault(resolve(base_url, candidate.value))
            except InvalidUrlError as e:
                logger.debug(f"Dropping {candidate.element} candidate {candidate.value!r}: {e}")
        return list(resolved)

    async def probe(self, url: str) -> Optional[ImageDescriptor]:
        """Fetch the byte prefix of `url` and sniff it, or return None on any failure."""
        try:
            return await self.probe_or_raise(url)
        except SiteIconsError as e:
            logger.debug(f"Icon candidate {url} rejected: {e}")
            return None

    async def probe_or_raise(self, url: str) -> ImageDescriptor:
        """Fetch the byte prefix of `url` and sniff its format and dimensions.

        Raises:
            FetchError: if the prefix cannot be fetched.
            SniffError: if the prefix is not a recognised or complete image header.
        """
        prefix = await self.fetcher.fetch_prefix(url)
        image_type, width, height = sniff(prefix.content)
        logger.debug(
            f"{url}, downloaded bytes: {len(prefix.content)}, pixels: {width}x{height},"
            f" type: {image_type.name}"
        )
        return ImageDescriptor(url=url, image_type=image_type, width=width, height=height)


def _build_fetcher(client: httpx.AsyncClient, user_agent: str, timeout: float) -> PartialFetcher:
    return PartialFetcher(
        client,
        user_agent=user_agent,
        timeout=timeout,
        prefix_bytes=settings.http.prefix_bytes,
        max_page_bytes=settings.http.max_page_bytes,
    )


def _create_client(user_agent: str, timeout: float) -> httpx.AsyncClient:
    return create_http_client(
        user_agent=user_agent,
        max_connections=settings.http.max_connections,
        connect_timeout=timeout,
        request_timeout=timeout,
        pool_timeout=timeout,
    )


async def extract_icons(
    url: str,
    user_agent: str,
    timeout: float,
    max_concurrency: Optional[int] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> list[ImageDescriptor]:
    """Discover and validate the icons referenced by the page at `url`.

    Args:
        url: Absolute http(s) URL of the page.
        user_agent: Sent verbatim as the User-Agent header of every request.
        timeout: Upper bound in seconds for each individual request.
        max_concurrency: Maximum number of probes in flight, defaults to the configured one.
        client: An existing client to use. It is left open; otherwise a client is created
            for this call and closed before returning.
    Returns:
        An unordered list of icons; empty if none could be validated.
    Raises:
        InvalidUrlError: if `url` is not a valid absolute http(s) URL.
        FetchError: if the page cannot be fetched.
    """
    url = validate_page_url(url)
    if max_concurrency is None:
        max_concurrency = settings.http.max_concurrency

    if client is not None:
        extractor = IconExtractor(_build_fetcher(client, user_agent, timeout), max_concurrency)
        return await extractor.extract(url)

    async with _create_client(user_agent, timeout) as session:
        extractor = IconExtractor(_build_fetcher(session, user_agent, timeout), max_concurrency)
        return await extractor.extract(url)


def extract_icons_sync(
    url: str,
    user_agent: str,
    timeout: float,
    max_concurrency: Optional[int] = None,
) -> list[ImageDescriptor]:
    """Run `extract_icons` to completion for synchronous callers."""
    return asyncio.run(extract_icons(url, user_agent, timeout, max_concurrency))


async def probe_image(
    url: str,
    user_agent: str,
    timeout: float,
    client: Optional[httpx.AsyncClient] = None,
) -> ImageDescriptor:
    """Probe a single image URL for its format and dimensions.

    Raises:
        InvalidUrlError: if `url` is not a valid absolute http(s) URL.
        FetchError: if the prefix cannot be fetched.
        SniffError: if the prefix is not a recognised or complete image header.
    """
    url = validate_page_url(url)
    if client is not None:
        extractor = IconExtractor(_build_fetcher(client, user_agent, timeout))
        return await extractor.probe_or_raise(url)

    async with _create_client(user_agent, timeout) as session:
        extractor = IconExtractor(_build_fetcher(session, user_agent, timeout))
        return await extractor.probe_or_raise(url)

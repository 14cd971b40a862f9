"""Render club pages with Crawl4AI and pull out candidate images and outbound links."""

import asyncio
import re
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup
from crawl4ai import AsyncWebCrawler, BrowserConfig, CacheMode, CrawlerRunConfig
from pydantic import BaseModel, Field

from clubevents.config import settings
from clubevents.models import FetchError

ANCHOR_SELECTOR = "css:a[href]"

_BACKGROUND_URL_RE = re.compile(r"background-image\s*:\s*url\(\s*['\"]?(.*?)['\"]?\s*\)", re.I)


class RenderedPage(BaseModel):
    url: str
    html: str
    image_urls: list[str] = Field(default_factory=list)


def _is_http_url(url: str) -> bool:
    return urlsplit(url).scheme in ("http", "https")


def _bare_host(host: str) -> str:
    host = host.lower()
    return host[4:] if host.startswith("www.") else host


def collect_image_urls(html: str, base_url: str) -> list[str]:
    """
    Candidate image URLs on a page, absolute and de-duplicated in page order.

    Covers ``<img>`` ``src`` plus the lazy-loading ``data-src`` / ``data-lazy``
    attributes, and inline ``background-image: url(...)`` styles.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    found: list[str] = []

    for img in soup.find_all("img"):
        src = img.get("src") or img.get("data-src") or img.get("data-lazy") or ""
        if src:
            found.append(src)

    for el in soup.find_all(style=_BACKGROUND_URL_RE):
        match = _BACKGROUND_URL_RE.search(el["style"])
        if match and match.group(1):
            found.append(match.group(1))

    urls: list[str] = []
    seen: set[str] = set()
    for src in found:
        absolute = urljoin(base_url, src.strip())
        if _is_http_url(absolute) and absolute not in seen:
            seen.add(absolute)
            urls.append(absolute)
    return urls


def external_links(html: str, base_url: str) -> list[str]:
    """
    Distinct http(s) links that leave the page's own host, in page order.

    Relative links, self-references (``www.`` variant included) and
    ``mailto:`` / ``tel:`` style schemes are dropped.
    """
    own_host = _bare_host(urlsplit(base_url).hostname or "")
    soup = BeautifulSoup(html or "", "html.parser")

    links: list[str] = []
    seen: set[str] = set()
    for anchor in soup.find_all("a", href=True):
        try:
            href = urljoin(base_url, anchor["href"].strip())
            parts = urlsplit(href)
            host = parts.hostname or ""
        except ValueError:
            continue
        if parts.scheme not in ("http", "https") or not host:
            continue
        if _bare_host(host) == own_host:
            continue
        if href not in seen:
            seen.add(href)
            links.append(href)
    return links


class Renderer:
    """Fetches pages through one shared Crawl4AI browser session."""

    def __init__(
        self,
        crawler: AsyncWebCrawler,
        *,
        navigation_timeout_ms: Optional[int] = None,
        selector_timeout_ms: Optional[int] = None,
    ) -> None:
        self.crawler = crawler
        self.navigation_timeout_ms = navigation_timeout_ms or settings.navigation_timeout_ms
        self.selector_timeout_ms = selector_timeout_ms or settings.selector_timeout_ms

    def _run_config(self, wait_for: Optional[str]) -> CrawlerRunConfig:
        run_config_kw = {
            "cache_mode": CacheMode.BYPASS,
            "wait_until": "domcontentloaded",
            "page_timeout": self.navigation_timeout_ms,
        }
        if wait_for:
            run_config_kw["wait_for"] = wait_for
            run_config_kw["wait_for_timeout"] = self.selector_timeout_ms
        return CrawlerRunConfig(**run_config_kw)

    async def fetch(self, url: str, *, wait_for: Optional[str] = None) -> RenderedPage:
        """
        Render a URL and return its HTML and candidate images.

        Args:
            url: Page to load.
            wait_for: Optional Crawl4AI wait condition (e.g. ``"css:a[href]"``),
                bounded by ``selector_timeout_ms``.

        Raises:
            FetchError: navigation failed or timed out.
        """
        print(f"  Fetching: {url}")
        result = await self.crawler.arun(url=url, config=self._run_config(wait_for))

        if not result.success:
            raise FetchError(f"Crawl failed for {url}: {result.error_message}")

        final_url = getattr(result, "redirected_url", None) or url
        html = result.html or ""
        return RenderedPage(
            url=final_url,
            html=html,
            image_urls=collect_image_urls(html, final_url),
        )


@asynccontextmanager
async def open_renderer() -> AsyncIterator[Renderer]:
    """Start a headless browser for the duration of a run and always release it."""
    browser_config = BrowserConfig(headless=True, text_mode=False)
    async with AsyncWebCrawler(config=browser_config) as crawler:
        yield Renderer(crawler)


async def expand_links(renderer, url: str) -> list[str]:
    """
    Outbound links listed on a link-aggregator page.

    Waits for anchors to appear; any failure (timeout, navigation error)
    yields an empty list so the club's other URLs still run.
    """
    try:
        page = await renderer.fetch(url, wait_for=ANCHOR_SELECTOR)
    except Exception as e:
        print(f"  Error extracting links from {url}: {e}")
        return []

    # Compare against the requested host, the aggregator may redirect
    links = external_links(page.html, url)
    print(f"  Found {len(links)} links on {url}")
    return links


async def main() -> None:
    """CLI: render a URL and print its sanitized text and candidate images."""
    if len(sys.argv) < 2:
        print("Usage: python -m clubevents.scraper <url>")
        print('Example: python -m clubevents.scraper "https://example.com/events"')
        sys.exit(1)

    from clubevents.sanitizer import clean_html

    url = sys.argv[1]
    async with open_renderer() as renderer:
        page = await renderer.fetch(url)

    content = clean_html(page.html)
    print("\n" + "=" * 60)
    print("CRAWL RESULT")
    print("=" * 60)
    print(content[:3000])
    if len(content) > 3000:
        print(f"\n... ({len(content)} chars total, truncated)")
    print(f"\nImages ({len(page.image_urls)}):")
    for img in page.image_urls:
        print(f"  {img}")


if __name__ == "__main__":
    asyncio.run(main())

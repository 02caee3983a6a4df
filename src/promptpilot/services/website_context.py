"""Fetch a web page and turn it into plain text for prompt analysis."""

import logging
from typing import Optional
from urllib.parse import urlparse

import html2text
import httpx

from ..config import settings

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; PromptPilot/0.1)"


def html_to_text(html_content: str) -> str:
    converter = html2text.HTML2Text()
    converter.ignore_links = True
    converter.ignore_images = True
    converter.body_width = 0  # Don't wrap lines
    converter.unicode_snob = True
    return converter.handle(html_content).strip()


class WebsiteContextFetcher:
    """Fetches website text; returns None (and logs) on any failure."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        max_chars: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout or settings.website_fetch_timeout
        self.max_chars = max_chars or settings.max_website_chars
        self.transport = transport

    async def fetch_text(self, url: str) -> Optional[str]:
        parsed = urlparse(url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            logger.warning(f"Skipping website context, invalid URL: {url!r}")
            return None

        try:
            async with httpx.AsyncClient(
                follow_redirects=True, timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get(
                    url,
                    headers={
                        "User-Agent": USER_AGENT,
                        "Accept": "text/html,application/xhtml+xml,text/plain;q=0.9,*/*;q=0.8",
                    },
                )
        except httpx.TimeoutException:
            logger.error(f"Timed out fetching {url} after {self.timeout}s")
            return None
        except httpx.HTTPError as e:
            logger.error(f"Error extracting text from {url}: {e}")
            return None

        if response.status_code >= 400:
            logger.error(f"Failed to fetch {url}: {response.status_code}")
            return None

        content_type = response.headers.get("content-type", "").lower()
        if "html" in content_type:
            text = html_to_text(response.text)
        else:
            text = response.text.strip()

        text = " ".join(text.split())
        return text[: self.max_chars] if text else None

"""HTTP retrieval for scrape and url feeds.

Every failure mode (transport error, timeout, non-2xx, undecodable JSON
envelope) ends up as ``None``; callers treat that as "no document".
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .models import RawDocument

log = logging.getLogger(__name__)

MINIMAL_HEADERS = {"User-Agent": "Calendar-Sync/1.0"}

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "id-ID,id;q=0.9,en-US;q=0.8,en;q=0.7",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
}

ENVELOPE_KEYS = ("html", "content", "data")


@retry(
    retry=retry_if_exception_type((httpx.ConnectError, httpx.RemoteProtocolError)),
    wait=wait_exponential(multiplier=0.2, min=0.2, max=1),
    stop=stop_after_attempt(2),
    reraise=True,
)
def _get(client: httpx.Client, url: str, headers: dict[str, str], timeout: float) -> httpx.Response:
    return client.get(url, headers=headers, timeout=timeout, follow_redirects=True)


def build_headers(browser_like: bool, referer: Optional[str] = None) -> dict[str, str]:
    headers = dict(BROWSER_HEADERS if browser_like else MINIMAL_HEADERS)
    if referer:
        headers["Referer"] = referer
    return headers


def unwrap_envelope(resp: httpx.Response) -> Optional[str]:
    """Pull the HTML payload out of a JSON response (AJAX endpoints)."""
    try:
        data = resp.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        for key in ENVELOPE_KEYS:
            value = data.get(key)
            if isinstance(value, str):
                return value
    return None


class Retriever:
    def __init__(self, timeout_ms: int = 15000, debug: bool = False, transport: Optional[httpx.BaseTransport] = None):
        self.timeout_ms = timeout_ms
        self.debug = debug
        self._transport = transport

    def _request(self, url: str, headers: dict[str, str], timeout_ms: int) -> Optional[httpx.Response]:
        try:
            with httpx.Client(transport=self._transport) as client:
                resp = _get(client, url, headers, timeout_ms / 1000.0)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            if self.debug:
                log.info("fetch %s failed: %s", url, e)
            return None
        if not resp.is_success:
            if self.debug:
                log.info("fetch %s returned HTTP %s", url, resp.status_code)
            return None
        return resp

    def fetch(
        self,
        url: str,
        browser_like: bool = False,
        referer: Optional[str] = None,
        timeout_ms: Optional[int] = None,
    ) -> Optional[RawDocument]:
        resp = self._request(url, build_headers(browser_like, referer), timeout_ms or self.timeout_ms)
        if resp is None:
            return None
        content_type = resp.headers.get("Content-Type", "")
        if "json" in content_type.lower():
            text = unwrap_envelope(resp)
            if text is None:
                if self.debug:
                    log.info("fetch %s: JSON body without an HTML payload", url)
                return None
        else:
            text = resp.text
        if self.debug:
            log.info("fetch %s: %d chars (%s)", url, len(text), content_type or "unknown type")
        return RawDocument(url=url, text=text, content_type=content_type)

    def fetch_text(self, url: str, timeout_ms: Optional[int] = None) -> Optional[str]:
        resp = self._request(url, build_headers(False), timeout_ms or self.timeout_ms)
        return resp.text if resp is not None else None

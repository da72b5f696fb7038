import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urldefrag

import requests
from bs4 import BeautifulSoup

from app.errors import FetchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Page:
    url: str
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)


HTML_HEADERS = {
    # pretend to be a normal browser; some sites refuse python-requests
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/18.0 Safari/605.1.15",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}

_BLANK_RUNS = re.compile(r"\n\s*\n+")


def html_to_text(html: str) -> tuple[str, Optional[str], Optional[str]]:
    """Return (visible text, <title>, <html lang>) for an HTML document."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()

    title = soup.title.get_text(strip=True) if soup.title else None
    lang = soup.html.get("lang") if soup.html else None

    body = soup.body or soup
    text = body.get_text(separator="\n")
    lines = [ln.strip() for ln in text.splitlines()]
    text = _BLANK_RUNS.sub("\n\n", "\n".join(lines)).strip()
    return text, title or None, lang or None


class PageFetcher:
    """Fetch a web page and reduce it to text plus simple metadata."""

    def __init__(self, timeout: float = 20, headers: Optional[Dict[str, str]] = None):
        self.timeout = timeout
        self.headers = dict(headers or HTML_HEADERS)

    def __call__(self, url: str) -> Page:
        return self.fetch(url)

    def fetch(self, url: str) -> Page:
        base, _frag = urldefrag(url)
        try:
            r = requests.get(base, headers=self.headers, timeout=self.timeout, allow_redirects=True)
            if r.status_code in (415, 406, 405):
                # retry once, some pages misbehave with content negotiation
                r = requests.get(base, headers=self.headers, timeout=self.timeout, allow_redirects=True)
            r.raise_for_status()
        except requests.RequestException as exc:
            raise FetchError(url, str(exc)) from exc

        content_type = (r.headers.get("Content-Type") or "").split(";")[0].strip().lower()
        if content_type and "html" not in content_type and not content_type.startswith("text/"):
            raise FetchError(url, f"unsupported content type {content_type}")

        if "html" in content_type or not content_type:
            text, title, lang = html_to_text(r.text)
        else:
            text, title, lang = r.text.strip(), None, None

        metadata: Dict[str, Any] = {
            "source": url,
            "title": title,
            "language": lang,
            "content_type": content_type or None,
            "status_code": r.status_code,
        }
        logger.debug("Fetched %s (%d chars)", url, len(text))
        return Page(url=url, text=text, metadata=metadata)

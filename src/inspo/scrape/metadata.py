"""Website metadata scraper with SSRF protection.

Security requirements:
- SSRF guard: ipaddress module blocks private/loopback/link-local ranges before
  any connection is established.
- Allowed URL schemes: https:// and http:// only.
- Content-Type whitelist: text/html and application/xhtml+xml only.
- Max response body: 5 MB.
- Timeout: configurable, 10 seconds by default (connect + read).
- Max redirects: configurable, 3 by default.
"""

from __future__ import annotations

import ipaddress
import re
import socket
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from http.client import HTTPResponse

import html2text
from bs4 import BeautifulSoup, Tag

from inspo.db.models import ImageDescriptor, WebsiteMetadata
from inspo.errors import ValidationError

_USER_AGENT = "inspo/0.1 (design inspiration collector)"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_DEFAULT_TIMEOUT = 10.0  # seconds
_DEFAULT_MAX_REDIRECTS = 3
_ALLOWED_SCHEMES = {"https", "http"}
_ALLOWED_CONTENT_TYPES = {"text/html", "application/xhtml+xml"}
_TEXT_EXCERPT_CHARS = 8000

_CHARSET_RE = re.compile(r"charset=([\w\-]+)", re.IGNORECASE)

_h2t = html2text.HTML2Text()
_h2t.ignore_links = True
_h2t.ignore_images = True
_h2t.body_width = 0


class SsrfError(ValueError):
    """Raised when a URL resolves to a private or reserved address."""


class FetchError(RuntimeError):
    """Raised when a page cannot be fetched or is not an HTML document."""


@dataclass
class ScrapeResult:
    """Metadata extracted from a page plus a plain-text excerpt of its body."""

    metadata: WebsiteMetadata
    text: str = ""


class MetadataScraper:
    """Fetch a URL and extract its descriptive metadata.

    SSRF protection is applied *before* any connection is made:
    the hostname is resolved and all resulting IP addresses are checked
    against private/loopback/link-local/reserved ranges via the stdlib
    ``ipaddress`` module.
    """

    def __init__(
        self,
        timeout: float = _DEFAULT_TIMEOUT,
        max_redirects: int = _DEFAULT_MAX_REDIRECTS,
    ) -> None:
        self.timeout = timeout
        self.max_redirects = max_redirects

    def scrape(self, url: str) -> ScrapeResult:
        """Validate, fetch, and parse *url*.

        Raises:
            ValidationError: If *url* is not an http(s) URL with a hostname.
            SsrfError: If the host resolves to a private address.
            FetchError: On network errors, bad status, or non-HTML content.
        """
        self.validate_url(url)
        self._check_ssrf(url)
        body, charset, resolved = self._fetch(url)
        try:
            html = body.decode(charset or "utf-8", errors="replace")
        except LookupError:
            html = body.decode("utf-8", errors="replace")
        metadata = parse_metadata(html, url, resolved, header_charset=charset)
        return ScrapeResult(metadata=metadata, text=page_text(html))

    # ------------------------------------------------------------------
    # Fetch pipeline
    # ------------------------------------------------------------------

    @staticmethod
    def validate_url(url: str) -> None:
        parsed = urllib.parse.urlparse(url)
        if parsed.scheme not in _ALLOWED_SCHEMES:
            raise ValidationError(
                f"Unsupported URL scheme '{parsed.scheme}'. Only https:// and http:// are allowed."
            )
        if not parsed.hostname:
            raise ValidationError(f"URL has no hostname: {url}")

    @staticmethod
    def _check_ssrf(url: str) -> None:
        """Resolve the hostname and block private/reserved IP ranges.

        Raises SsrfError if any resolved address is private, loopback,
        link-local, or otherwise reserved.
        """
        hostname = urllib.parse.urlparse(url).hostname
        if not hostname:
            raise ValidationError(f"URL has no hostname: {url}")

        try:
            addrinfos = socket.getaddrinfo(hostname, None)
        except socket.gaierror as exc:
            raise FetchError(f"DNS resolution failed for '{hostname}': {exc}") from exc

        for addrinfo in addrinfos:
            addr_str = addrinfo[4][0]
            try:
                ip = ipaddress.ip_address(addr_str)
            except ValueError:
                continue
            if (
                ip.is_private
                or ip.is_loopback
                or ip.is_link_local
                or ip.is_reserved
                or ip.is_multicast
                or ip.is_unspecified
            ):
                raise SsrfError(
                    f"URL resolves to private address ({ip}). "
                    "Access to internal network addresses is not allowed."
                )

    def _fetch(self, url: str) -> tuple[bytes, str | None, str]:
        """Fetch *url* with timeout, redirect limit, size cap, and Content-Type check.

        Returns (body_bytes, charset_from_header, resolved_url).
        """
        request = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
        opener = urllib.request.build_opener(_LimitedRedirectHandler(self.max_redirects))

        try:
            response: HTTPResponse = opener.open(request, timeout=self.timeout)
        except urllib.error.URLError as exc:
            raise FetchError(f"Failed to fetch URL '{url}': {exc}") from exc

        with response:
            raw_ct = response.headers.get("Content-Type", "text/html")
            ct = raw_ct.split(";")[0].strip().lower()
            if ct not in _ALLOWED_CONTENT_TYPES:
                raise FetchError(
                    f"Unsupported Content-Type '{ct}' for URL '{url}'. "
                    f"Accepted: {', '.join(sorted(_ALLOWED_CONTENT_TYPES))}"
                )

            body = response.read(_MAX_BYTES + 1)
            if len(body) > _MAX_BYTES:
                raise FetchError(
                    f"Response body exceeds {_MAX_BYTES // (1024 * 1024)} MB limit for URL '{url}'."
                )
            resolved = response.geturl() or url

        match = _CHARSET_RE.search(raw_ct)
        return body, match.group(1).lower() if match else None, resolved


class _LimitedRedirectHandler(urllib.request.HTTPRedirectHandler):
    """Raise an error after more than *max_redirects* redirects."""

    def __init__(self, max_redirects: int) -> None:
        self._max_redirects = max_redirects
        self._count = 0

    def redirect_request(self, req, fp, code, msg, headers, newurl):
        self._count += 1
        if self._count > self._max_redirects:
            raise FetchError(
                f"Too many redirects (>{self._max_redirects}) for URL '{req.full_url}'."
            )
        return super().redirect_request(req, fp, code, msg, headers, newurl)


# ----------------------------------------------------------------------
# Parsing
# ----------------------------------------------------------------------


def parse_metadata(
    html: str,
    url_requested: str,
    url_resolved: str,
    *,
    header_charset: str | None = None,
) -> WebsiteMetadata:
    """Extract WebsiteMetadata from an HTML document.

    Relative links (favicon, images, logo) are made absolute against
    *url_resolved*. Missing or blank values are ``None``.
    """
    soup = BeautifulSoup(html, "html.parser")
    base = url_resolved or url_requested

    def meta(*keys: str) -> str | None:
        for key in keys:
            tag = soup.find("meta", attrs={"property": key}) or soup.find(
                "meta", attrs={"name": key}
            )
            if isinstance(tag, Tag):
                value = _clean(tag.get("content"))
                if value:
                    return value
        return None

    def absolute(link: str | None) -> str | None:
        return urllib.parse.urljoin(base, link) if link else None

    title = _clean(soup.title.string) if soup.title and soup.title.string else None
    canonical = _link_href(soup, "canonical")

    return WebsiteMetadata(
        url=absolute(canonical) or meta("og:url") or base,
        url_requested=url_requested,
        url_resolved=url_resolved,
        title=title or meta("twitter:title"),
        description=meta("description", "twitter:description"),
        favicon=absolute(_link_href(soup, "icon", "shortcut icon")),
        author=meta("author", "article:author"),
        date=meta("article:published_time", "date", "dc.date") or _time_datetime(soup),
        image=absolute(meta("og:image", "og:image:url", "twitter:image")),
        logo=absolute(meta("og:logo") or _link_href(soup, "apple-touch-icon")),
        publisher=meta("og:site_name", "publisher", "article:publisher"),
        og_title=meta("og:title"),
        og_description=meta("og:description"),
        og_locale=meta("og:locale"),
        og_url=meta("og:url"),
        charset=_meta_charset(soup) or header_charset,
        og_image=_og_images(soup, base),
    )


def page_text(html: str, limit: int = _TEXT_EXCERPT_CHARS) -> str:
    """Convert *html* to a plain-text excerpt (scripts, styles, nav removed)."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(["script", "style", "nav", "footer", "head"]):
        tag.decompose()
    return _h2t.handle(str(soup)).strip()[:limit]


def _clean(value: object) -> str | None:
    if value is None:
        return None
    text = " ".join(str(value).split())
    return text or None


def _link_href(soup: BeautifulSoup, *rels: str) -> str | None:
    wanted = {r.lower() for r in rels}
    for link in soup.find_all("link", href=True):
        rel = link.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        joined = " ".join(r.lower() for r in rel)
        if joined in wanted or any(r.lower() in wanted for r in rel):
            return _clean(link["href"])
    return None


def _meta_charset(soup: BeautifulSoup) -> str | None:
    tag = soup.find("meta", charset=True)
    if isinstance(tag, Tag):
        return _clean(tag["charset"])
    tag = soup.find("meta", attrs={"http-equiv": re.compile("^content-type$", re.I)})
    if isinstance(tag, Tag):
        match = _CHARSET_RE.search(str(tag.get("content", "")))
        if match:
            return match.group(1)
    return None


def _time_datetime(soup: BeautifulSoup) -> str | None:
    tag = soup.find("time", datetime=True)
    return _clean(tag["datetime"]) if isinstance(tag, Tag) else None


def _og_images(soup: BeautifulSoup, base: str) -> list[ImageDescriptor]:
    """Collect og:image entries in document order.

    Structured properties (og:image:width etc.) attach to the most recent
    og:image.
    """
    images: list[ImageDescriptor] = []
    for tag in soup.find_all("meta", attrs={"property": re.compile(r"^og:image")}):
        prop = tag.get("property", "").lower()
        content = _clean(tag.get("content"))
        if not content:
            continue
        if prop == "og:image" or (
            prop in ("og:image:url", "og:image:secure_url") and not images
        ):
            images.append(ImageDescriptor(url=urllib.parse.urljoin(base, content)))
        elif images and prop == "og:image:width":
            images[-1].width = content
        elif images and prop == "og:image:height":
            images[-1].height = content
        elif images and prop == "og:image:type":
            images[-1].type = content
    return images

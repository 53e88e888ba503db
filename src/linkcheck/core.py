"""
Core link checking logic and data structures.
"""
from __future__ import annotations

import re
import sys
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional
from urllib.parse import SplitResult, urljoin, urlsplit

import requests
import tldextract
from bs4 import BeautifulSoup, ParserRejectedMarkup, Tag
from urllib3.exceptions import LocationParseError

# Headers sent with every link probe to look like a regular browser (avoids 403s)
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/114.0.0.0 Safari/537.36"
)
PROBE_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
PROBE_ACCEPT_LANGUAGE = "en-US,en;q=0.5"

# Public suffix list (ICANN and private sections) from the bundled snapshot,
# never fetched over the network
SUFFIX_EXTRACTOR = tldextract.TLDExtract(suffix_list_urls=(), include_psl_private_domains=True)

_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*):")
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")


class LinkParseError(ValueError):
    """Raised when an href is not a valid URL reference."""


class FetchError(Exception):
    """Raised when the page under check cannot be fetched or parsed."""


@dataclass(slots=True)
class ProbeResult:
    """Outcome of a single link probe."""
    url: str
    status_code: int

    @property
    def dead(self) -> bool:
        return self.status_code >= 400


@dataclass(slots=True)
class CheckStats:
    """Statistics collected during a check for summary output."""
    links_found: int = 0
    links_checked: int = 0
    links_skipped: int = 0
    parse_errors: int = 0
    network_errors: int = 0
    dead_links: Dict[int, List[str]] = field(default_factory=lambda: defaultdict(list))

    def record_dead(self, result: ProbeResult) -> None:
        """Record a dead link under its status code."""
        self.dead_links[result.status_code].append(result.url)

    @property
    def dead_count(self) -> int:
        return sum(len(urls) for urls in self.dead_links.values())


def parse_link(href: str) -> SplitResult:
    """
    Validate an href as a URL reference and split it into components.

    Rejects control characters, malformed percent-escapes, a missing
    scheme before ':', a colon in the first segment of a relative path,
    and authorities that urllib cannot make sense of (bad IPv6, bad port).
    """
    if _CONTROL_RE.search(href):
        raise LinkParseError(f"invalid control character in URL: {href!r}")

    match = _BAD_ESCAPE_RE.search(href)
    if match:
        escape = href[match.start():match.start() + 3]
        raise LinkParseError(f"invalid URL escape {escape!r} in {href!r}")

    if href.startswith(":"):
        raise LinkParseError(f"missing protocol scheme in {href!r}")

    if not _SCHEME_RE.match(href):
        first_segment = re.split(r"[/?#]", href, maxsplit=1)[0]
        if ":" in first_segment:
            raise LinkParseError(f"first path segment in URL cannot contain colon: {href!r}")

    try:
        parts = urlsplit(href)
        parts.port  # validates the port
    except ValueError as e:
        raise LinkParseError(f"{e}: {href!r}") from e

    return parts


def resolve_link(href: str, base_url: str) -> str:
    """
    Turn an href into an absolute URL.

    References without a scheme (including scheme-relative '//host/path')
    are resolved against base_url; anything carrying a scheme is returned
    as-is. No other normalization is applied.
    """
    parts = parse_link(href)
    if not parts.scheme:
        return urljoin(base_url, href)
    return href


def parse_base_url(target_url: str) -> str:
    """Validate the URL of the page to check; it must be absolute."""
    try:
        parts = parse_link(target_url)
    except LinkParseError as e:
        raise ValueError(str(e)) from e

    if not parts.scheme or not parts.netloc:
        raise ValueError(f"Invalid start URL: {target_url}")
    return target_url


def is_checkable(host: Optional[str]) -> bool:
    """
    Check whether a host has a registrable domain (effective TLD+1).

    Hosts of mailto:, tel: or javascript: links are empty and fail here,
    as do bare public suffixes (including private ones like github.io),
    IPv6 literals and names like 'localhost'. TLDs missing from the
    public suffix list count as suffixes (the '*' default rule).
    """
    if not host:
        return False

    # Leading, trailing or doubled dots leave an empty label
    labels = host.split(".")
    if any(not label for label in labels):
        return False

    extracted = SUFFIX_EXTRACTOR(host)
    if extracted.suffix:
        return bool(extracted.domain)

    # Unlisted TLD: the last label is the suffix, one more label is needed
    return len(labels) >= 2


def fetch_document(
    url: str,
    session: requests.Session,
    timeout: Optional[float] = None,
) -> BeautifulSoup:
    """Fetch the page at url and parse it into a BeautifulSoup tree."""
    try:
        resp = session.get(url, timeout=timeout)
    except (requests.RequestException, LocationParseError) as e:
        raise FetchError(str(e)) from e

    try:
        return BeautifulSoup(resp.content, "lxml")
    except ParserRejectedMarkup as e:
        raise FetchError(f"could not parse HTML from {url}: {e}") from e
    finally:
        resp.close()


def iter_links(root: Tag) -> Iterator[str]:
    """
    Yield every <a href> value below root in document order.

    Walks the tree depth-first, pre-order, with an explicit stack so deep
    documents do not hit the recursion limit.
    """
    stack: List[Tag] = [root]
    while stack:
        node = stack.pop()

        if node.name == "a":
            for key, value in node.attrs.items():
                if key == "href":
                    yield value

        # Push children reversed so the first child is visited next
        children = [child for child in node.contents if isinstance(child, Tag)]
        stack.extend(reversed(children))


def print_scan_line(url: str, status: Optional[int]) -> None:
    """Print single probe result line."""
    status_str = str(status) if status else "ERR"
    sys.stderr.write(f"  → {status_str} {url}\n")
    sys.stderr.flush()


class LinkChecker:
    """Checks every link on one page and remembers whether any was dead."""

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        verbose: bool = False,
    ) -> None:
        self.base_url = base_url
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.user_agent = user_agent
        self.verbose = verbose
        self.dead_link_found = False
        self.stats = CheckStats()

    def probe_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": PROBE_ACCEPT,
            "Accept-Language": PROBE_ACCEPT_LANGUAGE,
            "Referer": self.base_url,
        }

    def probe(self, url: str) -> ProbeResult:
        """
        Send a GET to url and return its status.

        Only the status line and headers are read; the body is never
        downloaded. Transport failures propagate as requests exceptions,
        or as urllib3's LocationParseError for hosts it cannot encode.
        """
        resp = self.session.get(
            url,
            headers=self.probe_headers(),
            timeout=self.timeout,
            stream=True,
        )
        try:
            return ProbeResult(url=url, status_code=resp.status_code)
        finally:
            resp.close()

    def check_link(self, url: str) -> Optional[ProbeResult]:
        """Filter, probe and report a single resolved link."""
        if not is_checkable(urlsplit(url).hostname):
            self.stats.links_skipped += 1
            if self.verbose:
                sys.stderr.write(f"  - SKIP {url}\n")
            return None

        self.stats.links_checked += 1
        try:
            result = self.probe(url)
        except (requests.RequestException, LocationParseError) as e:
            self.stats.network_errors += 1
            if self.verbose:
                print_scan_line(url, None)
            print(f"Error checking link {url}: {e}")
            return None

        if self.verbose:
            print_scan_line(url, result.status_code)

        if result.dead:
            print(f"Dead link found: {url} ({result.status_code})")
            self.stats.record_dead(result)
            self.dead_link_found = True
        return result

    def check_links(self, root: Tag) -> None:
        """Check every anchor link in the document tree under root."""
        for href in iter_links(root):
            self.stats.links_found += 1
            try:
                url = resolve_link(href, self.base_url)
            except LinkParseError as e:
                self.stats.parse_errors += 1
                print(f"Error parsing link: {e}")
                continue
            self.check_link(url)


def check_page(
    target_url: str,
    timeout: Optional[float] = None,
    user_agent: str = DEFAULT_USER_AGENT,
    verbose: bool = False,
    session: Optional[requests.Session] = None,
) -> LinkChecker:
    """
    Check every link on a single page.

    Args:
        target_url: URL of the page whose links are checked.
        timeout: Per-request timeout in seconds, or None to wait forever.
        user_agent: User-Agent header sent with link probes.
        verbose: Whether to print progress information.
        session: HTTP session to use; a new one is created if omitted.

    Returns:
        The LinkChecker holding the dead-link flag and statistics.

    Raises:
        ValueError: target_url is not a valid absolute URL.
        FetchError: the page could not be fetched or parsed.
    """
    base_url = parse_base_url(target_url)
    checker = LinkChecker(
        base_url,
        session=session,
        timeout=timeout,
        user_agent=user_agent,
        verbose=verbose,
    )

    print("Checking for dead links. This may take some time...")
    if verbose:
        sys.stderr.write(f"Fetching page: {base_url}\n")

    doc = fetch_document(base_url, checker.session, timeout=timeout)
    checker.check_links(doc)

    if not checker.dead_link_found:
        print("No dead links found.")
    return checker

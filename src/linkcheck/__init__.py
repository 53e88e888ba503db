"""
Single-page dead link checker.
Fetches one page, walks its <a> tags and probes each link target once.
"""
from linkcheck.core import (
    CheckStats,
    FetchError,
    LinkChecker,
    LinkParseError,
    ProbeResult,
    check_page,
    is_checkable,
    resolve_link,
)

__version__ = "1.0.0"
__all__ = [
    "CheckStats",
    "FetchError",
    "LinkChecker",
    "LinkParseError",
    "ProbeResult",
    "check_page",
    "is_checkable",
    "resolve_link",
]

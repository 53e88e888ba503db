"""
Command-line interface for the link checker.
"""
from __future__ import annotations

import argparse
import sys
from typing import Optional

from linkcheck.core import DEFAULT_USER_AGENT, CheckStats, FetchError, check_page

PROMPT = "Enter the URL of the website to check for dead links: "


def print_summary(stats: CheckStats) -> None:
    """Print check summary to stderr."""
    sys.stderr.write("=" * 50 + "\n")
    sys.stderr.write("LINK CHECK SUMMARY\n")
    sys.stderr.write("=" * 50 + "\n\n")

    sys.stderr.write(f"Links found:            {stats.links_found}\n")
    sys.stderr.write(f"Links checked:          {stats.links_checked}\n")
    sys.stderr.write(f"Links skipped:          {stats.links_skipped}\n")
    sys.stderr.write(f"Unparsable links:       {stats.parse_errors}\n")
    sys.stderr.write(f"Connection errors:      {stats.network_errors}\n\n")

    if stats.dead_links:
        sys.stderr.write("Dead links by status:\n")
        for status_code, urls in sorted(stats.dead_links.items()):
            sys.stderr.write(f"  HTTP {status_code}: {len(urls)}\n")
    else:
        sys.stderr.write("No dead links encountered.\n")

    sys.stderr.write("\n")


def read_target_url() -> str:
    """Prompt for the target URL and read one line from stdin."""
    sys.stdout.write(PROMPT)
    sys.stdout.flush()
    return sys.stdin.readline()


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the link checker CLI."""
    parser = argparse.ArgumentParser(
        description="Check every link on a web page and report the dead ones."
    )
    parser.add_argument("url", nargs="?", help="Page to check (prompted for if omitted)")
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds (default: none)")
    parser.add_argument("--user-agent", default=DEFAULT_USER_AGENT, help="User-Agent header sent with link probes")
    parser.add_argument("--verbose", action="store_true", help="Show progress and summary")
    args = parser.parse_args(argv)

    target_url = args.url if args.url is not None else read_target_url()
    target_url = target_url.strip()

    try:
        checker = check_page(
            target_url,
            timeout=args.timeout,
            user_agent=args.user_agent,
            verbose=args.verbose,
        )
    except ValueError as e:
        sys.stderr.write(f"Error parsing base URL: {e}\n")
        return 1
    except FetchError as e:
        sys.stderr.write(f"Error fetching HTML: {e}\n")
        return 1

    # Print summary if verbose
    if args.verbose:
        print_summary(checker.stats)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())

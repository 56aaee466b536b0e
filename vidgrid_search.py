"""CLI entry-point that searches a running VidGrid server's catalog."""
from __future__ import annotations

import argparse
import logging
import sys
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Mapping, Optional, Sequence

import requests

from browse.cell import BrowserCell
from browse.client import VidGridClient
from browse.engine import DEFAULT_MAX_RESULTS
from browse.shared import SharedCatalog
from core.paths import resolve_working_dir
from core.settings import load_settings

LOGGER = logging.getLogger("vidgrid.search")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Search the catalog of a running VidGrid server.")
    parser.add_argument("query", help="Search term (at least three characters)")
    parser.add_argument("--server", default="http://localhost:8080", help="Server base URL")
    parser.add_argument("--path", default="", help="Directory to list when the query is too short")
    parser.add_argument("--max-results", type=int, default=None, help="Result cap (default from settings.json)")
    parser.add_argument("--timeout", type=float, default=30.0, help="Seconds to wait for the catalog")
    parser.add_argument("--verbose", action="store_true", help="Log each keystroke")
    return parser.parse_args(argv)


def resolve_max_results(cli_value: Optional[int], settings: Mapping[str, Any]) -> int:
    if cli_value is not None:
        return max(1, cli_value)
    section = settings.get("search") if isinstance(settings.get("search"), Mapping) else {}
    try:
        return max(1, int(section.get("max_results") or DEFAULT_MAX_RESULTS))
    except (TypeError, ValueError):
        return DEFAULT_MAX_RESULTS


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    max_results = resolve_max_results(args.max_results, load_settings(resolve_working_dir()))
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )
    client = VidGridClient(args.server)
    shared = SharedCatalog(client.fetch_catalog)
    cell = BrowserCell(client.list_directory, shared.snapshot, max_results=max_results)

    try:
        shared.get(timeout=args.timeout)
        cell.navigate(args.path)
        results = cell.view()
        # Replay the query as it would be typed so the incremental path is used.
        for end in range(1, len(args.query) + 1):
            cell.type_search(args.query[:end])
            results = cell.view()
            LOGGER.debug("%r -> %d results", args.query[:end], len(results))
    except requests.RequestException as exc:
        LOGGER.error("Server request failed: %s", exc)
        return 1
    except FutureTimeout:
        LOGGER.error("Catalog did not load within %.0fs", args.timeout)
        return 1
    finally:
        client.close()

    if cell.error:
        LOGGER.error("%s", cell.error)
        return 1
    for entry in results:
        record = entry.as_dict() if hasattr(entry, "as_dict") else entry
        kind = record.get("type")
        path = record.get("path")
        suffix = "/" if kind == "directory" else ""
        print(f"{path}{suffix}")
    if cell.message:
        LOGGER.info("%s", cell.message)
    return 0


if __name__ == "__main__":
    sys.exit(main())

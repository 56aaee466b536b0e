"""CLI entry-point to serve a media tree through the VidGrid web UI."""
from __future__ import annotations

import argparse
import errno
import logging
import socket
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import uvicorn

from api import __version__ as API_VERSION
from api.server import APIServerConfig, create_app
from core.logging_utils import configure_cli_logging
from core.paths import (
    ensure_working_dir_structure,
    get_public_dir,
    get_thumbs_dir,
    resolve_library_root,
    resolve_working_dir,
)
from core.settings import load_settings

LOGGER = logging.getLogger("vidgrid.server")

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORTS = [8080, 8081]


class NoFreePortError(RuntimeError):
    """Raised when every candidate port is already taken."""


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Browse a directory of videos in the browser.")
    parser.add_argument("root", nargs="?", default=None, help="Media directory to serve (default from settings.json, else '.')")
    parser.add_argument("--host", default=None, help="Bind host (default from settings.json)")
    parser.add_argument(
        "--port",
        type=int,
        action="append",
        dest="ports",
        default=None,
        help="Port to try, repeatable; the first free one is used.",
    )
    parser.add_argument("--thumbs", default=None, help="Thumbnail directory (default ./thumbs)")
    parser.add_argument("--public", default=None, help="Frontend directory (default ./public)")
    return parser.parse_args(argv)


def _resolve_ports(args: argparse.Namespace, server_settings: Dict[str, Any]) -> List[int]:
    raw = args.ports or server_settings.get("ports") or DEFAULT_PORTS
    if not isinstance(raw, (list, tuple)):
        raw = [raw]
    ports: List[int] = []
    for value in raw:
        try:
            port = int(value)
        except (TypeError, ValueError):
            continue
        if 0 <= port <= 65535 and port not in ports:
            ports.append(port)
    return ports or list(DEFAULT_PORTS)


def resolve_server_settings(args: argparse.Namespace) -> Tuple[str, List[int], APIServerConfig, Dict[str, Any]]:
    working_dir = resolve_working_dir()
    settings = load_settings(working_dir)
    server_settings = settings.get("server") if isinstance(settings.get("server"), dict) else {}

    host = (args.host or server_settings.get("host") or DEFAULT_HOST).strip() or DEFAULT_HOST
    ports = _resolve_ports(args, server_settings)
    library_root = resolve_library_root(args.root, working_dir, settings)
    thumbs_dir = Path(args.thumbs).resolve() if args.thumbs else get_thumbs_dir(working_dir, settings)
    public_dir = Path(args.public).resolve() if args.public else get_public_dir(working_dir, settings)

    config = APIServerConfig(
        library_root=library_root,
        thumbs_dir=thumbs_dir,
        working_dir=working_dir,
        settings=settings,
        public_dir=public_dir,
        cors_origins=list(server_settings.get("cors_origins") or []),
        app_version=API_VERSION,
    )
    return host, ports, config, settings


def bind_first_free(host: str, ports: Sequence[int]) -> socket.socket:
    """Bind a listening socket on the first port of *ports* that is free."""

    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    for port in ports:
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
        except OSError as exc:
            sock.close()
            if exc.errno == errno.EADDRINUSE:
                LOGGER.info("Port %s is in use, trying next...", port)
                continue
            raise
        sock.listen(128)
        sock.setblocking(False)
        return sock
    raise NoFreePortError("Could not find a free port.")


def local_addresses(host: str) -> List[str]:
    """Addresses a browser on this machine or the LAN can use to reach *host*."""

    results = ["http://localhost", "http://127.0.0.1"]
    if host not in {"0.0.0.0", "::", ""}:
        candidate = f"http://{host}"
        return results if candidate in results else results + [candidate]
    try:
        infos = socket.getaddrinfo(socket.gethostname(), None, socket.AF_INET, socket.SOCK_STREAM)
    except OSError:
        infos = []
    for info in infos:
        address = info[4][0]
        if address.startswith("127."):
            continue
        url = f"http://{address}"
        if url not in results:
            results.append(url)
    return results


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    host, ports, config, settings = resolve_server_settings(args)
    configure_cli_logging(settings, config.working_dir)

    if not config.library_root.is_dir():
        LOGGER.error("Media directory does not exist: %s", config.library_root)
        return 2

    ensure_working_dir_structure(config.working_dir, settings)
    config.thumbs_dir.mkdir(parents=True, exist_ok=True)

    try:
        sock = bind_first_free(host, ports)
    except NoFreePortError as exc:
        LOGGER.error("%s", exc)
        return 1

    port = sock.getsockname()[1]
    app = create_app(config)
    LOGGER.info("Serving %s (thumbnails from %s)", config.library_root, config.thumbs_dir)
    print(f"Server started on http://localhost:{port}", flush=True)
    print("Available addresses:", flush=True)
    for address in local_addresses(host):
        print(f"  {address}:{port}", flush=True)

    uvicorn_config = uvicorn.Config(
        app,
        log_level="info",
        access_log=False,
    )
    server = uvicorn.Server(uvicorn_config)
    try:
        server.run(sockets=[sock])
    finally:
        sock.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Run the MarketAPI server (FastAPI + Uvicorn).

Usage:
  python3 devtools/serve_marketapi.py --host 0.0.0.0 --port 20001
  python3 devtools/serve_marketapi.py --snapshot data/catalog_snapshot.json
"""

from __future__ import annotations

import argparse
import socket
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import uvicorn  # type: ignore  # noqa: E402

from apps.marketapi.app import create_app  # noqa: E402
from tataru.errors import CatalogError  # noqa: E402


def _detect_lan_ip() -> str:
    """Best-effort LAN IP discovery (no external network required)."""
    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        # doesn't need to be reachable; used to pick outbound interface
        s.connect(("8.8.8.8", 80))
        ip = s.getsockname()[0]
        s.close()
        return ip
    except OSError:
        return "127.0.0.1"


def main() -> None:
    parser = argparse.ArgumentParser(description="Tataru MarketAPI (FastAPI) server.")
    parser.add_argument("--settings", default="", help="Engine settings ini (default: conf/settings.ini)")
    parser.add_argument("--snapshot", default="", help="Serve a JSON catalog snapshot instead of the remote store")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--root-path", default="", help="Reverse proxy mount path, e.g. /market")
    parser.add_argument("--log-level", default="info", choices=["critical", "error", "warning", "info", "debug", "trace"])
    parser.add_argument("--cors-allow-origin", action="append", default=[], help="CORS allow origin (repeatable)")
    args = parser.parse_args()

    snapshot = Path(args.snapshot).expanduser().resolve() if args.snapshot else None
    if snapshot is not None and not snapshot.exists():
        print(f"❌ Snapshot not found: {snapshot}")
        sys.exit(2)

    try:
        app = create_app(
            settings_path=(Path(args.settings).expanduser().resolve() if args.settings else None),
            snapshot_path=snapshot,
            root_path=args.root_path,
            cors_allow_origins=(args.cors_allow_origin or None),
            gzip_minimum_size=800,
        )
    except CatalogError as e:
        print(f"❌ {e}")
        sys.exit(2)

    host = str(args.host)
    port = int(args.port)

    # Print useful addresses
    rp = (args.root_path or "").rstrip("/")
    if host == "0.0.0.0":
        print(f"Tataru MarketAPI: http://{_detect_lan_ip()}:{port}{rp}/docs")
        print(f"Open (local): http://127.0.0.1:{port}{rp}/docs")
    else:
        print(f"Tataru MarketAPI: http://{host}:{port}{rp}/docs")
    print(f"Catalog: {snapshot or 'remote store'}")

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=args.log_level,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )


if __name__ == "__main__":
    main()

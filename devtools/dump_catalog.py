#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Dump the remote catalog tables into a JSON snapshot.

The snapshot feeds the in-memory store (`--snapshot` of the CLI and of
serve_marketapi.py), so the engine can run offline.

Usage:
  python3 devtools/dump_catalog.py --out data/catalog_snapshot.json
  python3 devtools/dump_catalog.py --tables tw_items,tw_recipes --no-legacy
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from tataru import __version__  # noqa: E402
from tataru.config import EngineSettings  # noqa: E402
from tataru.errors import CatalogError  # noqa: E402
from tataru.gateway import Gateway  # noqa: E402
from tataru.legacy_names import LegacyNameSource  # noqa: E402
from tataru.store import PostgrestBackend  # noqa: E402


def _default_tables(settings: EngineSettings) -> List[str]:
    out: List[str] = []
    for key, val in asdict(settings.tables).items():
        if key.endswith("_column") or val in out:
            continue
        out.append(val)
    return out


async def dump(settings: EngineSettings, tables: List[str], with_legacy: bool) -> Dict[str, Any]:
    backend = PostgrestBackend(
        settings.store_url,
        settings.store_key,
        timeout=settings.timeout,
        max_retries=settings.max_retries,
        min_request_interval=settings.min_request_interval,
    )
    gateway = Gateway(backend, page_size=settings.page_size, max_in_list=settings.max_in_list)
    doc: Dict[str, Any] = {
        "meta": {
            "generated": datetime.now().isoformat(timespec="seconds"),
            "store": settings.store_url,
            "tataru": __version__,
        },
        "tables": {},
    }
    try:
        for name in tables:
            rows = (await gateway.full_scan(name)).unwrap([])
            doc["tables"][name] = rows
            print(f"  {name}: {len(rows)} rows")

        if with_legacy and settings.legacy_names_url:
            legacy = LegacyNameSource(settings.legacy_names_url)
            try:
                names = await legacy.names()
            finally:
                await legacy.close()
            doc["legacy_names"] = {str(k): v for k, v in sorted(names.items())}
            print(f"  legacy names: {len(names)}")
    finally:
        await backend.close()
    return doc


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(description="Dump remote catalog tables into a JSON snapshot")
    p.add_argument("--out", default="data/catalog_snapshot.json", help="Output JSON path")
    p.add_argument("--settings", default="", help="Engine settings ini (default: conf/settings.ini)")
    p.add_argument("--tables", default="", help="Comma-separated table list (default: every catalog table)")
    p.add_argument("--no-legacy", action="store_true", help="Skip the legacy simplified-name dataset")
    args = p.parse_args(argv)

    settings = EngineSettings.load(Path(args.settings).expanduser() if args.settings else None)
    if not settings.store_url:
        raise SystemExit("STORE URL missing. Set conf/settings.ini [STORE] URL or TATARU_STORE_URL.")

    tables = [t.strip() for t in args.tables.split(",") if t.strip()] or _default_tables(settings)
    print(f"Dumping {len(tables)} tables from {settings.store_url}")
    try:
        doc = asyncio.run(dump(settings, tables, with_legacy=not args.no_legacy))
    except CatalogError as e:
        print(f"❌ Dump failed: {e}")
        return 1

    out_path = (PROJECT_ROOT / args.out).resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(doc, ensure_ascii=False), encoding="utf-8")
    print(f"✅ Snapshot written: {out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

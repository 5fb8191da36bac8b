#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Unified CLI dispatcher for Tataru-Lab.

Usage:
  python -m apps.cli.main search 精金
  python -m apps.cli.main search "金 指環" --fuzzy
  python -m apps.cli.main item 5057
  python -m apps.cli.main tree 5057 --qty 3 --with-crystals
  python -m apps.cli.main related 5057
  python -m apps.cli.main --snapshot data/catalog_snapshot.json search 精金
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from apps.cli.cli_common import console, resolve_path, setup_logging  # noqa: E402
from apps.cli.commands import catalog  # noqa: E402
from tataru.config import EngineSettings  # noqa: E402
from tataru.engine import TataruEngine  # noqa: E402
from tataru.errors import CatalogError, StoreError  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tataru", description="Tataru-Lab 物品目錄查詢 / 製作樹展開")
    parser.add_argument("--settings", default="", help="settings.ini path (default: conf/settings.ini)")
    parser.add_argument("--snapshot", default="", help="Run offline against a JSON catalog snapshot")
    parser.add_argument("--log-level", default="warning", choices=["critical", "error", "warning", "info", "debug"])

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("search", help="搜尋物品名稱")
    p.add_argument("text", nargs="+")
    p.add_argument("--fuzzy", action="store_true", help="只做模糊比對 (全表掃描)")

    p = sub.add_parser("item", help="查看物品詳情")
    p.add_argument("item_id", type=int)

    p = sub.add_parser("tree", help="展開製作樹")
    p.add_argument("item_id", type=int)
    p.add_argument("--qty", type=int, default=1)
    p.add_argument("--with-crystals", action="store_true", help="保留水晶類素材")

    p = sub.add_parser("related", help="反查：哪些配方使用該物品")
    p.add_argument("item_id", type=int)
    return parser


async def _dispatch(engine: TataruEngine, args: argparse.Namespace) -> int:
    if args.command == "search":
        return await catalog.cmd_search(engine, " ".join(args.text), fuzzy=args.fuzzy)
    if args.command == "item":
        return await catalog.cmd_item(engine, args.item_id)
    if args.command == "tree":
        return await catalog.cmd_tree(engine, args.item_id, args.qty, with_crystals=args.with_crystals)
    if args.command == "related":
        return await catalog.cmd_related(engine, args.item_id)
    return 2


async def _run(args: argparse.Namespace) -> int:
    settings = EngineSettings.load(resolve_path(args.settings))
    engine = TataruEngine.from_settings(settings, snapshot=resolve_path(args.snapshot))
    async with engine:
        return await _dispatch(engine, args)


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    try:
        code = asyncio.run(_run(args))
    except ValueError as e:
        console.print(f"[red]參數錯誤: {e}[/red]")
        code = 2
    except StoreError as e:
        console.print(f"[red]資料庫請求失敗: {e}[/red]")
        code = 3
    except CatalogError as e:
        console.print(f"[red]引擎初始化失敗: {e}[/red]")
        code = 1
    except OSError as e:
        console.print(f"[red]無法讀取檔案: {e}[/red]")
        code = 1
    except KeyboardInterrupt:
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Shared helpers for CLI tools."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

console = Console()


def setup_logging(level: str = "warning") -> None:
    """Route engine logs through rich (the library itself never configures handlers)."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=False, show_path=False)],
    )


def resolve_path(raw: Optional[str]) -> Optional[Path]:
    if not raw:
        return None
    p = Path(raw).expanduser()
    return p if p.is_absolute() else (Path.cwd() / p)


def job_label(job: Optional[int]) -> str:
    return JOB_NAMES.get(int(job), f"職業 {job}") if job is not None else "-"


# recipe table `job` column (ClassJob ids of the crafting classes)
JOB_NAMES = {
    8: "CRP 刻木匠",
    9: "BSM 鍛鐵匠",
    10: "ARM 鑄甲匠",
    11: "GSM 雕金匠",
    12: "LTW 製革匠",
    13: "WVR 裁衣匠",
    14: "ALC 鍊金術士",
    15: "CUL 烹調師",
}

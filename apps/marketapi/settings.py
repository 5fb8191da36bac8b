# -*- coding: utf-8 -*-
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class MarketApiSettings:
    """Runtime settings for the MarketAPI server.

    Notes
    - settings_path points to the engine ini (default: conf/settings.ini).
    - snapshot_path switches the engine to the in-memory store (offline runs).
    - root_path is for reverse-proxy mount (e.g. '/market')
    """

    settings_path: Optional[Path] = None
    snapshot_path: Optional[Path] = None
    root_path: str = ""
    cors_allow_origins: Optional[List[str]] = None
    gzip_minimum_size: int = 800

    @staticmethod
    def normalize_root_path(root_path: str) -> str:
        rp = (root_path or "").strip()
        if not rp:
            return ""
        if not rp.startswith("/"):
            rp = "/" + rp
        rp = rp.rstrip("/")
        return rp

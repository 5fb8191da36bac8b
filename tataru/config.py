# -*- coding: utf-8 -*-
"""Engine settings: conf/settings.ini + environment overrides.

conf/settings.ini (all keys optional)

    [STORE]
    URL = https://<project>.supabase.co
    KEY = <anon key>
    TIMEOUT = 20
    MAX_RETRIES = 3
    MIN_REQUEST_INTERVAL = 0

    [ENGINE]
    PAGE_SIZE = 1000
    MAX_IN_LIST = 1000
    MAX_DEPTH = 10
    LEGACY_NAMES_URL = https://...

Environment: TATARU_STORE_URL, TATARU_STORE_KEY, TATARU_LEGACY_NAMES_URL,
TATARU_SETTINGS (alternate ini path).
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_SETTINGS_PATH = PROJECT_ROOT / "conf" / "settings.ini"

LEGACY_NAMES_URL = "https://raw.githubusercontent.com/thewakingsands/ffxiv-datamining-cn/master/Item.csv"


@dataclass(frozen=True)
class TableNames:
    items: str = "tw_items"
    item_name_column: str = "tw"
    alt_items: str = "cn_items"
    alt_name_column: str = "zh"
    descriptions: str = "tw_item_descriptions"
    description_column: str = "tw"
    market: str = "market_items"
    ilvls: str = "ilvls"
    recipes: str = "tw_recipes"


@dataclass(frozen=True)
class EngineSettings:
    """Runtime settings for the catalog engine.

    Notes
    - page_size is the store's row cap per request; scans continue while a page is full.
    - max_in_list bounds one "value in (...)" predicate.
    - max_depth bounds crafting-tree expansion (root is depth 0).
    """

    store_url: str = ""
    store_key: str = ""
    timeout: float = 20.0
    max_retries: int = 3
    min_request_interval: float = 0.0
    page_size: int = 1000
    max_in_list: int = 1000
    max_depth: int = 10
    legacy_names_url: str = LEGACY_NAMES_URL
    tables: TableNames = TableNames()

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "EngineSettings":
        env_path = os.environ.get("TATARU_SETTINGS", "").strip()
        ini_path = Path(path) if path else (Path(env_path).expanduser() if env_path else DEFAULT_SETTINGS_PATH)

        s = cls()
        if ini_path.exists():
            cp = configparser.ConfigParser()
            cp.read(ini_path, encoding="utf-8")
            s = cls._from_parser(cp, s)

        overrides = {
            "store_url": os.environ.get("TATARU_STORE_URL", "").strip(),
            "store_key": os.environ.get("TATARU_STORE_KEY", "").strip(),
            "legacy_names_url": os.environ.get("TATARU_LEGACY_NAMES_URL", "").strip(),
        }
        return replace(s, **{k: v for k, v in overrides.items() if v})

    @classmethod
    def _from_parser(cls, cp: configparser.ConfigParser, base: "EngineSettings") -> "EngineSettings":
        def get(section: str, key: str) -> Optional[str]:
            val = cp.get(section, key, fallback=None)
            if val is None:
                return None
            val = val.strip()
            return os.path.expanduser(val) if val.startswith("~") else val

        out = {}
        for field_name, section, key, conv in (
            ("store_url", "STORE", "URL", str),
            ("store_key", "STORE", "KEY", str),
            ("timeout", "STORE", "TIMEOUT", float),
            ("max_retries", "STORE", "MAX_RETRIES", int),
            ("min_request_interval", "STORE", "MIN_REQUEST_INTERVAL", float),
            ("page_size", "ENGINE", "PAGE_SIZE", int),
            ("max_in_list", "ENGINE", "MAX_IN_LIST", int),
            ("max_depth", "ENGINE", "MAX_DEPTH", int),
            ("legacy_names_url", "ENGINE", "LEGACY_NAMES_URL", str),
        ):
            raw = get(section, key)
            if raw:
                try:
                    out[field_name] = conv(raw)
                except ValueError as e:
                    raise ValueError(f"invalid [{section}] {key} = {raw!r}") from e
        return replace(base, **out)

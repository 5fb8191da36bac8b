# -*- coding: utf-8 -*-
"""TataruEngine (core)

UI-agnostic facade used by the CLI, the HTTP API and devtools.

Responsibilities
- Own one `Gateway` (cache + in-flight registry) for the engine's lifetime.
- Wire the search cascade, crafting-tree builder and reverse index to it.
- Validate caller arguments (`ValueError` for non-positive ids/quantities).

Design notes
- `Cancelled` and `StoreError` propagate to the caller; "not found" is None.
- `clear_cache()` is the only invalidation; nothing expires on its own.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from .catalog import Catalog
from .config import EngineSettings, TableNames
from .crafting import MAX_DEPTH, RecipeTreeBuilder
from .errors import CatalogError
from .gateway import Gateway
from .legacy_names import LegacyNameSource
from .models import Item, MaterialNode, SearchOutcome
from .related import ReverseIngredientIndex
from .result import CancelToken, ensure_token
from .search import SearchResolver
from .store import CatalogBackend, MemoryBackend, PostgrestBackend

logger = logging.getLogger(__name__)


def _positive(name: str, value: int) -> int:
    try:
        iv = int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name} must be an integer, got {value!r}") from e
    if iv <= 0:
        raise ValueError(f"{name} must be positive, got {iv}")
    return iv


class TataruEngine:
    """Main entry used by CLI / devtools / Web.

    Parameters
    - backend: store implementation (PostgREST or in-memory).
    - legacy: simplified-name dataset for the last search stage (optional).
    - tables: table/column names of the catalog schema.
    """

    def __init__(
        self,
        backend: CatalogBackend,
        *,
        legacy: Optional[LegacyNameSource] = None,
        tables: Optional[TableNames] = None,
        page_size: int = 1000,
        max_in_list: int = 1000,
        max_depth: int = MAX_DEPTH,
    ):
        self.backend = backend
        self.legacy = legacy
        self.gateway = Gateway(backend, page_size=page_size, max_in_list=max_in_list)
        self.catalog = Catalog(self.gateway, tables)
        self.resolver = SearchResolver(self.catalog, legacy)
        self.trees = RecipeTreeBuilder(self.catalog, max_depth=max_depth)
        self.related = ReverseIngredientIndex(self.catalog)

    @classmethod
    def from_settings(cls, settings: Optional[EngineSettings] = None, snapshot: Optional[Path] = None) -> "TataruEngine":
        """Build an engine from settings, or from a JSON snapshot when given."""
        s = settings or EngineSettings.load()
        if snapshot:
            backend: CatalogBackend = MemoryBackend.from_json(Path(snapshot), max_in_list=s.max_in_list)
            names = backend.legacy_names
            legacy = LegacyNameSource("", names=names) if names is not None else None
            logger.info("using catalog snapshot %s", snapshot)
        else:
            if not s.store_url:
                raise CatalogError("no store configured (set [STORE] URL or TATARU_STORE_URL)")
            backend = PostgrestBackend(
                s.store_url,
                s.store_key,
                timeout=s.timeout,
                max_retries=s.max_retries,
                min_request_interval=s.min_request_interval,
            )
            legacy = LegacyNameSource(s.legacy_names_url) if s.legacy_names_url else None
        return cls(
            backend,
            legacy=legacy,
            tables=s.tables,
            page_size=s.page_size,
            max_in_list=s.max_in_list,
            max_depth=s.max_depth,
        )

    # ----------------- operations -----------------

    async def search_items(
        self,
        text: str,
        fuzzy_only: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> SearchOutcome:
        return await self.resolver.resolve(text, fuzzy_only=fuzzy_only, cancel=cancel)

    async def get_item_by_id(self, item_id: int, cancel: Optional[CancelToken] = None) -> Optional[Item]:
        """Hydrated item (level, description, tradeable) or None."""
        iid = _positive("item_id", item_id)
        token = ensure_token(cancel)
        item = (await self.catalog.item(iid, cancel=token)).unwrap()
        if item is None:
            return None
        (await self.catalog.hydrate([item], cancel=token)).unwrap()
        return item

    async def get_items(
        self,
        item_ids: List[int],
        hydrate: bool = True,
        cancel: Optional[CancelToken] = None,
    ) -> List[Item]:
        """Items for a batch of ids (unknown ids are skipped), ascending id."""
        token = ensure_token(cancel)
        found = (await self.catalog.items_by_ids(item_ids, cancel=token)).unwrap({})
        items = [found[k] for k in sorted(found)]
        if hydrate:
            (await self.catalog.hydrate(items, cancel=token)).unwrap()
        return items

    async def build_crafting_tree(
        self,
        item_id: int,
        quantity: int = 1,
        exclude_crystals: bool = True,
        cancel: Optional[CancelToken] = None,
    ) -> MaterialNode:
        iid = _positive("item_id", item_id)
        qty = _positive("quantity", quantity)
        return await self.trees.build(iid, qty, exclude_crystals=exclude_crystals, cancel=cancel)

    async def find_related_items(self, item_id: int, cancel: Optional[CancelToken] = None) -> List[int]:
        iid = _positive("item_id", item_id)
        return await self.related.related_items(iid, cancel=cancel)

    # ----------------- lifetime -----------------

    def clear_cache(self) -> None:
        self.gateway.clear()
        if self.legacy is not None:
            self.legacy.clear()
        self.related.containment = True

    async def close(self) -> None:
        await self.backend.close()
        if self.legacy is not None:
            await self.legacy.close()

    async def __aenter__(self) -> "TataruEngine":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

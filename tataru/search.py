# -*- coding: utf-8 -*-
"""Search cascade: raw text -> tradeable catalog items.

Stages (each runs only when every earlier stage came back empty)
1. exact substring search, same script (targeted; one full-scan retry on
   store failure)
2. fuzzy AND match over a full scan, only for queries with spaces
3. stages 1 + 2 again on the script-converted query
4. exact lookup in the alternate-script name table (legacy dataset when the
   table has nothing), hits mapped back to canonical items by id

`Cancelled` is raised as soon as any stage sees a cancelled result; nothing
after it runs. Store failures never escape: the stage just comes back empty.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .catalog import Catalog
from .errors import Cancelled, StoreError
from .fuzzy import has_spaces, matches_all, split_words
from .hanzi import alternate_query, canonical_query, contains_han
from .legacy_names import LegacyNameSource
from .models import Item, SearchOutcome
from .result import CancelToken, Result, ensure_token

logger = logging.getLogger(__name__)


def _check(res: Result) -> Result:
    if res.is_cancelled:
        raise Cancelled()
    return res


def rank(items: Dict[int, Item]) -> List[Item]:
    """Tradeable first, then ascending id."""
    return sorted(items.values(), key=lambda it: (not it.tradeable, it.id))


class SearchResolver:
    def __init__(self, catalog: Catalog, legacy: Optional[LegacyNameSource] = None):
        self.catalog = catalog
        self.legacy = legacy

    async def resolve(self, text: str, fuzzy_only: bool = False, cancel: Optional[CancelToken] = None) -> SearchOutcome:
        token = ensure_token(cancel)
        query = (text or "").strip()
        if not query:
            return SearchOutcome()
        token.raise_if_cancelled()

        if fuzzy_only:
            # an unspaced token still only matches exactly
            results = await self._scan_match(query, has_spaces(query), token)
            return SearchOutcome(results=results, original_text=query)

        outcome = SearchOutcome(original_text=query)
        outcome.results = await self._same_script(query, token)
        if outcome.results:
            return outcome

        converted = canonical_query(query)
        if converted != query and contains_han(converted):
            logger.debug("search %r: retrying as %r", query, converted)
            outcome.converted = True
            outcome.converted_text = converted
            outcome.results = await self._same_script(converted, token)
            if outcome.results:
                return outcome

        alternate = alternate_query(query)
        if contains_han(alternate):
            ids = await self._alternate_ids(alternate, token)
            if ids:
                outcome.searched_simplified = True
                if not outcome.converted:
                    outcome.converted = True
                    outcome.converted_text = alternate
                outcome.results = await self._items_for(ids, token)

        if not outcome.results:
            logger.debug("search %r: no results", query)
        return outcome

    # ----------------- stages -----------------

    async def _same_script(self, query: str, token: CancelToken) -> List[Item]:
        results = await self._exact(query, token)
        if results or not has_spaces(query):
            return results
        return await self._scan_match(query, True, token)

    async def _exact(self, query: str, token: CancelToken) -> List[Item]:
        words = split_words(query)
        res = _check(await self.catalog.search_names(query, fuzzy=False, cancel=token))
        if res.is_ok:
            candidates = {iid: it for iid, it in res.data.items() if matches_all(words, it.name)}
            return await self._finish(candidates, token)

        logger.warning("exact search for %r failed, falling back to a full scan", query)
        return await self._scan_match(query, False, token)

    async def _scan_match(self, query: str, fuzzy: bool, token: CancelToken) -> List[Item]:
        words = split_words(query)
        res = _check(await self.catalog.all_items(cancel=token))
        if not res.is_ok:
            logger.warning("full scan for %r failed: %s", query, res.error)
            return []
        candidates = {iid: it for iid, it in res.data.items() if matches_all(words, it.name, fuzzy=fuzzy)}
        return await self._finish(candidates, token)

    async def _alternate_ids(self, alternate: str, token: CancelToken) -> List[int]:
        res = _check(await self.catalog.search_alt_names(alternate, cancel=token))
        if res.is_ok and res.data:
            return sorted(res.data.keys())
        if res.is_store_error:
            logger.warning("alternate-name table failed for %r: %s", alternate, res.error)

        if self.legacy is None:
            return []
        try:
            return await self.legacy.search(alternate, cancel=token)
        except StoreError as e:
            logger.warning("legacy name dataset unavailable: %s", e)
            return []

    async def _items_for(self, ids: List[int], token: CancelToken) -> List[Item]:
        res = _check(await self.catalog.items_by_ids(ids, cancel=token))
        if not res.is_ok:
            logger.warning("mapping alternate-name hits failed: %s", res.error)
            return []
        return await self._finish(res.data, token)

    async def _finish(self, candidates: Dict[int, Item], token: CancelToken) -> List[Item]:
        if not candidates:
            return []
        _check(await self.catalog.apply_tradeability(candidates, cancel=token))
        return rank({iid: it for iid, it in candidates.items() if it.tradeable})

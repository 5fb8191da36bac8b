# -*- coding: utf-8 -*-
"""Remote store backends (query model + implementations)."""

from tataru.store.base import CatalogBackend, Filter, Query
from tataru.store.memory import MemoryBackend
from tataru.store.postgrest import PostgrestBackend

__all__ = [
    "CatalogBackend",
    "Filter",
    "MemoryBackend",
    "PostgrestBackend",
    "Query",
]

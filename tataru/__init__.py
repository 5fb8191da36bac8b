# -*- coding: utf-8 -*-
"""Tataru catalog engine.

- Search: 4-stage cascade (exact, fuzzy, script-converted, simplified-name lookup)
- Crafting: bounded recipe-tree expansion with crystal handling
- Store: cache-coalescing gateway over Supabase/PostgREST (or a JSON snapshot)
"""

__all__ = ["__version__"]
__version__ = "0.1.0"

# -*- coding: utf-8 -*-
"""MarketAPI (catalog JSON API) service package.

- Backend: FastAPI (ASGI)
- Data: remote Supabase/PostgREST catalog, or a JSON snapshot (offline)
- Engine: tataru.engine.TataruEngine (search / item / crafting tree / related)
"""

__all__ = ["__version__"]
__version__ = "0.1.0"

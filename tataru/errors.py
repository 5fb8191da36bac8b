# -*- coding: utf-8 -*-
"""Error taxonomy shared by the gateway, resolver and tree builder.

Notes
- Kinds are discriminated by class, never by message text.
- `Cancelled` is the only error allowed to unwind through every stage.
- "not found" is not an error: it is a normal empty/None result.
"""

from __future__ import annotations

from typing import Optional


class CatalogError(RuntimeError):
    pass


class Cancelled(CatalogError):
    """Caller-initiated abort observed through a `CancelToken`."""

    def __init__(self, message: str = "request cancelled"):
        super().__init__(message)


class StoreError(CatalogError):
    """Remote store failure (bad response, unusable payload)."""

    def __init__(self, message: str, *, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class TransientStoreError(StoreError):
    """Network failure, timeout, rate limit or 5xx."""


class PredicateUnsupported(StoreError):
    """The store cannot evaluate a filter operator (e.g. JSON containment)."""

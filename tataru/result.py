# -*- coding: utf-8 -*-
"""Tagged outcomes and cancellation tokens.

Gateway operations return a `Result` instead of raising, so callers branch on
`result.kind` (OK / NOT_FOUND / STORE_ERROR / CANCELLED). `Result.unwrap()`
turns a failed outcome back into the matching exception when a caller wants
to propagate it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .errors import Cancelled, StoreError

OK = "ok"
NOT_FOUND = "not_found"
STORE_ERROR = "store_error"
CANCELLED = "cancelled"


@dataclass(frozen=True)
class Result:
    kind: str
    data: Any = None
    error: Optional[StoreError] = None

    @classmethod
    def ok(cls, data: Any) -> "Result":
        return cls(OK, data)

    @classmethod
    def not_found(cls) -> "Result":
        return cls(NOT_FOUND)

    @classmethod
    def store_error(cls, error: StoreError) -> "Result":
        return cls(STORE_ERROR, error=error)

    @classmethod
    def cancelled(cls) -> "Result":
        return cls(CANCELLED)

    @property
    def is_ok(self) -> bool:
        return self.kind == OK

    @property
    def is_not_found(self) -> bool:
        return self.kind == NOT_FOUND

    @property
    def is_store_error(self) -> bool:
        return self.kind == STORE_ERROR

    @property
    def is_cancelled(self) -> bool:
        return self.kind == CANCELLED

    @property
    def cacheable(self) -> bool:
        return self.kind in (OK, NOT_FOUND)

    def unwrap(self, default: Any = None) -> Any:
        """Return data (or `default` for NOT_FOUND); raise for failures."""
        if self.kind == OK:
            return self.data
        if self.kind == NOT_FOUND:
            return default
        if self.kind == CANCELLED:
            raise Cancelled()
        raise self.error or StoreError("store request failed")


class CancelToken:
    """Cooperative cancellation flag, checked around every remote call."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise Cancelled()


def ensure_token(cancel: Optional[CancelToken]) -> CancelToken:
    return cancel if cancel is not None else CancelToken()

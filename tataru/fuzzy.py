# -*- coding: utf-8 -*-
"""Name matching primitives.

- `score()` is the order-preserving fuzzy matcher: 1.0 or 0.0, no partial credit.
- `split_words()` applies the query word rule: a query without spaces is one
  name-order-significant token; otherwise whitespace-delimited words (AND).
"""

from __future__ import annotations

import re
from typing import Iterable, List

_QUOTES_RE = re.compile(r"^[\"']+|[\"']+$")


def clean_name(raw: object) -> str:
    """Strip surrounding quotes and whitespace from a catalog name."""
    if raw is None:
        return ""
    s = str(raw).strip()
    return _QUOTES_RE.sub("", s).strip()


def has_spaces(text: str) -> bool:
    return " " in (text or "").strip()


def split_words(text: str) -> List[str]:
    q = (text or "").strip()
    if not q:
        return []
    if not has_spaces(q):
        return [q]
    return [w for w in q.split() if w]


def score(pattern: str, candidate: str) -> float:
    """Order-preserving match score of `pattern` against `candidate`.

    1.0 when the candidate contains the pattern (case-insensitive), or when
    every pattern character is found walking forward through the candidate.
    0.0 as soon as one character cannot be found after the cursor.
    """
    p = (pattern or "").lower()
    c = (candidate or "").lower()
    if p in c:
        return 1.0
    cursor = 0
    for ch in p:
        idx = c.find(ch, cursor)
        if idx < 0:
            return 0.0
        cursor = idx + 1
    return 1.0


def contains_all(words: Iterable[str], name: str) -> bool:
    """Exact mode: every word is a case-insensitive substring of name."""
    nl = (name or "").lower()
    return all(w.lower() in nl for w in words)


def matches_all(words: Iterable[str], name: str, fuzzy: bool = False) -> bool:
    words = list(words)
    if not words:
        return False
    if fuzzy:
        return all(score(w, name) > 0 for w in words)
    return contains_all(words, name)


def like_pattern(word: str, fuzzy: bool = False) -> str:
    """SQL LIKE pattern for one word.

    exact: %word%    fuzzy: %c1%c2%...%cn%
    LIKE metacharacters in the word are escaped with a backslash. PostgREST
    reads `*` in ilike values as `%`, so a `*` is sent as `_` (any one
    character); callers re-check such words against the returned names.
    """
    def esc(s: str) -> str:
        return s.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_").replace("*", "_")

    if fuzzy:
        return "%" + "%".join(esc(ch) for ch in word) + "%"
    return "%" + esc(word) + "%"

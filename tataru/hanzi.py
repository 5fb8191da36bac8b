# -*- coding: utf-8 -*-
"""Traditional <-> Simplified Chinese normalization (OpenCC).

The catalog's canonical script is Traditional; Simplified is the alternate
script. Conversions never raise: on any converter failure the input text is
returned unchanged.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Optional

from opencc import OpenCC

logger = logging.getLogger(__name__)

_converters: Dict[str, Optional[OpenCC]] = {}

# CJK Unified Ideographs, Extension A, Compatibility Ideographs
_HAN_RE = re.compile("[\u4e00-\u9fff\u3400-\u4dbf\uf900-\ufaff]")


def _get_converter(preset: str) -> Optional[OpenCC]:
    """Build a converter once per preset: 's2t' | 't2s'."""
    if preset not in _converters:
        try:
            _converters[preset] = OpenCC(preset)
        except Exception as e:
            logger.debug("opencc preset %s unavailable: %s", preset, e)
            _converters[preset] = None
    return _converters[preset]


def _convert(preset: str, text: str) -> str:
    if not text:
        return text
    cc = _get_converter(preset)
    if cc is None:
        return text
    try:
        out = cc.convert(text)
    except Exception as e:
        logger.debug("opencc %s failed for %r: %s", preset, text, e)
        return text
    return out if isinstance(out, str) else text


def to_simplified(text: str) -> str:
    """Traditional (or mixed) -> Simplified."""
    return _convert("t2s", text)


def to_traditional(text: str) -> str:
    """Simplified (or mixed) -> Traditional, the catalog's canonical script."""
    return _convert("s2t", text)


def is_traditional(text: str) -> bool:
    """True iff converting to Simplified changes the text."""
    if not text:
        return False
    return to_simplified(text) != text


def contains_han(text: str) -> bool:
    if not text:
        return False
    return _HAN_RE.search(text) is not None


def canonical_query(text: str) -> str:
    """Rewrite a query in the catalog's script.

    Traditional input is normalized through a Simplified round trip so that
    variant characters collapse to the converter's preferred form.
    """
    if is_traditional(text):
        return to_traditional(to_simplified(text))
    return to_traditional(text)


def alternate_query(text: str) -> str:
    """Rewrite a query in the alternate (Simplified) script."""
    return to_simplified(text) if is_traditional(text) else text

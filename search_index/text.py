"""Whitespace normalisation shared by every extractor."""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")


def clean_text(value: object) -> str:
    """Collapse non-breaking spaces and whitespace runs to single spaces, then trim.

    ``None`` and other falsy values normalise to the empty string.
    """
    text = str(value or "").replace("\u00a0", " ")
    return _WHITESPACE_RE.sub(" ", text).strip()

"""Claim entry filters.

Filters run on raw entries, before formatting, so patterns are written
against the text the identity provider sends. Empty entries never pass.

Two strategies exist and a mapper uses exactly one of them:

- RegexEntryFilter: include/exclude regex sets with full-string matching.
- SubstringEntryFilter: keep entries containing a fixed text.
"""

import re
from collections.abc import Iterable


class RegexEntryFilter:
    """Include/exclude filter with full-match semantics.

    An entry is dropped if it fully matches any exclude pattern. Otherwise it
    is kept if it fully matches any include pattern, or if there are no
    include patterns at all.
    """

    def __init__(self, include: Iterable[str] = (), exclude: Iterable[str] = ()) -> None:
        self.include = [re.compile(p) for p in include if p]
        self.exclude = [re.compile(p) for p in exclude if p]

    def matches(self, entry: str) -> bool:
        if not entry:
            return False
        if any(p.fullmatch(entry) for p in self.exclude):
            return False
        if not self.include:
            return True
        return any(p.fullmatch(entry) for p in self.include)

    def filter(self, entries: Iterable[str]) -> list[str]:
        return [e for e in entries if self.matches(e)]


class SubstringEntryFilter:
    """Keeps entries that contain a fixed text; an empty text keeps everything."""

    def __init__(self, contains: str = "") -> None:
        self.contains = contains or ""

    def matches(self, entry: str) -> bool:
        return bool(entry) and self.contains in entry

    def filter(self, entries: Iterable[str]) -> list[str]:
        return [e for e in entries if self.matches(e)]

from __future__ import annotations

"""Deny-list filter for translation input."""

import re
from typing import Iterable


class ContentFilter:
    def __init__(self, patterns: Iterable[str]) -> None:
        self._patterns = [re.compile(p, re.IGNORECASE) for p in patterns]

    def check(self, text: str) -> str | None:
        """Return the first pattern matching `text`, or None if allowed."""

        for pattern in self._patterns:
            if pattern.search(text):
                return pattern.pattern
        return None

    def is_allowed(self, text: str) -> bool:
        return self.check(text) is None

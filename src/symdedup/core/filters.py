"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/filters.py
Regex-based inclusion/exclusion predicate applied to absolute path strings.
"""

import os
import re
from typing import List, Optional, Pattern, Sequence

from symdedup.core.errors import ConfigurationError


class PathFilter:
    """
    Decides whether a path participates in deduplication.

    Inclusion patterns are searched case-insensitively; exclusion patterns are
    case-sensitive. Both use re.search, so a pattern may match anywhere in the path.
    """

    def __init__(self, inclusions: Optional[Sequence[str]] = None, exclusions: Optional[Sequence[str]] = None):
        self.inclusions: List[Pattern] = self._compile(inclusions, re.IGNORECASE)
        self.exclusions: List[Pattern] = self._compile(exclusions, 0)

    @staticmethod
    def _compile(patterns: Optional[Sequence[str]], flags: int) -> List[Pattern]:
        compiled = []
        for pattern in patterns or []:
            try:
                compiled.append(re.compile(pattern, flags))
            except re.error as e:
                raise ConfigurationError(f"Invalid pattern '{pattern}': {e}") from e
        return compiled

    def is_included(self, path: str) -> bool:
        if not self.inclusions:
            return True
        absolute_path = os.path.abspath(path)
        return any(pattern.search(absolute_path) for pattern in self.inclusions)

    def is_excluded(self, path: str) -> bool:
        if not self.exclusions:
            return False
        absolute_path = os.path.abspath(path)
        return any(pattern.search(absolute_path) for pattern in self.exclusions)

    def accepts(self, path: str) -> bool:
        """True if the path is included and not excluded."""
        return self.is_included(path) and not self.is_excluded(path)

"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/grouper.py
Groups FileRecords by strong digest and validates each group with the fast digest.
"""

import logging
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional

from symdedup.core.interfaces import RecordGrouper
from symdedup.core.models import FileRecord, DuplicateGroup

logger = logging.getLogger(__name__)


class RecordGrouperImpl(RecordGrouper):
    """
    Builds duplicate groups from metadata records.

    Two files are duplicates only if both digests agree; a shared strong digest with
    differing fast digests is treated as a hash collision and never processed.
    """

    def group_by_strong_digest(self, records: Iterable[FileRecord]) -> Dict[str, List[FileRecord]]:
        groups = defaultdict(list)
        for record in records:
            groups[record.digest_b].append(record)
        return dict(groups)

    def is_ready_for_processing(self, records: List[FileRecord], warn: bool = True) -> bool:
        # the odds of both digests colliding at once are astronomically low
        if len({r.digest_a for r in records}) > 1:
            if warn:
                names = ", ".join(dict.fromkeys(r.name for r in records))
                logger.warning(f"Hash collision detected for: {names}")
            return False
        return len(records) > 1

    def find_duplicate_groups(
        self,
        records: Iterable[FileRecord],
        warn: bool = True,
        on_collision: Optional[Callable[[List[FileRecord]], None]] = None
    ) -> List[DuplicateGroup]:
        result = []
        for digest, members in self.group_by_strong_digest(records).items():
            if self.is_ready_for_processing(members, warn=warn):
                result.append(DuplicateGroup(digest=digest, records=members))
            elif len(members) > 1 and on_collision:
                on_collision(members)
        return result

    @staticmethod
    def redundant_bytes(groups: Iterable[DuplicateGroup]) -> int:
        """Sum over groups of every member's size except the prominent copy's."""
        return sum(group.redundant_size for group in groups)

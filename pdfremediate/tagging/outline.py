"""
Bookmark (outline) list built from heading candidates.

Entries form a single-level doubly-linked list under one root. The list only
ever grows at its tail: there is no API to remove or reorder entries, and
every append checks that the recorded tail really is the end of the list.
"""

import logging
import re
from typing import Iterator, List, Optional

from pydantic import BaseModel

from ..errors import StructureError
from .nodes import SemanticNode

HEADING_PATTERN = re.compile(r"^H([1-6])$")


class OutlineEntry(BaseModel):
    """One bookmark, pointing at a page with a fit-page destination."""
    id: int
    title: str
    page_index: int
    prev: Optional[int] = None
    next: Optional[int] = None
    parent: Optional[int] = None


class OutlineRoot(BaseModel):
    id: int = -1
    first: Optional[int] = None
    last: Optional[int] = None
    count: int = 0


class OutlineBuilder:
    """Append-only outline list with O(1) insertion at the tail."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.root: Optional[OutlineRoot] = None
        self._entries: List[OutlineEntry] = []
        self.logger = logger or logging.getLogger(__name__)

    def _ensure_root(self) -> OutlineRoot:
        if self.root is None:
            self.root = OutlineRoot(count=0)
        return self.root

    def add_outline(self, title: str, page_index: int) -> OutlineEntry:
        """
        Append a bookmark for page_index.

        Args:
            title: Bookmark title
            page_index: 0-indexed destination page

        Returns:
            The new OutlineEntry
        """
        root = self._ensure_root()
        entry = OutlineEntry(id=len(self._entries), title=title, page_index=page_index, parent=root.id)

        if root.first is None:
            root.first = entry.id
            root.last = entry.id
        else:
            last = self._entries[root.last]
            if last.next is not None:
                raise StructureError(f"Outline tail {last.id} is not the last entry")
            last.next = entry.id
            entry.prev = last.id
            root.last = entry.id

        self._entries.append(entry)
        root.count += 1
        self.logger.debug(f"Added bookmark '{title}' -> page {page_index + 1}")
        return entry

    def get(self, entry_id: int) -> OutlineEntry:
        return self._entries[entry_id]

    def entries(self) -> Iterator[OutlineEntry]:
        """Walk the list from first to last through the next links."""
        current = self.root.first if self.root else None
        while current is not None:
            entry = self._entries[current]
            yield entry
            current = entry.next

    @property
    def count(self) -> int:
        return self.root.count if self.root else 0

    def __len__(self):
        return self.count


def collect_outline_candidates(nodes: List[SemanticNode], max_level: int = 2, max_length: int = 60) -> List[str]:
    """
    Titles of heading nodes up to max_level, in document order.

    Args:
        nodes: Canonical semantic nodes of one page
        max_level: Deepest heading level to include (H1 = 1)
        max_length: Titles are truncated to this many characters

    Returns:
        List of bookmark titles
    """
    out = []
    for node in nodes:
        match = HEADING_PATTERN.match(node.tag)
        if match and int(match.group(1)) <= max_level and node.has_text():
            out.append(node.text.strip()[:max_length])
        if node.children:
            out.extend(collect_outline_candidates(node.children, max_level, max_length))
    return out

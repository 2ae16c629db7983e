"""Per-page reverse index from MCID to the structure element that owns it."""

from typing import Dict, Iterator, List, Sequence, Tuple

from ..errors import StructureError


class ParentTreeIndex:
    """Collects one dense element-id array per page, keyed by page index."""

    def __init__(self):
        self._pages: Dict[int, List[int]] = {}

    def add_page(self, page_index: int, element_ids: Sequence[int], item_count: int) -> None:
        """
        Record a page's MCID array.

        Raises:
            StructureError: if the page is already indexed, the array has holes,
                or its length differs from the page's content-item count
        """
        if page_index in self._pages:
            raise StructureError(f"Page {page_index} already has a parent-tree entry")
        if len(element_ids) != item_count:
            raise StructureError(
                f"Page {page_index}: {len(element_ids)} parent refs for {item_count} content items"
            )
        if any(elem_id is None for elem_id in element_ids):
            raise StructureError(f"Page {page_index}: parent-tree array has unassigned MCIDs")
        self._pages[page_index] = list(element_ids)

    def get(self, page_index: int) -> List[int]:
        return list(self._pages.get(page_index, []))

    def entries(self) -> Iterator[Tuple[int, List[int]]]:
        for page_index in sorted(self._pages):
            yield page_index, list(self._pages[page_index])

    @property
    def next_key(self) -> int:
        return max(self._pages) + 1 if self._pages else 0

    def __len__(self):
        return len(self._pages)

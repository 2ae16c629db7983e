"""
Structure tree construction for the tagging pipeline.

Structure elements live in an in-memory arena (StructureTree) and reference
each other by integer id. Only PdfStructureWriter turns them into PDF
objects, so no half-built parent ever reaches the document store.

The builder walks canonical SemanticNode trees depth-first. Content
identifiers (MCIDs) come from a single per-page counter held in PageContext;
they index the page's parent-tree array directly, so they are unique and
contiguous from 0.
"""

import logging
import re
from typing import Iterator, List, Optional, Set, Tuple

from pydantic import BaseModel, Field

from ..errors import StructureError
from .nodes import SemanticNode

DOCUMENT_ROLE = "Document"
PAGE_ROLE = "Sect"
SPAN_ROLE = "Span"
LINK_ROLE = "Link"
HEADER_CELL_ROLE = "TH"


class ObjectRef(BaseModel):
    """Reference to an object that already exists in the PDF (object number, generation)."""
    objnum: int
    gen: int = 0

    @property
    def objgen(self):
        return (self.objnum, self.gen)


class StructElem(BaseModel):
    """A structure element in the arena. Holds at most one kind of content link."""
    id: int
    role: str
    parent: Optional[int] = Field(None, description="Parent element id; None for the Document element")
    page: Optional[int] = Field(None, description="0-indexed page the element belongs to")
    mcid: Optional[int] = None
    kids: Optional[List[int]] = None
    obj_ref: Optional[ObjectRef] = None
    alt: Optional[str] = None
    lang: Optional[str] = None
    uri: Optional[str] = None
    scope: Optional[str] = None


class TextLayout(BaseModel):
    """Geometry of the invisible text column."""
    font_size: float = 12
    line_height: float = 14
    margin_left: float = 36
    margin_top: float = 48
    item_gap: float = 4

    @classmethod
    def from_config(cls, opt) -> "TextLayout":
        return cls(
            font_size=getattr(opt, 'font_size', 12),
            line_height=getattr(opt, 'line_height', 14),
            margin_left=getattr(opt, 'margin_left', 36),
            margin_top=getattr(opt, 'margin_top', 48),
            item_gap=getattr(opt, 'item_gap', 4),
        )


class ContentItem(BaseModel):
    """One marked-content run of invisible text, bound to a leaf element by MCID."""
    mcid: int
    role: str
    lines: List[str]
    actual_text: str
    lang: Optional[str] = None
    x: float
    y: float
    font_size: float
    line_height: float
    url: Optional[str] = None


class StructureTree:
    """
    Arena of structure elements addressed by id.

    The Document element is created with the tree. Content links go through
    append_kid / set_mcid / link_object, which refuse to give an element a
    second kind of content.
    """

    def __init__(self):
        self._elems: List[StructElem] = []
        self.used_tags: Set[str] = set()
        self.document_id = self.allocate(DOCUMENT_ROLE).id

    def allocate(self, role: str, parent: Optional[int] = None, page: Optional[int] = None, **attrs) -> StructElem:
        elem = StructElem(id=len(self._elems), role=role, parent=parent, page=page, **attrs)
        self._elems.append(elem)
        self.used_tags.add(role)
        return elem

    def get(self, elem_id: int) -> StructElem:
        try:
            return self._elems[elem_id]
        except IndexError:
            raise StructureError(f"Unknown structure element id {elem_id}") from None

    def append_kid(self, parent_id: int, child_id: int) -> None:
        parent = self.get(parent_id)
        if parent.mcid is not None or parent.obj_ref is not None:
            raise StructureError(f"Element {parent_id} ({parent.role}) already has direct content")
        if parent.kids is None:
            parent.kids = []
        parent.kids.append(child_id)

    def set_mcid(self, elem_id: int, mcid: int) -> None:
        elem = self.get(elem_id)
        if elem.kids or elem.obj_ref is not None or elem.mcid is not None:
            raise StructureError(f"Element {elem_id} ({elem.role}) cannot take MCID {mcid}")
        elem.mcid = mcid

    def link_object(self, elem_id: int, ref: ObjectRef) -> None:
        elem = self.get(elem_id)
        if elem.kids or elem.mcid is not None or elem.obj_ref is not None:
            raise StructureError(f"Element {elem_id} ({elem.role}) cannot link an object")
        elem.obj_ref = ref

    def checkpoint(self) -> Tuple[int, int, Set[str]]:
        """Capture the arena size, Document kid count and used tags."""
        document = self.get(self.document_id)
        return len(self._elems), len(document.kids or []), set(self.used_tags)

    def rollback(self, checkpoint: Tuple[int, int, Set[str]]) -> None:
        """
        Drop every element allocated since checkpoint().

        Elements created after the checkpoint may only hang under each other
        or directly under the Document element.
        """
        size, document_kids, used_tags = checkpoint
        del self._elems[size:]
        document = self.get(self.document_id)
        if document.kids is not None:
            del document.kids[document_kids:]
        self.used_tags = used_tags

    def children(self, elem_id: int) -> List[StructElem]:
        return [self._elems[kid] for kid in (self.get(elem_id).kids or [])]

    def elements(self) -> Iterator[StructElem]:
        return iter(self._elems)

    def __len__(self):
        return len(self._elems)


class PageContext:
    """Per-page build state shared by every level of the recursive walk."""

    def __init__(self, page_index: int, page_height: float, layout: TextLayout):
        self.page_index = page_index
        self.layout = layout
        self.next_mcid = 0
        self.cursor_y = page_height - layout.margin_top
        self.items: List[ContentItem] = []
        self.parent_refs: List[int] = []

    def assign_mcid(self, elem_id: int) -> int:
        mcid = self.next_mcid
        self.next_mcid += 1
        self.parent_refs.append(elem_id)
        return mcid


def split_lines(text: str) -> List[str]:
    lines = [line.strip() for line in re.split(r"[\r\n]+", text)]
    lines = [line for line in lines if line]
    return lines or [" "]


class StructureTreeBuilder:
    """Turns canonical semantic nodes into structure elements and content items."""

    def __init__(self, tree: Optional[StructureTree] = None, layout: Optional[TextLayout] = None,
                 logger: Optional[logging.Logger] = None):
        self.tree = tree or StructureTree()
        self.layout = layout or TextLayout()
        self.logger = logger or logging.getLogger(__name__)

    def begin_page(self, page_index: int, page_height: float):
        """
        Create the page container under the Document element.

        Returns:
            Tuple of (PageContext, id of the page's Sect element)
        """
        sect = self.tree.allocate(PAGE_ROLE, parent=self.tree.document_id, page=page_index)
        self.tree.append_kid(self.tree.document_id, sect.id)
        return PageContext(page_index, page_height, self.layout), sect.id

    def build(self, nodes: List[SemanticNode], parent_id: int, context: PageContext) -> List[int]:
        """
        Create elements for a list of sibling nodes.

        Returns:
            Ids of the elements created directly under parent_id
        """
        created = []
        for node in nodes:
            elem_id = self._create_elem(node, parent_id, context)
            if elem_id is not None:
                created.append(elem_id)
        return created

    def _create_elem(self, node: SemanticNode, parent_id: int, context: PageContext) -> Optional[int]:
        if node.is_artifact:
            return None

        elem = self.tree.allocate(
            node.tag,
            parent=parent_id,
            page=context.page_index,
            alt=node.alt or None,
            lang=node.lang,
            uri=node.url if node.tag == LINK_ROLE else None,
            scope=node.scope if node.tag == HEADER_CELL_ROLE else None,
        )
        self.tree.append_kid(parent_id, elem.id)

        if node.children:
            if node.has_text():
                # Inline text next to children goes into a leading Span
                span = SemanticNode(
                    tag=SPAN_ROLE,
                    text=node.text,
                    actual_text=node.actual_text,
                    lang=node.lang,
                    url=node.url,
                )
                self._create_elem(span, elem.id, context)
            self.build(node.children, elem.id, context)
        elif node.has_text():
            mcid = context.assign_mcid(elem.id)
            self.tree.set_mcid(elem.id, mcid)
            context.items.append(self._content_item(node, mcid, context))
        else:
            self.logger.debug(f"{node.tag} element on page {context.page_index + 1} carries no content")

        return elem.id

    def _content_item(self, node: SemanticNode, mcid: int, context: PageContext) -> ContentItem:
        layout = context.layout
        text = node.actual_text or node.text or ""
        lines = split_lines(text)
        y = context.cursor_y
        context.cursor_y -= layout.line_height * len(lines) + layout.item_gap
        return ContentItem(
            mcid=mcid,
            role=node.tag,
            lines=lines,
            actual_text=text,
            lang=node.lang,
            x=layout.margin_left,
            y=y,
            font_size=layout.font_size,
            line_height=layout.line_height,
            url=node.url,
        )

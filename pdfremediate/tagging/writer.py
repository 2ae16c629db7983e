"""
pikepdf adapter that materializes the tagging results into a PDF.

The core components work on an in-memory arena; this module is the only
place that allocates PDF objects. It writes:

- page /Contents (artifact-wrapped original streams plus the text layer)
- the font resource used by the text layer
- /StructTreeRoot with the element tree, /ParentTree and /RoleMap
- /MarkInfo and /StructParents
- /Outlines entries
"""

import logging
from typing import Dict, List, Optional, Tuple

import pikepdf
from pikepdf import Array, Dictionary, Name, String

from ..pdf_utils import page_resources
from .figures import PageImage, enumerate_page_images
from .outline import OutlineBuilder
from .parent_tree import ParentTreeIndex
from .structure import StructureTree


class PdfStructureWriter:
    """Writes structure, content streams and bookmarks into a pikepdf.Pdf."""

    def __init__(self, pdf: pikepdf.Pdf, font_name: str = "AccessHelv", logger: Optional[logging.Logger] = None):
        self.pdf = pdf
        self.font_name = font_name
        self.logger = logger or logging.getLogger(__name__)
        self._font = None

    @property
    def page_count(self) -> int:
        return len(self.pdf.pages)

    def page_height(self, page_index: int) -> float:
        box = self.pdf.pages[page_index].mediabox
        return float(box[3]) - float(box[1])

    def page_images(self, page_index: int) -> List[PageImage]:
        return enumerate_page_images(self.pdf.pages[page_index].obj, logger=self.logger)

    def _font_object(self):
        if self._font is None:
            self._font = self.pdf.make_indirect(Dictionary(
                Type=Name.Font,
                Subtype=Name.Type1,
                BaseFont=Name.Helvetica,
                Encoding=Name.WinAnsiEncoding,
            ))
        return self._font

    def register_font(self, page_obj: pikepdf.Dictionary) -> None:
        """Make the text-layer font available under the page's own /Resources."""
        if not isinstance(page_obj.get(Name.Resources), Dictionary):
            inherited = page_resources(page_obj)
            page_obj.Resources = inherited if inherited is not None else Dictionary()
        resources = page_obj.Resources

        if not isinstance(resources.get(Name.Font), Dictionary):
            resources.Font = Dictionary()
        resources.Font[Name("/" + self.font_name)] = self._font_object()

    def _make_stream(self, data: bytes):
        return self.pdf.make_stream(data)

    @staticmethod
    def _existing_contents(page_obj) -> list:
        existing = page_obj.get(Name.Contents)
        if isinstance(existing, Array):
            return list(existing)
        if isinstance(existing, pikepdf.Stream):
            return [existing]
        return []

    def write_page_contents(self, page_index: int, streams: Tuple[bytes, bytes, Optional[bytes]]) -> None:
        """
        Replace a page's /Contents with artifact begin, original streams,
        artifact end and (when present) the accessible text layer.

        Args:
            page_index: 0-indexed page
            streams: Output of ContentStreamSynthesizer.page_streams
        """
        begin, end, accessible = streams
        page_obj = self.pdf.pages[page_index].obj

        refs = [self._make_stream(begin)]
        refs.extend(self._existing_contents(page_obj))
        refs.append(self._make_stream(end))

        if accessible is not None:
            self.register_font(page_obj)
            refs.append(self._make_stream(accessible))

        page_obj.Contents = Array(refs)
        page_obj.StructParents = page_index

    def append_stream(self, page_index: int, data: bytes) -> None:
        """Append a content stream after the page's existing contents."""
        page_obj = self.pdf.pages[page_index].obj
        refs = self._existing_contents(page_obj)
        refs.append(self._make_stream(data))
        page_obj.Contents = Array(refs)

    def write_structure(self, tree: StructureTree, parent_tree: ParentTreeIndex, role_map: Dict[str, str]) -> None:
        """Materialize the structure arena, parent tree and role map."""
        pdf = self.pdf
        if Name.StructTreeRoot in pdf.Root:
            self.logger.warning("Replacing the document's existing structure tree")

        root = pdf.make_indirect(Dictionary(Type=Name.StructTreeRoot))
        objs = [pdf.make_indirect(Dictionary(Type=Name.StructElem)) for _ in range(len(tree))]

        for elem in tree.elements():
            d = objs[elem.id]
            d.S = Name("/" + elem.role)
            d.P = objs[elem.parent] if elem.parent is not None else root
            page_obj = pdf.pages[elem.page].obj if elem.page is not None else None
            if page_obj is not None:
                d.Pg = page_obj

            if elem.kids is not None:
                d.K = Array([objs[kid] for kid in elem.kids])
            elif elem.mcid is not None:
                d.K = elem.mcid
            elif elem.obj_ref is not None:
                objr = Dictionary(Type=Name.OBJR, Obj=pdf.get_object(elem.obj_ref.objgen))
                if page_obj is not None:
                    objr.Pg = page_obj
                d.K = pdf.make_indirect(objr)

            if elem.alt:
                d.Alt = String(elem.alt)
            if elem.lang:
                d.Lang = String(elem.lang)
            if elem.uri:
                d.A = Dictionary(S=Name.URI, URI=String(elem.uri))
            elif elem.scope:
                d.A = Dictionary(O=Name.Table, Scope=Name("/" + elem.scope))

        root.K = Array([objs[tree.document_id]])

        nums = Array()
        for page_index, elem_ids in parent_tree.entries():
            nums.append(page_index)
            nums.append(Array([objs[elem_id] for elem_id in elem_ids]))
        root.ParentTree = pdf.make_indirect(Dictionary(Nums=nums))
        root.ParentTreeNextKey = parent_tree.next_key

        root.RoleMap = pdf.make_indirect(Dictionary({
            "/" + tag: Name("/" + role) for tag, role in role_map.items()
        }))

        pdf.Root.StructTreeRoot = root
        pdf.Root.MarkInfo = Dictionary(Marked=True)
        self.logger.info(f"✓ Wrote structure tree with {len(tree)} elements across {len(parent_tree)} pages")

    @staticmethod
    def _outline_tail(outlines: Dictionary) -> Optional[Dictionary]:
        """Last top-level outline item, found by walking /Next from /First."""
        item = outlines.get(Name.First)
        if not isinstance(item, Dictionary):
            return None
        seen = set()
        while True:
            seen.add(item.objgen)
            following = item.get(Name.Next)
            if not isinstance(following, Dictionary) or following.objgen in seen:
                return item
            item = following

    def write_outline(self, outline: OutlineBuilder) -> int:
        """
        Append the outline entries to the document's /Outlines root.

        An existing root is extended after its last top-level entry, found by
        walking /First and /Next; otherwise one is created.

        Returns:
            Number of entries written
        """
        pdf = self.pdf
        written = 0
        outlines = pdf.Root.get(Name.Outlines)
        if not isinstance(outlines, Dictionary):
            outlines = pdf.make_indirect(Dictionary(Type=Name.Outlines, Count=0))
            pdf.Root.Outlines = outlines
        elif not outlines.is_indirect:
            outlines = pdf.make_indirect(outlines)
            pdf.Root.Outlines = outlines

        last = self._outline_tail(outlines)
        for entry in outline.entries():
            item = pdf.make_indirect(Dictionary(
                Title=String(entry.title),
                Parent=outlines,
                Dest=Array([pdf.pages[entry.page_index].obj, Name.Fit]),
            ))
            if last is None:
                outlines.First = item
            else:
                last.Next = item
                item.Prev = last
            outlines.Last = item
            last = item
            outlines.Count = int(outlines.get(Name.Count, 0)) + 1
            written += 1

        if written:
            self.logger.info(f"✓ Added {written} bookmark(s)")
        return written

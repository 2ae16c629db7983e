"""
Invisible text layer synthesis.

Content items become marked-content sequences of invisible text (render
mode 3). The page's own drawing operators are bracketed as an Artifact so
assistive technology skips them; the accessible layer always comes after the
artifact's closing EMC.
"""

from typing import List, Optional, Sequence, Tuple

import pikepdf
from pikepdf import Dictionary, Name, Operator, String

from .structure import ContentItem

INVISIBLE_RENDER_MODE = 3

Instruction = Tuple[list, Operator]


def encode_text(text: str) -> String:
    """Encode a line for the WinAnsi-encoded standard font used by the text layer."""
    return String(text.encode("cp1252", errors="replace"))


def text_operations(lines: Sequence[str], font_name: str, font_size: float,
                    x: float, y: float, line_height: float) -> List[Instruction]:
    """
    Invisible text drawing operators, one BT/ET block per non-empty line.

    Lines are placed top-down from (x, y), line_height apart.
    """
    ops: List[Instruction] = []
    drawn = [line for line in lines if line.strip()] or [" "]
    for index, line in enumerate(drawn):
        ops.extend([
            ([], Operator("BT")),
            ([Name("/" + font_name), font_size], Operator("Tf")),
            ([INVISIBLE_RENDER_MODE], Operator("Tr")),
            ([1, 0, 0, 1, x, y - index * line_height], Operator("Tm")),
            ([encode_text(line)], Operator("Tj")),
            ([], Operator("ET")),
        ])
    return ops


class ContentStreamSynthesizer:
    """Builds the operator sequences written into a page's /Contents."""

    def __init__(self, font_name: str = "AccessHelv"):
        self.font_name = font_name

    def accessible_operations(self, items: Sequence[ContentItem]) -> List[Instruction]:
        """
        Marked-content runs for every item, in MCID order.

        Returns:
            Operator list; empty when the page has no content items
        """
        ops: List[Instruction] = []
        for item in sorted(items, key=lambda it: it.mcid):
            props = Dictionary(
                MCID=item.mcid,
                ActualText=String(item.actual_text or ""),
            )
            if item.lang:
                props.Lang = String(item.lang)
            role = item.role or "Span"
            ops.append(([Name("/" + role), props], Operator("BDC")))
            ops.extend(text_operations(
                item.lines, self.font_name, item.font_size, item.x, item.y, item.line_height
            ))
            ops.append(([], Operator("EMC")))
        return ops

    @staticmethod
    def artifact_begin() -> List[Instruction]:
        # q/Q keep any state left over by the original content out of the text layer
        return [([Name.Artifact], Operator("BMC")), ([], Operator("q"))]

    @staticmethod
    def artifact_end() -> List[Instruction]:
        return [([], Operator("Q")), ([], Operator("EMC"))]

    @staticmethod
    def serialize(ops: Sequence[Instruction]) -> bytes:
        return pikepdf.unparse_content_stream(ops)

    def page_streams(self, items: Sequence[ContentItem]) -> Tuple[bytes, bytes, Optional[bytes]]:
        """
        Serialized (artifact begin, artifact end, accessible layer) streams.

        The accessible layer is None when there are no content items.
        """
        accessible = self.accessible_operations(items)
        return (
            self.serialize(self.artifact_begin()),
            self.serialize(self.artifact_end()),
            self.serialize(accessible) if accessible else None,
        )

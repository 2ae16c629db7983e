"""
Semantic node model and normalization of classifier output.

The page classifier is an LLM and its answers are only loosely shaped like
the requested schema. This module turns whatever came back into a canonical
tree of SemanticNode objects: malformed entries are dropped, wrongly typed
fields are treated as absent, and list items or table rows that arrived as a
single text blob get the children the structure tree needs.
"""

import logging
import re
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

ARTIFACT_TAG = "Artifact"
BULLET = "•"

# Leading list label: bullet glyphs, dashes, "1.", "12)", "a.", "iv)"
LABEL_PATTERN = re.compile(
    r"^\s*([•◦▪‣⁃\-\*]|\d+[.)]?|[A-Za-z][.)]|[ivxlcdmIVXLCDM]+[.)])\s+(.*)$",
    re.DOTALL,
)

_SCOPES = {"row": "Row", "column": "Column"}

logger = logging.getLogger(__name__)


class SemanticNode(BaseModel):
    """A canonical node of the per-page semantic description."""
    model_config = ConfigDict(populate_by_name=True)

    tag: str = Field(..., description="Structure role name (e.g. 'P', 'H1', 'LI')")
    text: Optional[str] = Field(None, description="Visible text carried by the node")
    actual_text: Optional[str] = Field(None, alias="actualText", description="Replacement text for assistive technology")
    lang: Optional[str] = Field(None, description="BCP 47 language tag")
    alt: Optional[str] = Field(None, description="Alternate description")
    url: Optional[str] = Field(None, description="Link target for Link nodes")
    scope: Optional[str] = Field(None, description="Row or Column, for TH cells")
    label: Optional[str] = Field(None, description="Explicit list label for LI nodes")
    children: List["SemanticNode"] = Field(default_factory=list)

    @property
    def is_artifact(self) -> bool:
        return self.tag == ARTIFACT_TAG

    def has_text(self) -> bool:
        return bool(self.text and self.text.strip())


def _string(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _trimmed(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _scope(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return _SCOPES.get(value.strip().lower())
    return None


def split_list_label(text: str, label: Optional[str] = None):
    """
    Split a list item's text into (label, body).

    An explicit label always wins; otherwise a leading bullet or number
    token is used, falling back to a bullet glyph with the whole text as body.
    """
    match = LABEL_PATTERN.match(text)
    body = match.group(2).strip() if match else text.strip()
    if label:
        return label, body
    if match:
        return match.group(1), body
    return BULLET, body


def normalize_node(raw: Any) -> Optional[SemanticNode]:
    """
    Normalize a single classifier entry.

    Args:
        raw: A mapping (or an already canonical SemanticNode)

    Returns:
        SemanticNode, or None when the entry is unusable
    """
    if isinstance(raw, SemanticNode):
        raw = raw.model_dump(by_alias=True)
    if not isinstance(raw, Mapping):
        return None

    tag = _trimmed(raw.get("tag"))
    if not tag:
        return None

    text = _string(raw.get("text"))
    label = _string(raw.get("label"))

    children: List[SemanticNode] = []
    raw_children = raw.get("children")
    if isinstance(raw_children, list):
        children = normalize_nodes(raw_children)

    if tag == "LI" and not children and text:
        lbl_text, body_text = split_list_label(text, label)
        children = normalize_nodes([
            {"tag": "Lbl", "text": lbl_text},
            {"tag": "LBody", "text": body_text},
        ])
        # The text now lives in the synthesized children
        text = None
    elif tag in ("L", "Table", "TR") and not children and text:
        children = normalize_nodes([{"tag": "Span", "text": text}])
        text = None

    return SemanticNode(
        tag=tag,
        text=text,
        actual_text=_string(raw.get("actualText", raw.get("actual_text"))),
        lang=_trimmed(raw.get("lang")),
        alt=_string(raw.get("alt")),
        url=_trimmed(raw.get("url")),
        scope=_scope(raw.get("scope")),
        label=label,
        children=children,
    )


def normalize_nodes(raw_nodes: Any) -> List[SemanticNode]:
    """
    Normalize a list of classifier entries, preserving order.

    Anything that is not a list yields an empty result.
    """
    if not isinstance(raw_nodes, list):
        return []
    out = []
    for raw in raw_nodes:
        node = normalize_node(raw)
        if node is not None:
            out.append(node)
        else:
            logger.debug(f"Dropping unusable node entry: {str(raw)[:100]}")
    return out


def fallback_nodes(raw_text: Optional[str]) -> List[SemanticNode]:
    """One paragraph wrapping the raw page text, or nothing for a blank page."""
    text = (raw_text or "").strip()
    if not text:
        return []
    return [SemanticNode(tag="P", text=text)]

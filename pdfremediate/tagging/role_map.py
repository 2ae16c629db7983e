"""Role map from tag names used in the tree to standard structure roles."""

from typing import Dict, Iterable

FALLBACK_ROLE = "Span"

STANDARD_ROLES: Dict[str, str] = {
    "Document": "Document",
    "Sect": "Sect",
    "Part": "Part",
    "Div": "Div",
    "P": "P",
    "Span": "Span",
    "Quote": "BlockQuote",
    "Link": "Link",
    "Annot": "Annot",
    "Figure": "Figure",
    "Formula": "Formula",
    "Caption": "Caption",
    "L": "L",
    "LI": "LI",
    "Lbl": "Lbl",
    "LBody": "LBody",
    "Table": "Table",
    "TR": "TR",
    "TH": "TH",
    "TD": "TD",
    "THead": "THead",
    "TBody": "TBody",
    "TFoot": "TFoot",
    "H1": "H1",
    "H2": "H2",
    "H3": "H3",
    "H4": "H4",
    "H5": "H5",
    "H6": "H6",
}


def build_role_map(used_tags: Iterable[str]) -> Dict[str, str]:
    """Map every used tag to its standard role, or to Span when it has none."""
    return {tag: STANDARD_ROLES.get(tag, FALLBACK_ROLE) for tag in sorted(set(used_tags))}

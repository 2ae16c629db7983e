"""
Unit tests for OutlineBuilder and heading candidates.

Tests cover:
- Appending entries and root bookkeeping
- Forward and backward traversal
- Tail invariant
- Heading candidate collection
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from pdfremediate.errors import StructureError
from pdfremediate.tagging.nodes import normalize_nodes
from pdfremediate.tagging.outline import OutlineBuilder, collect_outline_candidates


def test_three_appends():
    """Three sequential appends give three siblings and a count of 3."""
    outline = OutlineBuilder()
    a = outline.add_outline("Intro", 0)
    b = outline.add_outline("Methods", 1)
    c = outline.add_outline("Results", 1)

    assert outline.count == 3 and len(outline) == 3, f"Count should be 3, got {outline.count}"
    assert outline.root.first == a.id and outline.root.last == c.id
    assert (a.prev, a.next) == (None, b.id)
    assert (b.prev, b.next) == (a.id, c.id)
    assert (c.prev, c.next) == (b.id, None)
    assert {e.parent for e in (a, b, c)} == {outline.root.id}, "All entries are siblings under the root"

    forward = [e.title for e in outline.entries()]
    backward = []
    current = outline.root.last
    while current is not None:
        entry = outline.get(current)
        backward.append(entry.title)
        current = entry.prev
    assert forward == ["Intro", "Methods", "Results"]
    assert backward == list(reversed(forward)), "Backward walk mirrors forward walk"
    print("  ✓ Three appends, consistent links")


def test_empty_outline():
    outline = OutlineBuilder()
    assert outline.root is None, "Root is created lazily"
    assert outline.count == 0 and list(outline.entries()) == []
    print("  ✓ Empty outline")


def test_tail_invariant_enforced():
    outline = OutlineBuilder()
    first = outline.add_outline("One", 0)
    outline.add_outline("Two", 0)
    outline.root.last = first.id  # corrupt the tail

    try:
        outline.add_outline("Three", 0)
        raise AssertionError("Appending after a non-tail entry should raise")
    except StructureError:
        pass
    print("  ✓ Tail invariant enforced")


def test_heading_candidates():
    nodes = normalize_nodes([
        {"tag": "H1", "text": "  Annual Report  "},
        {"tag": "P", "text": "Body"},
        {"tag": "Sect", "children": [
            {"tag": "H2", "text": "Revenue"},
            {"tag": "H3", "text": "Too deep"},
        ]},
        {"tag": "H2", "text": "   "},
        {"tag": "H2", "text": "x" * 100},
    ])

    titles = collect_outline_candidates(nodes)
    assert titles[:2] == ["Annual Report", "Revenue"], f"Unexpected titles: {titles}"
    assert len(titles) == 3, "H3 and blank headings are skipped"
    assert titles[2] == "x" * 60, "Titles truncated to 60 characters"

    assert collect_outline_candidates(nodes, max_level=3, max_length=10)[2] == "Too deep"
    print("  ✓ Heading candidates")


if __name__ == "__main__":
    print("\n" + "=" * 60)
    print("Outline Builder Tests")
    print("=" * 60)
    test_three_appends()
    test_empty_outline()
    test_tail_invariant_enforced()
    test_heading_candidates()
    print("\n✓ All outline tests passed")

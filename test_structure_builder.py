"""
Unit tests for StructureTree and StructureTreeBuilder.

Tests cover:
- Page containers, MCID assignment and the parent-ref array
- Exclusive content links on structure elements
- Artifact skipping and inline-text Spans
- Vertical cursor of the invisible text column
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from pdfremediate.errors import StructureError
from pdfremediate.tagging.nodes import fallback_nodes, normalize_nodes
from pdfremediate.tagging.structure import (
    ObjectRef,
    StructureTree,
    StructureTreeBuilder,
    TextLayout,
    split_lines,
)

PAGE_HEIGHT = 792


def build_page(raw, page_index=0, builder=None):
    builder = builder or StructureTreeBuilder()
    context, sect_id = builder.begin_page(page_index, PAGE_HEIGHT)
    builder.build(normalize_nodes(raw), sect_id, context)
    return builder, context, sect_id


def test_heading_and_paragraph():
    """H1 + P: page container with two children, two content items."""
    builder, context, sect_id = build_page([
        {"tag": "H1", "text": "Intro"},
        {"tag": "P", "text": "Hello world"},
    ])
    tree = builder.tree

    sect = tree.get(sect_id)
    assert sect.role == "Sect", f"Page container should be Sect, got {sect.role}"
    assert sect.parent == tree.document_id, "Sect hangs under Document"
    assert [c.role for c in tree.children(sect_id)] == ["H1", "P"], "Children in reading order"
    assert [item.mcid for item in context.items] == [0, 1], "MCIDs start at 0"
    assert len(context.parent_refs) == 2, "Parent array has one entry per MCID"
    print("  ✓ H1 + P page built")


def test_list_item_gets_two_content_items():
    """LI '1. First item' yields Lbl and LBody at MCIDs 0 and 1."""
    builder, context, sect_id = build_page([{"tag": "LI", "text": "1. First item"}])
    tree = builder.tree

    li = tree.children(sect_id)[0]
    assert li.role == "LI", "LI element expected"
    assert li.mcid is None, "LI itself carries no content"
    lbl, lbody = tree.children(li.id)
    assert (lbl.role, lbl.mcid) == ("Lbl", 0), f"Unexpected Lbl: {lbl}"
    assert (lbody.role, lbody.mcid) == ("LBody", 1), f"Unexpected LBody: {lbody}"
    assert [item.actual_text for item in context.items] == ["1.", "First item"]
    print("  ✓ LI label and body are separate content items")


def test_fallback_paragraph():
    builder = StructureTreeBuilder()
    context, sect_id = builder.begin_page(0, PAGE_HEIGHT)
    builder.build(fallback_nodes("Some fallback text."), sect_id, context)

    assert len(context.items) == 1, "Fallback page has one content item"
    assert context.items[0].role == "P", "Fallback is a paragraph"
    assert context.items[0].actual_text == "Some fallback text."
    print("  ✓ Fallback paragraph")


def test_parent_refs_match_mcids():
    builder, context, _ = build_page([
        {"tag": "H2", "text": "Section"},
        {"tag": "L", "children": [
            {"tag": "LI", "text": "• a"},
            {"tag": "LI", "text": "• b"},
        ]},
        {"tag": "Table", "children": [
            {"tag": "TR", "children": [
                {"tag": "TH", "text": "Name", "scope": "Column"},
                {"tag": "TD", "text": "Value"},
            ]},
        ]},
    ])
    tree = builder.tree

    assert len(context.parent_refs) == len(context.items), "One parent ref per content item"
    for item in context.items:
        owner = tree.get(context.parent_refs[item.mcid])
        assert owner.mcid == item.mcid, f"Parent ref for MCID {item.mcid} points at {owner}"
        assert owner.role == item.role, "Content item role matches its owner"
    assert [item.mcid for item in context.items] == list(range(len(context.items))), "MCIDs are contiguous"

    th = next(e for e in tree.elements() if e.role == "TH")
    assert th.scope == "Column", "TH keeps its scope"
    print("  ✓ Parent refs consistent with MCIDs")


def test_mcids_restart_per_page():
    builder, first, _ = build_page([{"tag": "P", "text": "one"}, {"tag": "P", "text": "two"}])
    _, second, sect_id = build_page([{"tag": "P", "text": "three"}], page_index=1, builder=builder)

    assert [i.mcid for i in second.items] == [0], "MCIDs are per page"
    assert builder.tree.get(sect_id).page == 1, "Second Sect belongs to page 1"
    assert len(builder.tree.children(builder.tree.document_id)) == 2, "One Sect per page"
    print("  ✓ MCIDs restart on every page")


def test_artifacts_are_skipped():
    builder, context, sect_id = build_page([
        {"tag": "Artifact", "text": "Page 3 of 10"},
        {"tag": "P", "text": "Real text"},
        {"tag": "Div", "children": [{"tag": "Artifact", "text": "header"}]},
    ])
    tree = builder.tree

    assert "Artifact" not in {e.role for e in tree.elements()}, "Artifacts never become elements"
    assert len(context.items) == 1, "Only the paragraph is content"
    assert [c.role for c in tree.children(sect_id)] == ["P", "Div"]
    print("  ✓ Artifacts skipped")


def test_inline_text_goes_to_leading_span():
    builder, context, sect_id = build_page([{
        "tag": "Link",
        "text": "Visit",
        "lang": "en",
        "alt": "Project site",
        "url": "https://example.com",
        "children": [{"tag": "Span", "text": "example.com"}],
    }])
    tree = builder.tree

    link = tree.children(sect_id)[0]
    assert link.uri == "https://example.com", "Link keeps its target"
    assert link.alt == "Project site", "Alt stays on the parent"
    span, child = tree.children(link.id)
    assert span.role == "Span" and span.mcid == 0, "Inline text comes first as a Span"
    assert span.lang == "en", "Span inherits lang"
    assert span.alt is None and span.uri is None, "Span does not take alt or link target"
    assert child.mcid == 1, "Given children follow the Span"
    assert context.items[0].actual_text == "Visit"
    assert context.items[0].url == "https://example.com", "Span content carries the link target"
    assert context.items[1].url is None, "Given children keep their own target"
    print("  ✓ Inline text Span")


def test_uri_only_on_links():
    builder, _, sect_id = build_page([{"tag": "P", "text": "x", "url": "https://example.com"}])
    assert builder.tree.children(sect_id)[0].uri is None, "Only Link elements carry a URI"
    print("  ✓ URI only on Link")


def test_empty_elements_have_no_content():
    builder, context, sect_id = build_page([{"tag": "Div"}, {"tag": "P", "text": "   "}])
    for elem in builder.tree.children(sect_id):
        assert elem.mcid is None and not elem.kids, f"{elem.role} should be empty"
    assert context.items == [], "No content items"
    print("  ✓ Empty elements")


def test_cursor_moves_down():
    layout = TextLayout(font_size=10, line_height=12, margin_left=20, margin_top=30, item_gap=5)
    builder = StructureTreeBuilder(layout=layout)
    context, sect_id = builder.begin_page(0, 500)
    builder.build(normalize_nodes([
        {"tag": "P", "text": "line one\nline two"},
        {"tag": "P", "text": "after"},
    ]), sect_id, context)

    first, second = context.items
    assert first.y == 470, f"First item starts at page top minus margin, got {first.y}"
    assert first.lines == ["line one", "line two"], "Text split into lines"
    assert second.y == 470 - (12 * 2 + 5), f"Cursor should drop by two lines and the gap, got {second.y}"
    assert context.cursor_y == second.y - (12 + 5)
    assert first.x == 20 and first.font_size == 10
    print("  ✓ Cursor decrement")


def test_actual_text_replaces_visible_text():
    builder, context, _ = build_page([{"tag": "Span", "text": "H₂O", "actualText": "water"}])
    item = context.items[0]
    assert item.actual_text == "water", "actualText wins for the text layer"
    assert item.lines == ["water"]
    print("  ✓ actualText drives the text layer")


def test_exclusive_content_link():
    tree = StructureTree()
    p = tree.allocate("P", parent=tree.document_id, page=0)
    tree.set_mcid(p.id, 0)

    for action in (
        lambda: tree.set_mcid(p.id, 1),
        lambda: tree.link_object(p.id, ObjectRef(objnum=7)),
        lambda: tree.append_kid(p.id, tree.document_id),
    ):
        try:
            action()
        except StructureError:
            continue
        raise AssertionError("Second content link should be rejected")

    fig = tree.allocate("Figure", parent=tree.document_id, page=0)
    tree.link_object(fig.id, ObjectRef(objnum=7))
    assert fig.obj_ref.objgen == (7, 0), "Object reference recorded"
    try:
        tree.set_mcid(fig.id, 2)
        raise AssertionError("Figure with an object link must not take an MCID")
    except StructureError:
        pass
    print("  ✓ Content links are exclusive")


def test_unknown_element_id():
    tree = StructureTree()
    try:
        tree.get(99)
        raise AssertionError("Unknown id should raise")
    except StructureError:
        pass
    print("  ✓ Unknown element id")


def test_rollback_discards_page():
    builder, _, first_sect = build_page([{"tag": "P", "text": "kept"}])
    tree = builder.tree
    size = len(tree)
    checkpoint = tree.checkpoint()

    build_page([{"tag": "Aside", "text": "dropped"}, {"tag": "P", "text": "x"}], page_index=1, builder=builder)
    tree.rollback(checkpoint)

    assert len(tree) == size, "Elements allocated after the checkpoint are gone"
    assert [c.id for c in tree.children(tree.document_id)] == [first_sect], "Only the first Sect remains"
    assert "Aside" not in tree.used_tags, "Used tags restored"

    _, context, sect_id = build_page([{"tag": "P", "text": "again"}], page_index=1, builder=builder)
    assert tree.get(sect_id).page == 1 and context.items[0].mcid == 0
    assert tree.get(context.parent_refs[0]).role == "P", "Fresh elements after rollback"
    print("  ✓ Rollback discards a page")


def test_used_tags_recorded():
    builder, _, _ = build_page([{"tag": "Aside", "text": "custom"}, {"tag": "P", "text": "x"}])
    assert {"Document", "Sect", "Aside", "P"} <= builder.tree.used_tags
    print("  ✓ Used tags recorded")


def test_split_lines():
    assert split_lines("a\r\n\nb ") == ["a", "b"]
    assert split_lines("") == [" "], "Blank text still yields one line"
    print("  ✓ split_lines")


if __name__ == "__main__":
    print("\n" + "=" * 60)
    print("Structure Tree Builder Tests")
    print("=" * 60)
    test_heading_and_paragraph()
    test_list_item_gets_two_content_items()
    test_fallback_paragraph()
    test_parent_refs_match_mcids()
    test_mcids_restart_per_page()
    test_artifacts_are_skipped()
    test_inline_text_goes_to_leading_span()
    test_uri_only_on_links()
    test_empty_elements_have_no_content()
    test_cursor_moves_down()
    test_actual_text_replaces_visible_text()
    test_exclusive_content_link()
    test_unknown_element_id()
    test_rollback_discards_page()
    test_used_tags_recorded()
    test_split_lines()
    print("\n✓ All structure builder tests passed")

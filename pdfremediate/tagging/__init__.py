"""
Accessibility tag tree synthesis.

This package builds the logical structure of a PDF from per-page classifier
output:
- Node normalization of loosely shaped classifier answers
- Structure tree construction with per-page MCIDs
- Invisible text layer and artifact wrapping of the original content
- Figure linking, role map, parent tree and bookmarks
"""

from .nodes import SemanticNode, normalize_nodes, fallback_nodes
from .structure import StructureTree, StructureTreeBuilder, StructElem, ContentItem, PageContext, ObjectRef, TextLayout
from .content_stream import ContentStreamSynthesizer
from .figures import FigureLinker, PageImage, enumerate_page_images
from .role_map import build_role_map
from .outline import OutlineBuilder, collect_outline_candidates
from .parent_tree import ParentTreeIndex
from .classifier import PageClassifier
from .writer import PdfStructureWriter
from .tag_tree import DocumentTagger, PageResult, add_tag_tree

__all__ = [
    'SemanticNode',
    'normalize_nodes',
    'fallback_nodes',
    'StructureTree',
    'StructureTreeBuilder',
    'StructElem',
    'ContentItem',
    'PageContext',
    'ObjectRef',
    'TextLayout',
    'ContentStreamSynthesizer',
    'FigureLinker',
    'PageImage',
    'enumerate_page_images',
    'build_role_map',
    'OutlineBuilder',
    'collect_outline_candidates',
    'ParentTreeIndex',
    'PageClassifier',
    'PdfStructureWriter',
    'DocumentTagger',
    'PageResult',
    'add_tag_tree',
]

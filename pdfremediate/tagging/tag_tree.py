"""
Tag tree generation for a whole document.

Classifier calls for all pages are dispatched concurrently, but their
results are applied to the document strictly in page order: MCIDs, the
parent tree and the bookmark list all accumulate in document order.
"""

import asyncio
import logging
from typing import List, Optional

import pikepdf
from pydantic import BaseModel, Field

from ..errors import PageTaggingError
from ..llm_client import get_llm_client
from ..pdf_utils import extract_text_per_page, open_pdf, save_pdf
from ..utils import ConfigLoader
from .classifier import PageClassifier
from .content_stream import ContentStreamSynthesizer
from .figures import FigureLinker
from .nodes import fallback_nodes, normalize_nodes
from .outline import OutlineBuilder, collect_outline_candidates
from .parent_tree import ParentTreeIndex
from .role_map import build_role_map
from .structure import StructureTreeBuilder, TextLayout
from .writer import PdfStructureWriter


class PageResult(BaseModel):
    """Summary of what was applied to one page."""
    page_index: int
    used_fallback: bool = False
    content_items: int = 0
    figures: int = 0
    bookmarks: List[str] = Field(default_factory=list)
    links: List[str] = Field(default_factory=list, description="Link targets carried by the page's text layer")


class DocumentTagger:
    """
    Applies classifier output to a pikepdf document, one page at a time.

    apply_page must be called for pages 0, 1, 2, ... in that order; finalize
    writes the structure tree, parent tree, role map and bookmarks.
    """

    def __init__(self, pdf: pikepdf.Pdf, opt=None, logger: Optional[logging.Logger] = None):
        self.opt = opt or ConfigLoader().load()
        self.logger = logger or logging.getLogger(__name__)
        self.writer = PdfStructureWriter(pdf, font_name=self.opt.font_resource_name, logger=self.logger)
        self.builder = StructureTreeBuilder(layout=TextLayout.from_config(self.opt), logger=self.logger)
        self.synthesizer = ContentStreamSynthesizer(font_name=self.opt.font_resource_name)
        self.figure_linker = FigureLinker(self.builder.tree, logger=self.logger)
        self.parent_tree = ParentTreeIndex()
        self.outline = OutlineBuilder(logger=self.logger)
        self._next_page = 0

    @property
    def tree(self):
        return self.builder.tree

    def apply_page(self, page_index: int, raw_nodes, raw_text: str = "") -> PageResult:
        """
        Build and write the structure for one page.

        Args:
            page_index: 0-indexed page; must be the next page in order
            raw_nodes: Classifier output for the page (anything; parsed defensively)
            raw_text: Extracted page text, used when the classifier gave nothing usable

        Returns:
            PageResult

        Raises:
            ValueError: if pages are applied out of order
            PageTaggingError: if the document store rejects the page; the page's
                elements are discarded so the page can be applied again
        """
        if page_index != self._next_page:
            raise ValueError(f"Pages must be applied in order: expected {self._next_page}, got {page_index}")

        result = PageResult(page_index=page_index)
        nodes = normalize_nodes(raw_nodes)
        if not nodes:
            nodes = fallback_nodes((raw_text or "")[:self.opt.classifier_max_chars])
            result.used_fallback = True
            self.logger.info(f"Page {page_index + 1}: no usable classifier output, using fallback paragraph")

        checkpoint = self.tree.checkpoint()
        try:
            context, sect_id = self.builder.begin_page(page_index, self.writer.page_height(page_index))
            self.builder.build(nodes, sect_id, context)

            images = self.writer.page_images(page_index)
            result.figures = len(self.figure_linker.link(images, sect_id, page_index))

            self.writer.write_page_contents(page_index, self.synthesizer.page_streams(context.items))
        except pikepdf.PdfError as e:
            self.tree.rollback(checkpoint)
            raise PageTaggingError(page_index, f"Failed to apply structure to page {page_index + 1}: {e}") from e

        self.parent_tree.add_page(page_index, context.parent_refs, len(context.items))
        result.content_items = len(context.items)
        for item in context.items:
            if item.url and item.url not in result.links:
                result.links.append(item.url)

        for title in collect_outline_candidates(
            nodes,
            max_level=self.opt.outline_max_heading_level,
            max_length=self.opt.outline_title_max_length,
        ):
            self.outline.add_outline(title, page_index)
            result.bookmarks.append(title)

        self._next_page += 1
        self.logger.debug(
            f"Page {page_index + 1}: {result.content_items} content item(s), "
            f"{result.figures} figure(s), {len(result.bookmarks)} bookmark(s)"
        )
        return result

    def finalize(self) -> None:
        """Write the document-level structures once every page has been applied."""
        role_map = build_role_map(self.tree.used_tags)
        self.writer.write_structure(self.tree, self.parent_tree, role_map)
        self.writer.write_outline(self.outline)


def add_tag_tree(pdf_bytes: bytes, opt=None, llm_client=None, logger: Optional[logging.Logger] = None) -> bytes:
    """
    Generate a tag tree, invisible text layer and bookmarks for a PDF.

    Args:
        pdf_bytes: Input document
        opt: Config namespace (see ConfigLoader)
        llm_client: LLM client; the global client is used when omitted
        logger: Optional logger instance

    Returns:
        Bytes of the tagged document
    """
    opt = opt or ConfigLoader().load()
    logger = logger or logging.getLogger(__name__)
    llm_client = llm_client or get_llm_client()

    page_texts = extract_text_per_page(pdf_bytes)
    logger.info(f"Classifying {len(page_texts)} page(s) with {opt.model}")

    classifier = PageClassifier(
        llm_client,
        model=opt.model,
        max_chars=opt.classifier_max_chars,
        concurrency=opt.classifier_concurrency,
        logger=logger,
    )
    classified = asyncio.run(classifier.classify_pages(page_texts))

    pdf = open_pdf(pdf_bytes)
    tagger = DocumentTagger(pdf, opt, logger=logger)
    fallbacks = 0
    for page_index in range(len(pdf.pages)):
        raw_nodes = classified[page_index] if page_index < len(classified) else []
        raw_text = page_texts[page_index] if page_index < len(page_texts) else ""
        result = tagger.apply_page(page_index, raw_nodes, raw_text)
        fallbacks += int(result.used_fallback)
    tagger.finalize()

    logger.info(f"✓ Tagged {len(pdf.pages)} page(s) ({fallbacks} with fallback structure)")
    return save_pdf(pdf)

"""
Per-page summaries as bookmarks, plus document-level metadata.
"""

import logging
from typing import Optional

from .llm_client import get_llm_client
from .pdf_utils import extract_text_per_page, open_pdf, save_pdf, set_document_info, set_document_title
from .tagging.outline import OutlineBuilder
from .tagging.writer import PdfStructureWriter
from .utils import ConfigLoader

SUBJECT = "Accessibility-enhanced PDF"
KEYWORDS = ["accessibility", "alt-text", "PDF remediation"]


def summary_title(page_index: int, summary: Optional[str]) -> str:
    summary = " ".join((summary or "").split())
    if not summary or summary == "Error":
        return f"Pg {page_index + 1}"
    return f"Pg {page_index + 1}: {summary}"


def add_summaries(pdf_bytes: bytes, opt=None, llm_client=None, logger: Optional[logging.Logger] = None) -> bytes:
    """
    Summarise every page into a bookmark and set title, subject and keywords.

    Args:
        pdf_bytes: Input document
        opt: Config namespace (see ConfigLoader)
        llm_client: LLM client; the global client is used when omitted
        logger: Optional logger instance

    Returns:
        Bytes of the updated document
    """
    opt = opt or ConfigLoader().load()
    logger = logger or logging.getLogger(__name__)
    llm_client = llm_client or get_llm_client()

    page_texts = extract_text_per_page(pdf_bytes)
    pdf = open_pdf(pdf_bytes)
    outline = OutlineBuilder(logger=logger)
    system_prompt = f"Summarise this page in ≤{opt.summary_max_words} words."

    for page_index in range(len(pdf.pages)):
        text = page_texts[page_index] if page_index < len(page_texts) else ""
        summary = None
        if text.strip():
            summary = llm_client.chat_completion(
                opt.model, text[:opt.summary_max_chars], system_prompt=system_prompt
            )
        else:
            logger.debug(f"Page {page_index + 1} has no text to summarise")
        outline.add_outline(summary_title(page_index, summary), page_index)

    PdfStructureWriter(pdf, logger=logger).write_outline(outline)
    set_document_title(pdf, opt.document_title)
    set_document_info(pdf, subject=SUBJECT, keywords=KEYWORDS)

    logger.info(f"✓ Added {outline.count} page summaries")
    return save_pdf(pdf)

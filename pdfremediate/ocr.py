"""
OCR overlay for image-only pages.

Pages whose extracted text is (almost) empty get the transcription of their
first image drawn as invisible, selectable text on top of the page.
"""

import logging
from typing import Optional

from pikepdf import Operator

from .pdf_utils import extract_text_per_page, iter_page_images, open_pdf, save_pdf
from .tagging.content_stream import ContentStreamSynthesizer, text_operations
from .tagging.writer import PdfStructureWriter
from .utils import ConfigLoader
from .vision import VisionDescriber, image_from_xobject

OCR_PROMPT = "You are an OCR engine. Transcribe the text in this image exactly. Output the text only."


def add_ocr_text(pdf_bytes: bytes, opt=None, llm_client=None, describer: Optional[VisionDescriber] = None,
                 logger: Optional[logging.Logger] = None) -> bytes:
    """
    Overlay invisible OCR text on pages without selectable text.

    Args:
        pdf_bytes: Input document
        opt: Config namespace (see ConfigLoader)
        llm_client: LLM client for vision requests when Gemini is not configured
        describer: Optional VisionDescriber (mainly for tests)
        logger: Optional logger instance

    Returns:
        Bytes of the updated document
    """
    opt = opt or ConfigLoader().load()
    logger = logger or logging.getLogger(__name__)
    describer = describer or VisionDescriber(
        llm_client, model=opt.vision_model, gemini_model=opt.gemini_vision_model, logger=logger
    )

    page_texts = extract_text_per_page(pdf_bytes)
    pdf = open_pdf(pdf_bytes)
    writer = PdfStructureWriter(pdf, font_name=opt.font_resource_name, logger=logger)

    for page_index, page in enumerate(pdf.pages):
        text = page_texts[page_index].strip() if page_index < len(page_texts) else ""
        if len(text) > opt.ocr_min_text_chars:
            continue

        for name, xobj in iter_page_images(page.obj):
            try:
                image = image_from_xobject(xobj, max_pixels=opt.image_max_pixels * 2)
                transcription = describer.describe(image, OCR_PROMPT)
            except Exception as e:
                logger.error(f"✗ OCR error on page {page_index + 1}: {e}")
                break
            if transcription.strip():
                height = writer.page_height(page_index)
                ops = [([], Operator("q"))]
                ops.extend(text_operations(
                    transcription.splitlines(),
                    opt.font_resource_name,
                    opt.font_size,
                    x=10,
                    y=height - 20,
                    line_height=opt.line_height,
                ))
                ops.append(([], Operator("Q")))
                writer.register_font(page.obj)
                writer.append_stream(page_index, ContentStreamSynthesizer.serialize(ops))
                logger.info(f"✓ OCR text for page {page_index + 1} (from {name})")
            break

    return save_pdf(pdf)

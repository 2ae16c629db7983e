"""
Alt text generation for image XObjects.

Every image without /Alt is sent to a vision model; the answer is stored as
the image's /Alt, which the tagging workflow later turns into a Figure
element. A failed request is logged and the image is left as it was.
"""

import asyncio
import logging
from typing import List, Optional, Tuple

from pikepdf import Name, String

from .pdf_utils import iter_page_images, open_pdf, save_pdf
from .utils import ConfigLoader
from .vision import VisionDescriber, image_from_xobject

ALT_TEXT_PROMPT = (
    "You are an accessibility expert. Provide concise (≤20 words) alt-text "
    "for this image. Respond with the alt-text only."
)


def collect_images_without_alt(pdf, max_pixels: int, logger: logging.Logger) -> List[Tuple[int, str, object, object]]:
    """
    Decode every undescribed image of the document.

    Returns:
        List of (page_index, image name, image XObject, PIL image)
    """
    jobs = []
    seen = set()
    for page_index, page in enumerate(pdf.pages):
        for name, xobj in iter_page_images(page.obj):
            if xobj.objgen in seen:
                continue
            seen.add(xobj.objgen)
            if isinstance(xobj.get(Name.Alt), String) and str(xobj.Alt).strip():
                logger.debug(f"• skip {name} on page {page_index + 1}: already described")
                continue
            try:
                image = image_from_xobject(xobj, max_pixels=max_pixels)
            except Exception as e:
                logger.warning(f"Skipping image {name} on page {page_index + 1}: {e}")
                continue
            jobs.append((page_index, name, xobj, image))
    return jobs


def add_alt_text(pdf_bytes: bytes, opt=None, llm_client=None, describer: Optional[VisionDescriber] = None,
                 logger: Optional[logging.Logger] = None) -> bytes:
    """
    Add alt text to every image XObject that has none.

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

    pdf = open_pdf(pdf_bytes)
    jobs = collect_images_without_alt(pdf, opt.image_max_pixels, logger)
    logger.info(f"Generating alt text for {len(jobs)} image(s)")

    async def run_all():
        semaphore = asyncio.Semaphore(max(1, opt.alt_text_concurrency))

        async def describe_one(job):
            page_index, name, _, image = job
            async with semaphore:
                try:
                    return await asyncio.to_thread(describer.describe, image, ALT_TEXT_PROMPT)
                except Exception as e:
                    logger.error(f"✗ Vision error for {name} on page {page_index + 1}: {e}")
                    return None

        return await asyncio.gather(*(describe_one(job) for job in jobs))

    results = asyncio.run(run_all()) if jobs else []

    described = 0
    for (page_index, name, xobj, _), alt in zip(jobs, results):
        if not alt:
            continue
        xobj.Alt = String(alt)
        described += 1
        logger.debug(f"✓ alt-text for {name} on page {page_index + 1}: {alt}")

    logger.info(f"✓ Described {described}/{len(jobs)} image(s)")
    return save_pdf(pdf)

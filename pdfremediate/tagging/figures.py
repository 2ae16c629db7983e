"""
Figure linking for images that already carry alternate text.

Images are not marked-content runs, so a Figure element points at the image
XObject through an object reference instead of an MCID. Images without /Alt
are decorative as far as the structure tree is concerned and stay unlinked.
"""

import logging
from typing import List, Optional

import pikepdf
from pikepdf import Name
from pydantic import BaseModel

from ..pdf_utils import iter_page_images
from .structure import ObjectRef, StructureTree

FIGURE_ROLE = "Figure"


class PageImage(BaseModel):
    """An image XObject referenced from a page's resources."""
    name: str
    ref: ObjectRef
    alt: Optional[str] = None


def enumerate_page_images(page_obj: pikepdf.Dictionary, logger: Optional[logging.Logger] = None) -> List[PageImage]:
    """
    List the image XObjects of a page with their alternate text.

    Args:
        page_obj: Page dictionary
        logger: Optional logger instance

    Returns:
        List of PageImage sorted by resource name
    """
    logger = logger or logging.getLogger(__name__)
    images = []
    for key, xobj in iter_page_images(page_obj):
        if not xobj.is_indirect:
            logger.debug(f"Skipping direct image object {key}")
            continue
        alt = xobj.get(Name.Alt)
        objnum, gen = xobj.objgen
        images.append(PageImage(
            name=str(key),
            ref=ObjectRef(objnum=objnum, gen=gen),
            alt=str(alt) if isinstance(alt, pikepdf.String) else None,
        ))
    return images


class FigureLinker:
    """Creates Figure elements for described images."""

    def __init__(self, tree: StructureTree, logger: Optional[logging.Logger] = None):
        self.tree = tree
        self.logger = logger or logging.getLogger(__name__)

    def link(self, images: List[PageImage], parent_id: int, page_index: int) -> List[int]:
        """
        Append a Figure element under parent_id for every image with alt text.

        Returns:
            Ids of the created Figure elements
        """
        figures = []
        for image in images:
            alt = (image.alt or "").strip()
            if not alt:
                self.logger.debug(f"Image {image.name} on page {page_index + 1} has no alt text, leaving it unlinked")
                continue
            fig = self.tree.allocate(FIGURE_ROLE, parent=parent_id, page=page_index, alt=image.alt)
            self.tree.link_object(fig.id, image.ref)
            self.tree.append_kid(parent_id, fig.id)
            figures.append(fig.id)
        return figures

"""
PDF helpers shared by the remediation workflows.

Text extraction uses PyMuPDF; every modification goes through pikepdf.
"""

from io import BytesIO
from typing import List, Optional

import pikepdf
import pymupdf
from pikepdf import Dictionary, Name, String

UNTITLED = "Untitled Document"
PDFUA_NS = "http://www.aiim.org/pdfua/ns/id/"


def extract_text_per_page(pdf_bytes: bytes) -> List[str]:
    """
    Extract plain text for every page in reading order.

    Args:
        pdf_bytes: Whole-document bytes

    Returns:
        One string per page
    """
    doc = pymupdf.open(stream=pdf_bytes, filetype="pdf")
    try:
        return [page.get_text("text", sort=True) for page in doc]
    finally:
        doc.close()


def open_pdf(pdf_bytes: bytes) -> pikepdf.Pdf:
    return pikepdf.open(BytesIO(pdf_bytes))


def save_pdf(pdf: pikepdf.Pdf) -> bytes:
    out = BytesIO()
    pdf.save(out)
    return out.getvalue()


def page_resources(page_obj: Dictionary) -> Optional[Dictionary]:
    """The page's /Resources, looked up through the page tree if inherited."""
    node = page_obj
    while node is not None:
        resources = node.get(Name.Resources)
        if isinstance(resources, Dictionary):
            return resources
        node = node.get(Name.Parent)
    return None


def iter_page_images(page_obj: Dictionary):
    """Yield (name, image stream) for every image XObject of a page, sorted by name."""
    resources = page_resources(page_obj)
    xobjects = resources.get(Name.XObject) if resources is not None else None
    if not isinstance(xobjects, Dictionary):
        return
    # keys() is an unordered set
    for name in sorted(xobjects.keys()):
        xobj = xobjects[name]
        if isinstance(xobj, pikepdf.Stream) and xobj.get(Name.Subtype) == Name.Image:
            yield name, xobj


def set_document_title(pdf: pikepdf.Pdf, raw_title: Optional[str]) -> str:
    """
    Set the document title in the info dictionary and XMP metadata.

    Also marks the document as PDF/UA part 1 and asks viewers to show the
    title instead of the file name.

    Returns:
        The title that was written
    """
    title = (raw_title or "").strip() or UNTITLED

    with pdf.open_metadata(set_pikepdf_as_editor=False) as meta:
        meta["dc:title"] = title
        meta["pdf:Title"] = title
        meta[f"{{{PDFUA_NS}}}part"] = "1"
    pdf.docinfo[Name.Title] = String(title)

    prefs = pdf.Root.get(Name.ViewerPreferences)
    if not isinstance(prefs, Dictionary):
        pdf.Root.ViewerPreferences = Dictionary()
    pdf.Root.ViewerPreferences.DisplayDocTitle = True
    return title


def set_document_info(pdf: pikepdf.Pdf, subject: Optional[str] = None, keywords: Optional[List[str]] = None) -> None:
    if subject:
        pdf.docinfo[Name.Subject] = String(subject)
    if keywords:
        pdf.docinfo[Name.Keywords] = String(", ".join(keywords))

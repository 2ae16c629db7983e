from .utils import ConfigLoader, config
from .tagging import add_tag_tree, DocumentTagger
from .alt_text import add_alt_text
from .ocr import add_ocr_text
from .summaries import add_summaries
from .pdf_utils import extract_text_per_page, set_document_title

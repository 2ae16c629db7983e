"""
LLM page classifier producing raw semantic node descriptions.

The answer is parsed defensively: anything other than a JSON array becomes
an empty list, which the tagging pipeline turns into a fallback paragraph.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from ..utils import parse_json_array

CLASSIFIER_PROMPT = " ".join([
    "You are preparing a PDF tag tree that must pass PAC 2024's",
    "Screen Reader Preview. Return a JSON array describing the",
    "logical reading order for this page. Use PDF structure tags",
    "for every node (Document, Sect, H1–H6, P, L, LI, Lbl, LBody,",
    "Table, TR, TH, TD, Figure, Caption, Link, Span, Quote).",
    "Each item must be an object with optional keys: tag",
    "(string), text (string), actualText (string), alt (string),",
    "lang (BCP47 string), url (string for Link targets), scope",
    "(Row or Column for TH cells), children (array of nested",
    "items). For lists, include LI children with Lbl and LBody",
    "elements. For tables, build TR rows with TH/TD cells.",
    "Only include Artifact entries for decorative content.",
    "Keep JSON valid and no extra commentary.",
])


class PageClassifier:
    """Asks the LLM for a semantic description of each page's text."""

    def __init__(self, llm_client, model: Optional[str] = None, max_chars: int = 8000,
                 concurrency: int = 4, logger: Optional[logging.Logger] = None):
        """
        Initialize the PageClassifier.

        Args:
            llm_client: LLM client instance (see pdfremediate.llm_client)
            model: Model name; falls back to the client's default model
            max_chars: Page text is truncated to this many characters
            concurrency: Maximum number of classifier calls in flight
            logger: Optional logger instance
        """
        self.llm_client = llm_client
        self.model = model
        self.max_chars = max_chars
        self.concurrency = max(1, concurrency)
        self.logger = logger or logging.getLogger(__name__)

    async def classify(self, page_text: str) -> list:
        """
        Classify one page.

        Returns:
            Raw node descriptors (possibly empty), never raises for bad output
        """
        text = (page_text or "")[:self.max_chars]
        if not text.strip():
            return []
        try:
            response = await self.llm_client.chat_completion_async(
                self.model, text, system_prompt=CLASSIFIER_PROMPT
            )
        except Exception as e:
            self.logger.warning(f"Classifier call failed: {e}")
            return []
        return parse_json_array(response, logger=self.logger)

    async def classify_pages(self, page_texts: Sequence[str]) -> List[list]:
        """
        Classify all pages concurrently; results keep page order.
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async def classify_one(index: int, text: str) -> list:
            async with semaphore:
                nodes = await self.classify(text)
                self.logger.debug(f"Page {index + 1}: classifier returned {len(nodes)} node(s)")
                return nodes

        return list(await asyncio.gather(*(classify_one(i, t) for i, t in enumerate(page_texts))))

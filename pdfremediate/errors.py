"""Exception hierarchy for PDF remediation.

Most failures inside the tagging core are recoverable at page granularity and
never surface as exceptions: a bad classifier answer becomes an empty node
list, an undescribed image is simply left unlinked. The classes below cover
what remains: broken arena invariants, document-store failures while a page
is being applied, and a missing LLM configuration.
"""

from typing import Optional

__all__ = [
    "RemediationError",
    "StructureError",
    "PageTaggingError",
    "ClassifierError",
]


class RemediationError(RuntimeError):
    """Base exception for remediation workflows."""


class StructureError(RemediationError):
    """Raised when a structure element or index would break a tree invariant."""


class PageTaggingError(RemediationError):
    """Raised when writing a page into the document store fails."""

    def __init__(self, page_index: int, message: Optional[str] = None) -> None:
        self.page_index = page_index
        super().__init__(message or f"Failed to apply structure to page {page_index + 1}")


class ClassifierError(RemediationError):
    """Raised when the LLM collaborator cannot be configured."""

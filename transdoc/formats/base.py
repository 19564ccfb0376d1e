"""
Format handler interface shared by the extractor and the rebuilder.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import NamedTuple, Optional, Tuple


class DocumentFormat(str, Enum):
    TXT = "txt"
    MARKDOWN = "md"
    CSV = "csv"
    JSON = "json"
    PDF = "pdf"
    DOCX = "docx"


class RawText(NamedTuple):
    """Plain text as read from a document, before formula protection"""
    text: str
    page_count: Optional[int] = None


class FormatHandler(ABC):
    """
    Capability interface for one document format.

    Subclasses declare the MIME types and extensions they accept, how to pull
    text out of the original bytes and how to write translated text back into
    the same container.
    """

    kind: DocumentFormat
    label: str = ""
    mime_types: Tuple[str, ...] = ()
    extensions: Tuple[str, ...] = ()

    @property
    def output_mime_type(self) -> str:
        return self.mime_types[0]

    @property
    def default_extension(self) -> str:
        return self.extensions[0].lstrip('.')

    @abstractmethod
    def extract(self, data: bytes) -> RawText:
        """Return the document text."""

    @abstractmethod
    def rebuild(self, original: bytes, translated_text: str) -> bytes:
        """Serialize translated text into this format."""

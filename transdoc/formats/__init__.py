"""
Format handlers and the registry that dispatches documents to them.
"""

from typing import Dict, Iterable, List, Optional

from ..errors import UnsupportedFormatError
from ..models import SourceDocument
from .base import DocumentFormat, FormatHandler, RawText
from .docx_format import DOCXHandler
from .pdf_format import PDFHandler
from .text_format import CsvHandler, JsonHandler, MarkdownHandler, TextHandler


def _normalize_mime(mime_type: Optional[str]) -> str:
    # "text/plain;charset=utf-8" -> "text/plain"
    return (mime_type or "").split(";")[0].strip().lower()


class FormatRegistry:
    """
    Maps each DocumentFormat to the handler able to extract and rebuild it.

    Lookup uses the MIME type first and the file extension as a fallback.
    """

    def __init__(self, handlers: Iterable[FormatHandler] = ()):
        self._handlers: Dict[DocumentFormat, FormatHandler] = {}
        self._by_mime: Dict[str, FormatHandler] = {}
        self._by_extension: Dict[str, FormatHandler] = {}
        for handler in handlers:
            self.register(handler)

    def register(self, handler: FormatHandler) -> None:
        self._handlers[handler.kind] = handler
        for mime in handler.mime_types:
            self._by_mime[mime] = handler
        for ext in handler.extensions:
            self._by_extension[ext] = handler

    def get(self, kind: DocumentFormat) -> FormatHandler:
        return self._handlers[kind]

    def find(self, file_name: str, mime_type: Optional[str] = None) -> Optional[FormatHandler]:
        handler = self._by_mime.get(_normalize_mime(mime_type))
        if handler is None:
            ext = SourceDocument(file_name, b"").extension
            handler = self._by_extension.get(ext)
        return handler

    def resolve(self, document: SourceDocument) -> FormatHandler:
        """
        Find the handler for a document.

        Raises:
            UnsupportedFormatError: if neither MIME type nor extension is registered
        """
        handler = self.find(document.file_name, document.mime_type)
        if handler is None:
            raise UnsupportedFormatError(document.mime_type or document.file_name)
        return handler

    def supports(self, file_name: str, mime_type: Optional[str] = None) -> bool:
        return self.find(file_name, mime_type) is not None

    @property
    def kinds(self) -> List[DocumentFormat]:
        return list(self._handlers)

    @property
    def extensions(self) -> List[str]:
        return sorted(self._by_extension)


def default_registry() -> FormatRegistry:
    return FormatRegistry([
        TextHandler(),
        MarkdownHandler(),
        CsvHandler(),
        JsonHandler(),
        PDFHandler(),
        DOCXHandler(),
    ])


__all__ = [
    'DocumentFormat',
    'FormatHandler',
    'FormatRegistry',
    'RawText',
    'TextHandler',
    'MarkdownHandler',
    'CsvHandler',
    'JsonHandler',
    'PDFHandler',
    'DOCXHandler',
    'default_registry',
]

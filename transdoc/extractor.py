"""
Text extraction: routes a document to its format handler and protects formulas.
"""

import logging
from typing import Optional

from .errors import ExtractionError, TransDocError
from .formats import FormatRegistry, default_registry
from .formulas import FormulaPreserver
from .models import ContentMetadata, ExtractedContent, SourceDocument

log = logging.getLogger(__name__)


class Extractor:
    """
    Turns an uploaded document into ExtractedContent.
    """

    def __init__(self, registry: Optional[FormatRegistry] = None,
                 preserver: Optional[FormulaPreserver] = None):
        self.registry = registry or default_registry()
        self.preserver = preserver or FormulaPreserver()

    def extract(self, document: SourceDocument) -> ExtractedContent:
        """
        Extract text from a document and replace formulas with placeholders.

        Args:
            document: The uploaded document

        Returns:
            ExtractedContent with placeholder text, formula map and metadata

        Raises:
            UnsupportedFormatError: if no handler accepts the document
            ExtractionError: if the handler fails to parse it
        """
        handler = self.registry.resolve(document)

        try:
            raw = handler.extract(document.data)
        except TransDocError:
            raise
        except Exception as e:
            raise ExtractionError(f"Failed to extract from {handler.label}: {e}") from e

        stripped = self.preserver.strip(raw.text)
        log.info("Extracted %d characters from %s (%s, %d formulas)",
                 len(stripped.clean_text), document.file_name, handler.label, len(stripped.formulas))

        return ExtractedContent(
            text=stripped.clean_text,
            formulas=stripped.formulas,
            metadata=ContentMetadata(page_count=raw.page_count, detected_language='auto'),
        )

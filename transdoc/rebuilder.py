"""
Rebuilds the translated document in its original container format.
"""

import logging
from typing import Optional

from .errors import RebuildError
from .formats import FormatRegistry, default_registry
from .models import RebuiltArtifact, SourceDocument

log = logging.getLogger(__name__)

FALLBACK_MIME_TYPE = "text/plain"
TRANSLATED_SUFFIX = "_translated"


def translated_file_name(document: SourceDocument, extension: Optional[str] = None) -> str:
    """
    Build the download name: <original-name-without-extension>_translated.<ext>
    """
    ext = extension or document.extension.lstrip('.') or 'txt'
    return f"{document.stem}{TRANSLATED_SUFFIX}.{ext}"


class Rebuilder:
    """
    Dispatches translated text to the document's format handler.

    When the format-specific rebuild fails the translated text is returned as a
    plain-text artifact instead of failing the run.
    """

    def __init__(self, registry: Optional[FormatRegistry] = None):
        self.registry = registry or default_registry()

    def rebuild(self, document: SourceDocument, translated_text: str) -> RebuiltArtifact:
        """
        Rebuild a translated document.

        Args:
            document: The original upload
            translated_text: Translated text with formulas already restored

        Returns:
            RebuiltArtifact in the original format, or the plain-text fallback

        Raises:
            RebuildError: if even the plain-text fallback cannot be produced
        """
        handler = self.registry.find(document.file_name, document.mime_type)
        if handler is None:
            log.warning("No handler for %s, emitting plain text", document.file_name)
            return self.fallback(document, translated_text)

        try:
            content = handler.rebuild(document.data, translated_text)
        except Exception as e:
            log.error("%s rebuild failed for %s: %s", handler.label, document.file_name, e)
            return self.fallback(document, translated_text)

        ext = document.extension.lstrip('.') or handler.default_extension
        return RebuiltArtifact(
            content=content,
            file_name=translated_file_name(document, ext),
            mime_type=handler.output_mime_type,
        )

    def fallback(self, document: SourceDocument, translated_text: str) -> RebuiltArtifact:
        try:
            content = translated_text.encode('utf-8')
        except UnicodeError as e:
            raise RebuildError(f"Could not write translated text: {e}") from e

        return RebuiltArtifact(
            content=content,
            file_name=translated_file_name(document, 'txt'),
            mime_type=FALLBACK_MIME_TYPE,
            fallback=True,
        )

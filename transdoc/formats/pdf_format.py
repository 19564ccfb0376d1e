"""
PDF handler built on PyMuPDF.

Extraction walks the text layer page by page and tags each page with a
``[Page n]`` marker. Rebuilding keeps the original pages and overlays a short
excerpt of the translated page text at the bottom of each page; it is not a
layout-preserving re-typeset.
"""

import re
import html
import logging
from typing import Dict

import fitz  # PyMuPDF

from .base import DocumentFormat, FormatHandler, RawText

log = logging.getLogger(__name__)

PAGE_MARKER = "[Page {}]"
PAGE_MARKER_RE = re.compile(r'\[Page (\d+)\]', re.IGNORECASE)

OVERLAY_CHARS = 200
OVERLAY_FONT_SIZE = 8
OVERLAY_COLOR = (128, 128, 128)
OVERLAY_MARGIN_X = 50
OVERLAY_BASELINE = 30  # distance of the overlay from the bottom edge, in points


def split_pages(text: str) -> Dict[int, str]:
    """
    Split text produced by extract() back into per-page sections.

    Args:
        text: Text containing [Page n] markers

    Returns:
        Dictionary mapping 1-based page numbers to their stripped text
    """
    parts = PAGE_MARKER_RE.split(text)
    # parts = [preamble, num, body, num, body, ...]
    sections = {}
    for i in range(1, len(parts) - 1, 2):
        sections[int(parts[i])] = parts[i + 1].strip()
    return sections


class PDFHandler(FormatHandler):
    kind = DocumentFormat.PDF
    label = "PDF"
    mime_types = ("application/pdf",)
    extensions = (".pdf",)

    def extract(self, data: bytes) -> RawText:
        doc = fitz.open(stream=data, filetype="pdf")
        try:
            full_text = ""
            for page_num in range(len(doc)):
                page_text = doc[page_num].get_text("text")
                full_text += f"\n{PAGE_MARKER.format(page_num + 1)}\n" + page_text.strip() + "\n"
            return RawText(full_text, page_count=len(doc))
        finally:
            doc.close()

    def rebuild(self, original: bytes, translated_text: str) -> bytes:
        sections = split_pages(translated_text)

        doc = fitz.open(stream=original, filetype="pdf")
        try:
            overlaid = 0
            for page_num in range(len(doc)):
                section = sections.get(page_num + 1, "")
                if not section:
                    continue

                page = doc[page_num]
                width, height = page.rect.width, page.rect.height
                rect = fitz.Rect(
                    OVERLAY_MARGIN_X,
                    height - OVERLAY_BASELINE - 2 * OVERLAY_FONT_SIZE,
                    width - OVERLAY_MARGIN_X,
                    height - OVERLAY_BASELINE + OVERLAY_FONT_SIZE,
                )

                # htmlbox handles non-Latin scripts and wraps/shrinks to fit
                excerpt = html.escape(section[:OVERLAY_CHARS] + "...")
                page.insert_htmlbox(
                    rect,
                    f'<span style="font-size:{OVERLAY_FONT_SIZE}pt; color:rgb{OVERLAY_COLOR};">{excerpt}</span>',
                    css="body { margin: 0; padding: 0; }",
                )
                overlaid += 1

            log.debug("Overlaid translated text on %d of %d pages", overlaid, len(doc))
            if overlaid == 0 and translated_text.strip():
                # Page markers did not survive translation; nothing would be written
                raise ValueError("Translated text has no [Page n] section matching the document's pages")

            return doc.tobytes(garbage=4, deflate=True, clean=True)
        finally:
            doc.close()

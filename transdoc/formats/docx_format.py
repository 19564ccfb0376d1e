"""
Word (DOCX) handler built on python-docx.

The rebuilt document is a flat sequence of paragraphs: original styling,
tables and images are not carried over.
"""

import io
from typing import List

from docx import Document
from docx.enum.text import WD_LINE_SPACING
from docx.shared import Pt

from .base import DocumentFormat, FormatHandler, RawText

FONT_NAME = "Calibri"
FONT_SIZE = Pt(12)


class DOCXHandler(FormatHandler):
    kind = DocumentFormat.DOCX
    label = "DOCX"
    mime_types = ("application/vnd.openxmlformats-officedocument.wordprocessingml.document",)
    extensions = (".docx",)

    def extract(self, data: bytes) -> RawText:
        doc = Document(io.BytesIO(data))

        # Body paragraphs first, then table cell paragraphs
        lines: List[str] = [paragraph.text for paragraph in doc.paragraphs]
        for table in doc.tables:
            for row in table.rows:
                for cell in row.cells:
                    lines.extend(paragraph.text for paragraph in cell.paragraphs)

        return RawText("\n".join(lines))

    def rebuild(self, original: bytes, translated_text: str) -> bytes:
        doc = Document()

        for line in translated_text.split("\n"):
            if not line.strip():
                continue
            paragraph = doc.add_paragraph()
            paragraph.paragraph_format.line_spacing_rule = WD_LINE_SPACING.SINGLE
            run = paragraph.add_run(line.strip())
            run.font.name = FONT_NAME
            run.font.size = FONT_SIZE

        buffer = io.BytesIO()
        doc.save(buffer)
        return buffer.getvalue()

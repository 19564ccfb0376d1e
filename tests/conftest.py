"""Shared fixtures for the transdoc test suite.

Documents are generated in memory with the same libraries the handlers use,
so the suite needs no binary fixtures on disk.
"""

import io
import logging
import sys
import threading
from typing import List, Optional

import fitz
import pytest
from docx import Document

from transdoc.errors import TranslationError
from transdoc.formats import default_registry
from transdoc.translators import Translator

logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
    force=True,
)

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def make_pdf(pages: List[str]) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((72, 72), text, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


def make_docx(paragraphs: List[str], table: Optional[List[List[str]]] = None) -> bytes:
    doc = Document()
    for text in paragraphs:
        doc.add_paragraph(text)
    if table:
        grid = doc.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                grid.cell(r, c).text = value
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


class EchoTranslator(Translator):
    """No-op translation that records its calls"""

    name = "echo"

    def __init__(self):
        self.calls = []

    def translate(self, text, target_language, source_language="auto"):
        self.calls.append((text, target_language, source_language))
        return text


class UpperTranslator(Translator):
    name = "upper"

    def translate(self, text, target_language, source_language="auto"):
        return text.upper()


class FailingTranslator(Translator):
    name = "failing"

    def __init__(self, exc: Exception = None):
        self.exc = exc or TranslationError("Translation failed: quota exceeded")

    def translate(self, text, target_language, source_language="auto"):
        raise self.exc


class DroppingTranslator(Translator):
    """Loses every formula placeholder, like a careless model would"""

    name = "dropping"

    def translate(self, text, target_language, source_language="auto"):
        import re
        return re.sub(r'__FORMULA_\d+__', '', text)


class BlockingTranslator(Translator):
    """Holds the pipeline in TRANSLATING until released"""

    name = "blocking"

    def __init__(self):
        self.started = threading.Event()
        self.release = threading.Event()

    def translate(self, text, target_language, source_language="auto"):
        self.started.set()
        self.release.wait(timeout=5)
        return text


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def echo_translator():
    return EchoTranslator()


@pytest.fixture
def pdf_bytes() -> bytes:
    return make_pdf(["First page text", "Second page with $x^2$", "Third page"])


@pytest.fixture
def docx_bytes() -> bytes:
    return make_docx(
        ["Quarterly report", "", "Revenue grew by $\\Delta = 5\\%$ this year."],
        table=[["Region", "Sales"], ["North", "120"]],
    )

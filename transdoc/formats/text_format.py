"""
Plain text formats: .txt plus markdown, csv and json, which are translated as text.
"""

from .base import DocumentFormat, FormatHandler, RawText


class TextHandler(FormatHandler):
    kind = DocumentFormat.TXT
    label = "TXT"
    mime_types = ("text/plain",)
    extensions = (".txt", ".text")

    encoding = "utf-8"

    def extract(self, data: bytes) -> RawText:
        # utf-8-sig drops a leading BOM written by some editors
        return RawText(data.decode("utf-8-sig"))

    def rebuild(self, original: bytes, translated_text: str) -> bytes:
        return translated_text.encode(self.encoding)


class MarkdownHandler(TextHandler):
    kind = DocumentFormat.MARKDOWN
    label = "Markdown"
    mime_types = ("text/markdown", "text/x-markdown")
    extensions = (".md", ".markdown")


class CsvHandler(TextHandler):
    kind = DocumentFormat.CSV
    label = "CSV"
    mime_types = ("text/csv",)
    extensions = (".csv",)


class JsonHandler(TextHandler):
    kind = DocumentFormat.JSON
    label = "JSON"
    mime_types = ("application/json",)
    extensions = (".json",)

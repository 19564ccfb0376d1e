"""
Error taxonomy for the translation pipeline.
"""


class TransDocError(Exception):
    """Base class for all pipeline errors"""


class ValidationError(TransDocError):
    """Raised when an uploaded document is rejected before processing"""


class UnsupportedFormatError(ValidationError):
    """Raised when no format handler accepts the document"""

    def __init__(self, file_type: str):
        self.file_type = file_type
        super().__init__(f"Unsupported file type: {file_type}")


class ExtractionError(TransDocError):
    """Raised when a document cannot be parsed into text"""


class TranslationError(TransDocError):
    """Raised when the translation backend fails"""


class FormulaRestoreError(TranslationError):
    """Raised in strict mode when formula placeholders did not survive translation"""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(
            f"{len(self.missing)} formula placeholder(s) lost in translation: "
            + ", ".join(self.missing)
        )


class RebuildError(TransDocError):
    """Raised when neither the format rebuild nor the plain-text fallback succeeded"""


class UnknownError(TransDocError):
    """Wraps unexpected exceptions raised inside a pipeline run"""


class PipelineStateError(TransDocError):
    """Raised when an operation is not allowed in the current pipeline state"""

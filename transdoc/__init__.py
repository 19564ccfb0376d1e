"""
transdoc - document translation with formula preservation.

Extraction -> translation -> rebuild for TXT, PDF and DOCX files.
"""

from .errors import (
    ExtractionError,
    FormulaRestoreError,
    PipelineStateError,
    RebuildError,
    TransDocError,
    TranslationError,
    UnknownError,
    UnsupportedFormatError,
    ValidationError,
)
from .extractor import Extractor
from .formulas import FormulaPreserver
from .models import (
    ContentMetadata,
    ExtractedContent,
    LANGUAGES,
    LanguageOption,
    RebuiltArtifact,
    SourceDocument,
)
from .pipeline import PipelineSnapshot, PipelineState, TranslationPipeline
from .rebuilder import Rebuilder

__version__ = "1.0.0"

__all__ = [
    'TranslationPipeline',
    'PipelineState',
    'PipelineSnapshot',
    'Extractor',
    'Rebuilder',
    'FormulaPreserver',
    'SourceDocument',
    'ExtractedContent',
    'ContentMetadata',
    'RebuiltArtifact',
    'LanguageOption',
    'LANGUAGES',
    'TransDocError',
    'ValidationError',
    'UnsupportedFormatError',
    'ExtractionError',
    'TranslationError',
    'FormulaRestoreError',
    'RebuildError',
    'UnknownError',
    'PipelineStateError',
]

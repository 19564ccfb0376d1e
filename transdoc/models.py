"""
Data classes shared by the extraction, translation and rebuild stages.
"""

from dataclasses import dataclass, field
from pathlib import PurePath
from types import MappingProxyType
from typing import List, Mapping, Optional


@dataclass(frozen=True)
class SourceDocument:
    """An uploaded document held in memory"""
    file_name: str
    data: bytes
    mime_type: Optional[str] = None

    @property
    def extension(self) -> str:
        """Lower-cased extension including the dot, or an empty string"""
        return PurePath(self.file_name).suffix.lower()

    @property
    def stem(self) -> str:
        return PurePath(self.file_name).stem

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ContentMetadata:
    page_count: Optional[int] = None
    detected_language: Optional[str] = None


@dataclass(frozen=True)
class ExtractedContent:
    """
    Text pulled out of a document, with formulas already replaced by placeholders.

    ``formulas`` maps each placeholder token to the formula it stands for.
    """
    text: str
    formulas: Mapping[str, str] = field(default_factory=dict)
    metadata: Optional[ContentMetadata] = None

    def __post_init__(self):
        # Freeze the mapping so the content stays immutable after extraction
        object.__setattr__(self, 'formulas', MappingProxyType(dict(self.formulas)))


@dataclass(frozen=True)
class RebuiltArtifact:
    """Translated document ready for download"""
    content: bytes
    file_name: str
    mime_type: str
    fallback: bool = False

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class LanguageOption:
    code: str  # ISO 639-1
    display_name: str


# English, Spanish and Arabic are the primary pairs, the rest are accepted by the Gemini engine
LANGUAGES: List[LanguageOption] = [
    LanguageOption('en', 'English'), LanguageOption('es', 'Spanish'),
    LanguageOption('ar', 'Arabic'), LanguageOption('fr', 'French'),
    LanguageOption('de', 'German'), LanguageOption('it', 'Italian'),
    LanguageOption('pt', 'Portuguese'), LanguageOption('ru', 'Russian'),
    LanguageOption('ja', 'Japanese'), LanguageOption('ko', 'Korean'),
    LanguageOption('zh', 'Chinese'), LanguageOption('hi', 'Hindi'),
    LanguageOption('nl', 'Dutch'), LanguageOption('sv', 'Swedish'),
    LanguageOption('pl', 'Polish'), LanguageOption('tr', 'Turkish'),
    LanguageOption('he', 'Hebrew'), LanguageOption('no', 'Norwegian'),
    LanguageOption('da', 'Danish'), LanguageOption('fi', 'Finnish'),
    LanguageOption('cs', 'Czech'), LanguageOption('hu', 'Hungarian'),
    LanguageOption('el', 'Greek'), LanguageOption('th', 'Thai'),
    LanguageOption('vi', 'Vietnamese'), LanguageOption('id', 'Indonesian'),
    LanguageOption('ms', 'Malay'), LanguageOption('ro', 'Romanian'),
    LanguageOption('uk', 'Ukrainian'), LanguageOption('bg', 'Bulgarian'),
    LanguageOption('hr', 'Croatian'), LanguageOption('sr', 'Serbian'),
    LanguageOption('sk', 'Slovak'), LanguageOption('sl', 'Slovenian'),
    LanguageOption('et', 'Estonian'), LanguageOption('lv', 'Latvian'),
    LanguageOption('lt', 'Lithuanian'),
]

_BY_CODE = {lang.code: lang for lang in LANGUAGES}
_BY_NAME = {lang.display_name.lower(): lang for lang in LANGUAGES}


def get_language(code: str) -> Optional[LanguageOption]:
    return _BY_CODE.get(code.lower())


def find_language(name: str) -> Optional[LanguageOption]:
    return _BY_NAME.get(name.lower())


def resolve_language(value: str) -> Optional[LanguageOption]:
    """
    Look up a language by ISO code or display name.

    Args:
        value: Either a code ("es") or a name ("Spanish"), case-insensitive

    Returns:
        The matching LanguageOption, or None
    """
    return get_language(value) or find_language(value)


def language_code(name: str) -> str:
    """Convert a display name to its ISO code, defaulting to English."""
    lang = find_language(name)
    return lang.code if lang else 'en'

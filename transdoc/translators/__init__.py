"""
Translation engines behind a single Translator seam.
"""

from typing import Optional

from ..config import Settings
from .core import Translator, batch_translate
from .gemini import GeminiTranslator
from .ondevice import (
    ModelCache,
    OnDeviceTranslator,
    TRANSLATION_MODELS,
    is_model_available,
    supported_language_pairs,
)


def build_translator(settings: Settings, cache: Optional[ModelCache] = None) -> Translator:
    """
    Create the translator selected by ``settings.engine``.

    Args:
        settings: Application settings
        cache: Model cache for the on-device engine (a new one is created if omitted)

    Returns:
        Configured Translator
    """
    if settings.engine == "ondevice":
        return OnDeviceTranslator(cache or ModelCache(), placeholder=settings.placeholder_translation)
    return GeminiTranslator(api_key=settings.gemini_api_key, model=settings.model)


__all__ = [
    'Translator',
    'GeminiTranslator',
    'OnDeviceTranslator',
    'ModelCache',
    'TRANSLATION_MODELS',
    'batch_translate',
    'build_translator',
    'is_model_available',
    'supported_language_pairs',
]

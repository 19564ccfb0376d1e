"""
Remote translation through the Google Gemini API.
"""

import logging
from typing import Optional

from google import genai

from ..config import DEFAULT_MODEL
from ..errors import TranslationError
from .core import Translator

log = logging.getLogger(__name__)


def build_prompt(text: str, target_language: str, source_language: str = "auto") -> str:
    if not source_language or source_language.lower() == "auto":
        direction = f"into {target_language}"
    else:
        direction = f"from {source_language} into {target_language}"

    return (
        f"You are a professional technical translator. Translate {direction} with precise domain terminology and preserve formatting exactly.\n\n"
        "Strictly preserve original formatting and layout: line breaks, indentation, spacing, bullet/numbered lists, tables, and code blocks.\n"
        "Do not add explanations. Do not change capitalization of proper nouns.\n"
        "CRITICAL: Keep every placeholder of the form __FORMULA_0__, __FORMULA_1__, ... EXACTLY as it appears, once each.\n"
        "Keep page markers such as [Page 1] unchanged and on their own line.\n"
        "Keep URLs and IDs unchanged.\n"
        "Return ONLY the translated text, without markdown code fences or conversational filler.\n\n"
        "Text to translate:\n"
        f"{text}"
    )


class GeminiTranslator(Translator):
    """
    Translator backed by a Gemini model via google-genai.
    """

    name = "gemini"

    def __init__(self, api_key: Optional[str] = None, model: str = DEFAULT_MODEL,
                 client=None, temperature: float = 0.0):
        """
        Initialize the Gemini translator.

        Args:
            api_key: Gemini API key (the client is created on first use)
            model: Gemini model to use for translation
            client: Pre-built genai client, mainly for tests
            temperature: Sampling temperature passed to the model
        """
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise TranslationError("GEMINI_API_KEY is required for the Gemini engine")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def translate(self, text: str, target_language: str,
                  source_language: str = "auto") -> str:
        if not text or not text.strip():
            return text

        prompt = build_prompt(text, target_language, source_language)
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config={"temperature": self.temperature},
            )
        except TranslationError:
            raise
        except Exception as e:
            log.error("Gemini translation error: %s", e)
            raise TranslationError(f"Translation failed: {e}") from e

        translated = (response.text or "").strip()
        if not translated:
            raise TranslationError("Translation failed: the model returned no text")
        return translated

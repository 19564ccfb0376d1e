"""
On-device translation with Hugging Face models, one model per language pair.

Models are loaded lazily into a ModelCache that the caller owns and passes in,
so a process can share one cache between pipelines and tests can swap the
loader out. Pairs without a model fall back to the placeholder translation
(upper-casing the input) until a fine-tuned model is available.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..errors import TranslationError
from ..formats.pdf_format import PAGE_MARKER_RE
from ..models import language_code
from .core import Translator

log = logging.getLogger(__name__)

NLLB_MODEL = "facebook/nllb-200-distilled-600M"

# ISO 639-1 -> NLLB language tags
NLLB_CODES = {
    'en': 'eng_Latn',
    'es': 'spa_Latn',
    'ar': 'arb_Arab',
}


@dataclass(frozen=True)
class TranslationModel:
    model: str
    src_lang: str
    tgt_lang: str


def _nllb(src: str, tgt: str) -> TranslationModel:
    return TranslationModel(NLLB_MODEL, NLLB_CODES[src], NLLB_CODES[tgt])


TRANSLATION_MODELS: Dict[str, TranslationModel] = {
    'en_to_es': _nllb('en', 'es'),
    'en_to_ar': _nllb('en', 'ar'),
    'es_to_en': _nllb('es', 'en'),
    'ar_to_en': _nllb('ar', 'en'),
}


def pair_key(source_language: str, target_language: str) -> str:
    return f"{language_code(source_language)}_to_{language_code(target_language)}"


class Seq2SeqModel:
    """
    Tokenizer and seq2seq model for one translation direction.

    Calling the instance translates a batch of lines and returns the decoded
    strings in the same order.
    """

    def __init__(self, spec: TranslationModel, max_length: int = 512):
        from transformers import AutoModelForSeq2SeqLM, AutoTokenizer

        self.tokenizer = AutoTokenizer.from_pretrained(spec.model, src_lang=spec.src_lang)
        self.model = AutoModelForSeq2SeqLM.from_pretrained(spec.model)
        self.tgt_lang = spec.tgt_lang
        self.max_length = max_length

    def __call__(self, lines: List[str]) -> List[str]:
        inputs = self.tokenizer(lines, return_tensors="pt", padding=True, truncation=True)
        translated_ids = self.model.generate(
            **inputs,
            forced_bos_token_id=self.tokenizer.convert_tokens_to_ids(self.tgt_lang),
            max_length=self.max_length,
        )
        return [text.strip() for text in self.tokenizer.batch_decode(translated_ids, skip_special_tokens=True)]


def load_model(spec: TranslationModel) -> Seq2SeqModel:
    """Load the model for a language pair (requires the ondevice extra)."""
    return Seq2SeqModel(spec)


class ModelCache:
    """
    Process-scoped cache of loaded translation models keyed by language pair.
    """

    def __init__(self, loader: Callable[[TranslationModel], Any] = load_model,
                 models: Optional[Dict[str, TranslationModel]] = None):
        self.loader = loader
        self.models = TRANSLATION_MODELS if models is None else models
        self._loaded: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def __contains__(self, key: str) -> bool:
        return key in self._loaded

    def __len__(self) -> int:
        return len(self._loaded)

    def get(self, key: str):
        """
        Return the model for a language pair, loading it on first use.

        Raises:
            TranslationError: if the pair has no model or loading fails
        """
        with self._lock:
            if key in self._loaded:
                return self._loaded[key]

            spec = self.models.get(key)
            if spec is None:
                raise TranslationError(f"Translation model not available for {key}")

            log.info("Loading translation model %s for %s", spec.model, key)
            try:
                model = self.loader(spec)
            except Exception as e:
                raise TranslationError(f"Model loading failed: {e}") from e

            self._loaded[key] = model
            return model

    def clear(self) -> None:
        with self._lock:
            self._loaded.clear()


def is_model_available(source_language: str, target_language: str) -> bool:
    return pair_key(source_language, target_language) in TRANSLATION_MODELS


def supported_language_pairs() -> List[str]:
    return list(TRANSLATION_MODELS)


def placeholder_translate(text: str) -> str:
    return text.upper()


class OnDeviceTranslator(Translator):
    """
    Translator that runs a local model for the requested language pair.
    """

    name = "ondevice"

    def __init__(self, cache: ModelCache, placeholder: bool = False, batch_size: int = 8):
        """
        Args:
            cache: Shared model cache
            placeholder: Always use the placeholder translation instead of a model
            batch_size: Number of lines sent to the model per call
        """
        self.cache = cache
        self.placeholder = placeholder
        self.batch_size = batch_size

    def translate(self, text: str, target_language: str,
                  source_language: str = "English") -> str:
        if not text or not text.strip():
            return text

        key = pair_key(source_language, target_language)
        if self.placeholder or key not in self.cache.models:
            if not self.placeholder:
                log.warning("No on-device model for %s, using placeholder translation", key)
            return placeholder_translate(text)

        model = self.cache.get(key)

        # Translate line by line so page markers and blank lines keep their place
        lines = text.split("\n")
        todo = [
            idx for idx, line in enumerate(lines)
            if line.strip() and not PAGE_MARKER_RE.fullmatch(line.strip())
        ]
        try:
            for start in range(0, len(todo), self.batch_size):
                batch = todo[start:start + self.batch_size]
                outputs = model([lines[idx] for idx in batch])
                for idx, output in zip(batch, outputs):
                    lines[idx] = output
        except Exception as e:
            raise TranslationError(f"Translation failed: {e}") from e

        return "\n".join(lines)

    def prewarm(self, source_language: str, target_language: str) -> None:
        """Load the model for a pair ahead of time; failures are only logged."""
        try:
            self.cache.get(pair_key(source_language, target_language))
            log.info("Model pre-warmed for %s -> %s", source_language, target_language)
        except TranslationError as e:
            log.warning("Failed to pre-warm model: %s", e)

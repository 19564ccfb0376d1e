"""
Translator seam and helpers shared by all translation engines.
"""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
import concurrent.futures
from typing import Callable, List, Optional

log = logging.getLogger(__name__)


class Translator(ABC):
    """
    A translation engine. Implementations must return the translation of
    ``text`` or raise TranslationError; they never return partial results.
    """

    name = "base"

    @abstractmethod
    def translate(self, text: str, target_language: str,
                  source_language: str = "auto") -> str:
        """
        Translate text.

        Args:
            text: Text to translate
            target_language: Target language name (e.g. "Spanish")
            source_language: Source language name, or "auto"

        Returns:
            Translated text
        """


def batch_translate(translator: Translator, chunks: List[str], target_language: str,
                    source_language: str = "auto", max_workers: int = 4,
                    on_progress: Optional[Callable[[float], None]] = None) -> List[str]:
    """
    Translate several chunks in parallel, keeping their order.

    A chunk that fails is kept untranslated so one bad chunk does not sink the batch.

    Args:
        translator: Engine used for every chunk
        chunks: Text chunks in document order
        target_language: Target language name
        source_language: Source language name
        max_workers: Maximum number of concurrent translation calls
        on_progress: Optional callback receiving completed/total (0.0 to 1.0)

    Returns:
        Translated chunks, index-aligned with the input
    """
    if not chunks:
        return []

    results: List[Optional[str]] = [None] * len(chunks)
    completed = 0

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(chunks)))) as executor:
        future_to_idx = {
            executor.submit(translator.translate, chunk, target_language, source_language): idx
            for idx, chunk in enumerate(chunks)
        }

        for future in concurrent.futures.as_completed(future_to_idx):
            idx = future_to_idx[future]
            try:
                results[idx] = future.result()
            except Exception as e:
                log.warning("Batch translation failed at chunk %d: %s", idx, e)
                results[idx] = chunks[idx]

            completed += 1
            if on_progress:
                on_progress(completed / len(chunks))

    return results

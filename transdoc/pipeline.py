"""
Pipeline orchestration: extraction -> translation -> rebuild, as a state machine.

One TranslationPipeline handles one document at a time. State only changes
through the methods below, and every change is pushed to the registered
listeners as a PipelineSnapshot so a UI (CLI progress bar, websocket) can
follow along.
"""

import asyncio
import logging
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Callable, List, Mapping, Optional, Union

from .errors import (
    FormulaRestoreError,
    PipelineStateError,
    TransDocError,
    UnknownError,
    ValidationError,
)
from .extractor import Extractor
from .formats import FormatRegistry, default_registry
from .models import (
    ExtractedContent,
    LANGUAGES,
    LanguageOption,
    RebuiltArtifact,
    SourceDocument,
    resolve_language,
)
from .rebuilder import Rebuilder
from .translators import Translator

log = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    FILE_SELECTED = "file_selected"
    AWAITING_GATE = "awaiting_gate"  # UX wait before processing starts
    EXTRACTING = "extracting"
    TRANSLATING = "translating"
    REBUILDING = "rebuilding"
    COMPLETED = "completed"
    ERROR = "error"


RUNNING_STATES = frozenset({
    PipelineState.EXTRACTING,
    PipelineState.TRANSLATING,
    PipelineState.REBUILDING,
})

STATUS_MESSAGES = {
    PipelineState.IDLE: "Waiting for a document",
    PipelineState.FILE_SELECTED: "Ready to translate",
    PipelineState.AWAITING_GATE: "Starting soon...",
    PipelineState.EXTRACTING: "Extracting text...",
    PipelineState.TRANSLATING: "Translating...",
    PipelineState.REBUILDING: "Rebuilding document...",
    PipelineState.COMPLETED: "Translation completed successfully",
    PipelineState.ERROR: "Translation failed",
}

# Progress checkpoints reported to the UI, in run order
PROGRESS_EXTRACTING = 10
PROGRESS_EXTRACTED = 30
PROGRESS_TRANSLATING = 40
PROGRESS_TRANSLATED = 80
PROGRESS_RESTORED = 85
PROGRESS_REBUILDING = 90
PROGRESS_DONE = 100


@dataclass(frozen=True)
class PipelineSnapshot:
    """Read-only view of a pipeline for presentation layers"""
    state: PipelineState
    progress: int
    message: str
    error: Optional[str] = None
    file_name: Optional[str] = None
    output_file: Optional[str] = None
    output_mime_type: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in (PipelineState.COMPLETED, PipelineState.ERROR)

    def as_dict(self) -> dict:
        data = asdict(self)
        data['state'] = self.state.value
        return data


Listener = Callable[[PipelineSnapshot], None]
LanguageInput = Union[LanguageOption, str]


def _as_language(value: LanguageInput) -> LanguageOption:
    if isinstance(value, LanguageOption):
        return value
    lang = resolve_language(value)
    if lang is None:
        raise ValidationError(f"Unsupported language: {value}")
    return lang


class TranslationPipeline:
    """
    Runs one document through extraction, translation and rebuild.
    """

    def __init__(self, translator: Translator,
                 registry: Optional[FormatRegistry] = None,
                 extractor: Optional[Extractor] = None,
                 rebuilder: Optional[Rebuilder] = None,
                 strict_formulas: bool = False,
                 source_language: LanguageInput = LANGUAGES[0],
                 target_language: LanguageInput = LANGUAGES[1]):
        """
        Args:
            translator: Translation engine
            registry: Format registry shared by extractor and rebuilder
            extractor: Custom extractor (default: built from the registry)
            rebuilder: Custom rebuilder (default: built from the registry)
            strict_formulas: Fail the run when a formula placeholder is lost in translation
            source_language: Initial source language (default: English)
            target_language: Initial target language (default: Spanish)
        """
        self.registry = registry or default_registry()
        self.translator = translator
        self.extractor = extractor or Extractor(self.registry)
        self.rebuilder = rebuilder or Rebuilder(self.registry)
        self.strict_formulas = strict_formulas
        self.source_language = _as_language(source_language)
        self.target_language = _as_language(target_language)

        self._listeners: List[Listener] = []
        self._clear()

    def _clear(self) -> None:
        self._state = PipelineState.IDLE
        self._progress = 0
        self.document: Optional[SourceDocument] = None
        self.extracted: Optional[ExtractedContent] = None
        self.translated_text: Optional[str] = None
        self.artifact: Optional[RebuiltArtifact] = None
        self.error: Optional[str] = None
        self.validation_error: Optional[str] = None

    # ------------------------------------------------------------------ state

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def progress(self) -> int:
        return self._progress

    @property
    def is_running(self) -> bool:
        return self._state in RUNNING_STATES

    def snapshot(self) -> PipelineSnapshot:
        return PipelineSnapshot(
            state=self._state,
            progress=self._progress,
            message=self.error or self.validation_error or STATUS_MESSAGES[self._state],
            error=self.error,
            file_name=self.document.file_name if self.document else None,
            output_file=self.artifact.file_name if self.artifact else None,
            output_mime_type=self.artifact.mime_type if self.artifact else None,
        )

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                log.exception("Pipeline listener failed")

    def _transition(self, state: PipelineState, progress: Optional[int] = None) -> None:
        log.debug("Pipeline %s -> %s", self._state.value, state.value)
        self._state = state
        if progress is not None:
            # Progress never moves backwards within a run
            self._progress = max(self._progress, progress)
        self._notify()

    def _set_progress(self, progress: int) -> None:
        if progress > self._progress:
            self._progress = progress
            self._notify()

    def _require(self, *states: PipelineState) -> None:
        if self._state not in states:
            raise PipelineStateError(
                f"Cannot do this while {self._state.value}; expected one of "
                + ", ".join(s.value for s in states)
            )

    # ------------------------------------------------------------- operations

    def select_file(self, document: SourceDocument) -> None:
        """
        Choose the document to translate.

        Raises:
            ValidationError: if the file name is empty or the type is not supported;
                the state does not change
        """
        self._require(PipelineState.IDLE, PipelineState.FILE_SELECTED)

        try:
            if not document.file_name:
                raise ValidationError("Please upload a valid document.")
            self.registry.resolve(document)
        except ValidationError as e:
            self.validation_error = str(e)
            self._notify()
            raise

        self.document = document
        self.validation_error = None
        self._transition(PipelineState.FILE_SELECTED)

    def select_languages(self, source: LanguageInput, target: LanguageInput) -> None:
        if self.is_running:
            raise PipelineStateError("Cannot change languages while a document is being processed")
        self.source_language = _as_language(source)
        self.target_language = _as_language(target)

    def swap_languages(self) -> None:
        self.select_languages(self.target_language, self.source_language)

    def begin(self) -> None:
        """Enter the waiting gate that precedes processing."""
        if self.document is None:
            self.validation_error = "Please upload a valid document."
            raise ValidationError(self.validation_error)
        self._require(PipelineState.FILE_SELECTED)
        self._progress = 0
        self._transition(PipelineState.AWAITING_GATE)

    async def run(self) -> RebuiltArtifact:
        """
        Process the selected document once the gate has been passed.

        Returns:
            The rebuilt artifact

        Raises:
            TransDocError: the failure that moved the pipeline to ERROR
        """
        self._require(PipelineState.AWAITING_GATE, PipelineState.FILE_SELECTED)
        document = self.document

        try:
            self._transition(PipelineState.EXTRACTING, PROGRESS_EXTRACTING)
            self.extracted = await asyncio.to_thread(self.extractor.extract, document)
            self._set_progress(PROGRESS_EXTRACTED)

            self._transition(PipelineState.TRANSLATING, PROGRESS_TRANSLATING)
            translated = await asyncio.to_thread(
                self.translator.translate,
                self.extracted.text,
                self.target_language.display_name,
                self.source_language.display_name,
            )
            self._set_progress(PROGRESS_TRANSLATED)

            self.translated_text = self._restore_formulas(translated, self.extracted.formulas)
            self._set_progress(PROGRESS_RESTORED)

            self._transition(PipelineState.REBUILDING, PROGRESS_REBUILDING)
            self.artifact = await asyncio.to_thread(self.rebuilder.rebuild, document, self.translated_text)

            self._transition(PipelineState.COMPLETED, PROGRESS_DONE)
            log.info("Translated %s -> %s (%d bytes)", document.file_name,
                     self.artifact.file_name, self.artifact.size)
            return self.artifact

        except TransDocError as e:
            self._fail(e)
            raise
        except Exception as e:
            log.exception("Unexpected error while processing %s", document.file_name)
            error = UnknownError(str(e) or type(e).__name__)
            self._fail(error)
            raise error from e

    def _restore_formulas(self, translated: str, formulas: Mapping[str, str]) -> str:
        preserver = self.extractor.preserver
        missing = preserver.missing_placeholders(translated, formulas)
        if missing:
            if self.strict_formulas:
                raise FormulaRestoreError(missing)
            for placeholder in missing:
                log.warning("Formula placeholder %s was lost in translation (%r)",
                            placeholder, formulas[placeholder])
        return preserver.restore(translated, formulas)

    def _fail(self, error: Exception) -> None:
        self.error = f"Processing failed: {error}"
        log.error(self.error)
        self._transition(PipelineState.ERROR)

    def reset(self) -> None:
        """Return to IDLE, discarding the document and every derived artifact."""
        if self.is_running:
            raise PipelineStateError("Cannot reset while a document is being processed")
        self._clear()
        self._notify()

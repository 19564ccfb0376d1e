"""
Formula preservation around translation calls.

Math spans are swapped for ``__FORMULA_<n>__`` placeholders before the text is
sent to a translator and swapped back afterwards, so the translator never sees
(and cannot mangle) LaTeX.
"""

import re
import logging
from typing import Dict, List, Mapping, NamedTuple

log = logging.getLogger(__name__)

PLACEHOLDER_TEMPLATE = "__FORMULA_{}__"

# Alternatives are tried left to right at each position, so display math must
# come before inline math and braced commands before bare ones.
FORMULA_PATTERN = re.compile(
    r'__FORMULA_\d+(?:__)?'                    # placeholder-shaped text already in the source
    r'|\$\$.*?\$\$'                            # $$...$$
    r'|\\\[.*?\\\]'                            # \[...\]
    r'|\\\(.*?\\\)'                            # \(...\)
    r'|\\begin\{([^}]+)\}.*?\\end\{\1\}'       # \begin{env}...\end{env}
    r'|\$[^$]+\$'                              # $...$
    r'|\\[a-zA-Z]+\{[^}]*\}'                   # \command{...}
    r'|\\[a-zA-Z]+\[[^\]]*\]'                  # \command[...]
    r'|\\[a-zA-Z]+',                           # \command
    re.DOTALL,
)


class StrippedText(NamedTuple):
    clean_text: str
    formulas: Dict[str, str]


def _placeholder_regex(formulas: Mapping[str, str]):
    # Longest first so that __FORMULA_10__ is never shadowed by a shorter key
    keys = sorted(formulas, key=len, reverse=True)
    return re.compile('|'.join(re.escape(key) for key in keys))


class FormulaPreserver:
    """
    Replaces math expressions with placeholders and restores them afterwards.
    """

    def __init__(self, pattern=FORMULA_PATTERN):
        self.pattern = pattern

    def strip(self, text: str) -> StrippedText:
        """
        Replace every formula in the text with a sequential placeholder.

        Args:
            text: Text containing potential math expressions

        Returns:
            StrippedText of (clean_text, formulas) where formulas maps each
            placeholder to the original expression
        """
        if not text:
            return StrippedText(text, {})

        formulas: Dict[str, str] = {}

        def substitute(match):
            placeholder = PLACEHOLDER_TEMPLATE.format(len(formulas))
            formulas[placeholder] = match.group(0)
            return placeholder

        clean_text = self.pattern.sub(substitute, text)
        if formulas:
            log.debug("Protected %d formula(s)", len(formulas))
        return StrippedText(clean_text, formulas)

    def restore(self, text: str, formulas: Mapping[str, str]) -> str:
        """
        Put the original formulas back in place of their placeholders.

        Placeholders that are absent from the text are ignored; use
        missing_placeholders() to find them.

        Args:
            text: Translated text with placeholders
            formulas: Mapping returned by strip()

        Returns:
            Text with math expressions restored
        """
        if not formulas or not text:
            return text
        # Single pass, so a restored formula is never scanned again
        return _placeholder_regex(formulas).sub(lambda m: formulas[m.group(0)], text)

    def missing_placeholders(self, text: str, formulas: Mapping[str, str]) -> List[str]:
        """Return the placeholders from ``formulas`` that do not occur in ``text``."""
        if not formulas:
            return []
        found = set(_placeholder_regex(formulas).findall(text or ""))
        return [placeholder for placeholder in formulas if placeholder not in found]


_default = FormulaPreserver()


def strip(text: str) -> StrippedText:
    return _default.strip(text)


def restore(text: str, formulas: Mapping[str, str]) -> str:
    return _default.restore(text, formulas)


def missing_placeholders(text: str, formulas: Mapping[str, str]) -> List[str]:
    return _default.missing_placeholders(text, formulas)

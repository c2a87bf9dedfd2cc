"""Company name canonicalisation used as the matching key between callers and providers."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from functools import cached_property

DEFAULT_TRAILING_PHRASES: tuple[str, ...] = (
    "general public",
    "public",
    "foreign employment",
    "locals",
    "local",
    "foreign",
    "employees",
)

# Offering tags that some providers glue onto the end of the name; those
# providers extend their normalizer with them.
OFFERING_TAGS: tuple[str, ...] = ("ipo", "fpo")

DEFAULT_REPLACEMENTS: tuple[tuple[str, str], ...] = (
    (r"\bre[\s\-]?insurance\b", "reinsurance"),
)

_PARENTHETICAL = re.compile(r"\([^()]*\)")
_STRAY_PARENS = re.compile(r"[()\[\]]")
_DASHES = re.compile(r"[\-\u2010-\u2015]")
_LEGAL_WORDS = re.compile(r"\b(?:ltd|limited|pvt|private)\b\.?", re.IGNORECASE)
_TRAILING_PUNCTUATION = re.compile(r"[\s.,;:/]+$")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class CompanyNameNormalizer:
    """Deterministic, idempotent name canonicaliser.

    Every provider owns one instance; instances only differ in the trailing
    share type phrases and the literal replacements they know about. Input is
    lowercased before any pattern runs, so case folding cannot open up word
    boundaries on a second pass.
    """

    trailing_phrases: tuple[str, ...] = DEFAULT_TRAILING_PHRASES
    replacements: tuple[tuple[str, str], ...] = DEFAULT_REPLACEMENTS

    @cached_property
    def _replacement_patterns(self) -> tuple[tuple[re.Pattern[str], str], ...]:
        return tuple(
            (re.compile(pattern, re.IGNORECASE), replacement)
            for pattern, replacement in self.replacements
        )

    @cached_property
    def _trailing_pattern(self) -> re.Pattern[str]:
        phrases = sorted(
            {phrase.strip().lower() for phrase in self.trailing_phrases},
            key=len,
            reverse=True,
        )
        alternatives = "|".join(
            r"\s+".join(re.escape(word) for word in phrase.split()) for phrase in phrases if phrase
        )
        return re.compile(rf"\s+(?:for\s+)?(?:{alternatives})\.?$", re.IGNORECASE)

    def normalize(self, raw_name: str | None) -> str:
        if not raw_name:
            return ""

        value = str(raw_name).lower()
        previous = None
        while previous != value:
            previous = value
            value = _PARENTHETICAL.sub(" ", value)
        value = _STRAY_PARENS.sub(" ", value)
        value = _DASHES.sub(" ", value)
        value = _LEGAL_WORDS.sub(" ", value)
        value = _WHITESPACE.sub(" ", value).strip()

        # Runs to a fixed point so a second pass has nothing left to strip.
        previous = None
        while previous != value:
            previous = value
            for pattern, replacement in self._replacement_patterns:
                value = pattern.sub(replacement, value)
            value = _TRAILING_PUNCTUATION.sub("", value)
            value = self._trailing_pattern.sub("", value)

        return _WHITESPACE.sub(" ", value).strip()

    __call__ = normalize

    def extended(
        self,
        trailing_phrases: Sequence[str] = (),
        replacements: Sequence[tuple[str, str]] = (),
    ) -> CompanyNameNormalizer:
        """Return a normalizer that also knows *trailing_phrases* and *replacements*."""

        return CompanyNameNormalizer(
            trailing_phrases=(*self.trailing_phrases, *trailing_phrases),
            replacements=(*self.replacements, *replacements),
        )


DEFAULT_NORMALIZER = CompanyNameNormalizer()


def normalize_company_name(raw_name: str | None) -> str:
    """Normalise *raw_name* with the default phrase lists."""

    return DEFAULT_NORMALIZER.normalize(raw_name)


__all__ = [
    "DEFAULT_NORMALIZER",
    "DEFAULT_REPLACEMENTS",
    "DEFAULT_TRAILING_PHRASES",
    "OFFERING_TAGS",
    "CompanyNameNormalizer",
    "normalize_company_name",
]

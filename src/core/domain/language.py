"""Report languages.

Both the CLI flags and the settings layer resolve to this enum, so the
renderer only ever sees a validated value.
"""

from __future__ import annotations

from enum import Enum


class Language(str, Enum):
    """Languages available for the human-readable report."""

    ENGLISH = "en"
    SPANISH = "es"

    @classmethod
    def parse(cls, value: str | None, default: "Language | None" = None) -> "Language":
        """Map a loose user value (`es`, `ES`, `spanish`) to a member."""

        fallback = default or cls.ENGLISH
        if not value:
            return fallback
        cleaned = value.strip().lower()
        if cleaned in ("es", "spa", "spanish", "espanol", "español"):
            return cls.SPANISH
        if cleaned in ("en", "eng", "english"):
            return cls.ENGLISH
        return fallback

    def label(self) -> str:
        return "Español" if self is Language.SPANISH else "English"

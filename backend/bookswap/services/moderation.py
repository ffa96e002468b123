from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from bookswap.core.config import settings
from bookswap.core.errors import AbusiveContentError


logger = logging.getLogger(__name__)

FLAGGED_PLACEHOLDER = "This content has been flagged for review."


class Severity(str, Enum):
    CLEAN = "clean"
    FLAGGED = "flagged"
    BLOCKED = "blocked"


@dataclass
class Verdict:
    severity: Severity
    matches: list[str] = field(default_factory=list)

    @property
    def is_flagged(self) -> bool:
        return self.severity == Severity.FLAGGED


def _compile(terms: Iterable[str]) -> re.Pattern | None:
    escaped = [
        r"\s+".join(re.escape(part) for part in term.lower().split())
        for term in terms
        if term.strip()
    ]
    if not escaped:
        return None
    return re.compile(r"\b(?:" + "|".join(escaped) + r")\b", re.IGNORECASE)


class ContentFilter:
    def __init__(self, blocked_terms: Iterable[str], flagged_terms: Iterable[str]) -> None:
        self._blocked = _compile(blocked_terms)
        self._flagged = _compile(flagged_terms)

    @classmethod
    def from_settings(cls) -> "ContentFilter":
        return cls(settings.blocked_term_list, settings.flagged_term_list)

    def classify(self, text: str) -> Verdict:
        if self._blocked:
            found = [m.group(0).lower() for m in self._blocked.finditer(text)]
            if found:
                return Verdict(Severity.BLOCKED, found)
        if self._flagged:
            found = [m.group(0).lower() for m in self._flagged.finditer(text)]
            if found:
                return Verdict(Severity.FLAGGED, found)
        return Verdict(Severity.CLEAN)


def screen(text: str, content_filter: ContentFilter | None = None) -> Verdict:
    """Classify ``text``; raises ``AbusiveContentError`` for blocking content."""
    verdict = (content_filter or ContentFilter.from_settings()).classify(text)
    if verdict.severity == Severity.BLOCKED:
        logger.warning(f"Rejected content with blocked terms: {verdict.matches}")
        raise AbusiveContentError()
    if verdict.is_flagged:
        logger.info(f"Flagged content for review: {verdict.matches}")
    return verdict


def display_content(content: str, is_flagged: bool) -> str:
    return FLAGGED_PLACEHOLDER if is_flagged else content

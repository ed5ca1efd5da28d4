from __future__ import annotations

import enum
import logging
import re
from typing import Dict, Optional

from bs4 import BeautifulSoup


logger = logging.getLogger(__name__)

ESSENTIAL_SELECTORS = {'body', 'html', '*'}


class MatchResult(enum.Enum):
    MATCH = 'match'
    NO_MATCH = 'no_match'
    UNDECIDABLE = 'undecidable'

    @property
    def keep(self) -> bool:
        return self is not MatchResult.NO_MATCH


def parse_document(html: str) -> BeautifulSoup:
    """Parse the page snapshot once per pass; matchers only read it."""
    return BeautifulSoup(html or '', 'html.parser')


def normalize_selector(selector: str) -> str:
    """Reduce a selector to the structural part the matcher can test.

    Pseudo-classes/elements are cut off at the first ':'; ids and classes become
    attribute tests, classes as substring tests (".nav" also hits "navbar").
    """
    sel = selector.strip()
    sel = re.sub(r":.*", "", sel, flags=re.S).strip()
    sel = re.sub(r"#([a-zA-Z0-9_-]+)", r'[id="\1"]', sel)
    sel = re.sub(r"\.([a-zA-Z0-9_-]+)", r'[class*="\1"]', sel)
    # a trailing combinator left behind by the cut ("ul > :first-child" -> "ul >")
    sel = re.sub(r"[\s>+~]+$", "", sel)
    return sel


class SelectorMatcher:
    """Answers "does this selector hit anything in the page?" for one pass."""

    def __init__(self, document: BeautifulSoup):
        self.document = document
        self._memo: Dict[str, MatchResult] = {}

    @classmethod
    def from_html(cls, html: str) -> 'SelectorMatcher':
        return cls(parse_document(html))

    def evaluate(self, selector: str) -> MatchResult:
        selector = (selector or '').strip()
        if selector in ESSENTIAL_SELECTORS:
            return MatchResult.MATCH
        cached = self._memo.get(selector)
        if cached is not None:
            return cached
        result = self._evaluate(selector)
        self._memo[selector] = result
        return result

    def _evaluate(self, selector: str) -> MatchResult:
        test = normalize_selector(selector)
        if not test:
            return MatchResult.UNDECIDABLE
        if test in ESSENTIAL_SELECTORS:
            return MatchResult.MATCH
        try:
            found = self.document.select_one(test)
        except Exception as e:
            logger.debug('selector %r undecidable (%s): %s', selector, test, e)
            return MatchResult.UNDECIDABLE
        return MatchResult.MATCH if found is not None else MatchResult.NO_MATCH

    def matches(self, selector: str) -> bool:
        return self.evaluate(selector).keep


def matches(selector: str, document: BeautifulSoup, matcher: Optional[SelectorMatcher] = None) -> bool:
    matcher = matcher or SelectorMatcher(document)
    return matcher.matches(selector)

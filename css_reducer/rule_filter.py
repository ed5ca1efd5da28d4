from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

from .config import OptimizerConfig
from .matcher import SelectorMatcher
from .rules import AT_RULE, PASSTHROUGH, CssRule


# Conditional group rules follow the preserve_media_queries flag; every other
# at-rule (@font-face, @keyframes, @import, ...) is always kept.
MEDIA_LIKE_AT_RULES = {'media', 'supports', 'container', 'layer', 'document', '-moz-document'}


@dataclass(frozen=True)
class FilterDecision:
    keep: bool
    selectors: Tuple[str, ...] = ()
    reason: str = ''


def is_excluded_selector(selector: str, excluded_classes: Iterable[str]) -> bool:
    """Substring test against the whole selector text: '.nav' also excludes '.nav-item'."""
    for excluded in excluded_classes:
        if excluded and excluded in selector:
            return True
    return False


def filter_rule(rule: CssRule, matcher: SelectorMatcher, config: OptimizerConfig) -> FilterDecision:
    if rule.kind == PASSTHROUGH:
        return FilterDecision(True, reason='passthrough')
    if rule.kind == AT_RULE:
        if rule.at_keyword in MEDIA_LIKE_AT_RULES:
            if config.preserve_media_queries:
                return FilterDecision(True, reason='media-preserved')
            return FilterDecision(False, reason='media-dropped')
        return FilterDecision(True, reason='at-rule')

    selectors: List[str] = rule.selectors
    for selector in selectors:
        if is_excluded_selector(selector, config.excluded_classes):
            return FilterDecision(True, tuple(selectors), reason='excluded')
        result = matcher.evaluate(selector)
        if result.keep:
            return FilterDecision(True, tuple(selectors), reason=result.value)
    return FilterDecision(False, tuple(selectors), reason='unused')

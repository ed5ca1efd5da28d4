from __future__ import annotations

import enum
import gc
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .budget import ProcessingBudget
from .config import OptimizerConfig
from .declarations import dedupe_declarations
from .matcher import SelectorMatcher
from .minify import minify_css
from .rule_filter import filter_rule
from .rules import PASSTHROUGH, STYLE, CssRule, parse_rules
from .sources import CssLoader, SkipPolicy, StylesheetRegistry, StylesheetSource
from .urls import rewrite_urls, stylesheet_base_url


logger = logging.getLogger(__name__)


class PassState(enum.Enum):
    IDLE = 'idle'
    FETCHING_BATCH = 'fetching_batch'
    PARSING_RULES = 'parsing_rules'
    FILTERING_RULES = 'filtering_rules'
    MINIFYING = 'minifying'
    DONE = 'done'
    ABORTED = 'aborted'


def _diag(config: OptimizerConfig, msg: str, *args) -> None:
    logger.log(logging.INFO if config.debug_mode else logging.DEBUG, msg, *args)


def chunked(items: List, size: int):
    size = max(1, size)
    for i in range(0, len(items), size):
        yield items[i:i + size]


def reduce_rules(rules: List[CssRule], matcher: SelectorMatcher, config: OptimizerConfig) -> str:
    """Concatenate the CSS of every kept rule, walking rules chunk by chunk."""
    out: List[str] = []
    for chunk in chunked(rules, config.chunk_size):
        for rule in chunk:
            decision = filter_rule(rule, matcher, config)
            if not decision.keep:
                continue
            if rule.kind == STYLE:
                block = dedupe_declarations(rule.declarations)
                if not block:
                    continue
                out.append(f"{rule.selector_text.strip()}{{{block}}}")
            else:
                out.append(rule.to_css())
    return ''.join(out)


def optimize_css(css: str, matcher: SelectorMatcher, config: OptimizerConfig, base_url: Optional[str] = None,
                 on_state: Optional[Callable[[PassState], None]] = None) -> str:
    """Reduce one stylesheet to the rules the page uses, then rewrite URLs and minify.

    Stylesheets over config.max_css_bytes come back unchanged. on_state, when
    given, is told as the work moves through parsing, filtering and minifying.
    """
    if not css:
        return ''
    enter = on_state or (lambda state: None)
    enter(PassState.PARSING_RULES)
    rules = parse_rules(css, config.max_css_bytes)
    if len(rules) == 1 and rules[0].kind == PASSTHROUGH:
        _diag(config, 'CSS too large (%d chars), skipping optimization', len(css))
        return css
    enter(PassState.FILTERING_RULES)
    reduced = reduce_rules(rules, matcher, config)
    if base_url:
        reduced = rewrite_urls(reduced, base_url)
    enter(PassState.MINIFYING)
    return minify_css(reduced)


@dataclass
class PassResult:
    optimized: Dict[str, str] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    state: PassState = PassState.IDLE
    batches_done: int = 0

    @property
    def aborted(self) -> bool:
        return self.state is PassState.ABORTED

    def combined_css(self) -> str:
        return ''.join(self.optimized.values())


class CssProcessor:
    """Runs one processing pass over the registry's queued stylesheets."""

    def __init__(self, config: OptimizerConfig, registry: StylesheetRegistry,
                 loader: Optional[CssLoader] = None, budget: Optional[ProcessingBudget] = None,
                 skip_policy: Optional[SkipPolicy] = None,
                 on_state: Optional[Callable[[PassState], None]] = None):
        self.config = config
        self.registry = registry
        self.loader = loader or CssLoader.from_config(config)
        self.budget = budget or ProcessingBudget.from_config(config)
        self.skip_policy = skip_policy or SkipPolicy.from_config(config)
        self.on_state = on_state
        self.state = PassState.IDLE

    def _enter(self, state: PassState) -> None:
        self.state = state
        if self.on_state:
            self.on_state(state)

    def _abort(self, result: PassResult, where: str) -> PassResult:
        logger.warning('memory limit approaching, stopping processing (%s)', where)
        self._enter(PassState.ABORTED)
        result.state = self.state
        return result

    def process(self, html: str) -> PassResult:
        result = PassResult()
        queue = list(self.registry.list_queued_handles())
        matcher = SelectorMatcher.from_html(html)
        _diag(self.config, 'processing %d queued styles', len(queue))

        for batch in chunked(queue, self.config.batch_size):
            if self.budget.exceeded():
                return self._abort(result, f'before batch {result.batches_done + 1}')
            self._enter(PassState.FETCHING_BATCH)
            for handle in batch:
                source = self.registry.get_source(handle)
                if not self.skip_policy.should_process(source):
                    _diag(self.config, 'skip style: %s', handle)
                    result.skipped.append(handle)
                    continue
                if self.budget.exceeded():
                    return self._abort(result, f'before style {handle}')
                optimized = self._process_source(source, matcher, result)
                if optimized:
                    self.registry.substitute(handle, optimized)
                    result.optimized[handle] = optimized
            result.batches_done += 1
            gc.collect()

        self._enter(PassState.DONE)
        result.state = self.state
        return result

    def _process_source(self, source: StylesheetSource, matcher: SelectorMatcher, result: PassResult) -> str:
        self._enter(PassState.FETCHING_BATCH)
        css = self.loader.load(source)
        if not css:
            logger.warning("no CSS content for style '%s'", source.handle)
            result.failed.append(source.handle)
            return ''
        self.budget.charge(len(css.encode('utf-8', errors='ignore')))

        base = stylesheet_base_url(self.loader.normalize_url(source.src))
        optimized = optimize_css(css, matcher, self.config, base_url=base, on_state=self._enter)
        _diag(self.config, "style '%s': %d -> %d chars", source.handle, len(css), len(optimized))
        return optimized

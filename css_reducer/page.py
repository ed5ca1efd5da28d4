from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .budget import ProcessingBudget
from .cache import CacheStore
from .config import OptimizerConfig
from .optimizer import CssProcessor, PassResult
from .sources import CssLoader, SkipPolicy, StylesheetRegistry


logger = logging.getLogger(__name__)

STYLE_BLOCK_ID = 'css-optimizer-inline'
CUSTOM_BLOCK_ID = 'css-optimizer-custom'


@dataclass
class PageResult:
    page_url: str
    css: str = ''
    from_cache: bool = False
    skipped_reason: str = ''
    pass_result: Optional[PassResult] = None
    custom_css: str = ''

    @property
    def output_css(self) -> str:
        """Optimized text followed by the site's custom CSS."""
        custom = self.custom_css.strip()
        if not custom:
            return self.css
        return f'{self.css}\n{custom}' if self.css else custom

    @property
    def style_block(self) -> str:
        return render_style_block(self.css, self.custom_css)


def render_style_block(css: str, custom_css: str = '') -> str:
    out = ''
    if css and css.strip():
        out += f'<style id="{STYLE_BLOCK_ID}">{css}</style>'
    if custom_css and custom_css.strip():
        out += f'<style id="{CUSTOM_BLOCK_ID}">{custom_css.strip()}</style>'
    return out


def is_page_excluded(page_url: str, config: OptimizerConfig) -> bool:
    return any(pattern and pattern in page_url for pattern in config.excluded_urls)


def apply_cached_css(registry: StylesheetRegistry, css: str, skip_policy: SkipPolicy) -> None:
    """Put cached text in place of the stylesheets a pass would have processed.

    The first processable handle is substituted with the whole cached text and
    the rest are dequeued; skipped handles stay where they are.
    """
    handles = [h for h in registry.list_queued_handles() if skip_policy.should_process(registry.get_source(h))]
    if not handles:
        return
    registry.substitute(handles[0], css)
    for handle in handles[1:]:
        registry.dequeue(handle)


def optimize_page(page_url: str, html: str, registry: StylesheetRegistry, config: OptimizerConfig,
                  cache: Optional[CacheStore] = None, loader: Optional[CssLoader] = None,
                  budget: Optional[ProcessingBudget] = None) -> PageResult:
    """Optimize the queued stylesheets for one page render, consulting the cache first."""
    if not config.enabled:
        logger.info('optimization disabled')
        return PageResult(page_url, skipped_reason='disabled', custom_css=config.custom_css)
    if is_page_excluded(page_url, config):
        logger.info('page excluded: %s', page_url)
        return PageResult(page_url, skipped_reason='excluded-url', custom_css=config.custom_css)

    if cache is not None:
        entry = cache.get_fresh(page_url)
        if entry is not None:
            logger.debug('cache hit for %s', page_url)
            apply_cached_css(registry, entry.css, SkipPolicy.from_config(config))
            return PageResult(page_url, css=entry.css, from_cache=True, custom_css=config.custom_css)

    processor = CssProcessor(config, registry, loader=loader, budget=budget)
    result = processor.process(html)
    css = result.combined_css()
    # partial output from an aborted pass is served but not cached
    if cache is not None and not result.aborted and css:
        cache.store(page_url, css)
    return PageResult(page_url, css=css, pass_result=result, custom_css=config.custom_css)

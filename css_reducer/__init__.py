"""Reduce stylesheets to the rules a page's HTML actually uses."""
from .config import OptimizerConfig, ConfigError, load_config, from_options
from .rules import CssRule, parse_rules
from .matcher import MatchResult, SelectorMatcher, matches, parse_document
from .rule_filter import FilterDecision, filter_rule
from .declarations import Declaration, dedupe_declarations, parse_declarations
from .minify import minify_css
from .urls import rewrite_urls
from .budget import ProcessingBudget
from .sources import CssLoader, InMemoryRegistry, SkipPolicy, StylesheetRegistry, StylesheetSource
from .optimizer import CssProcessor, PassResult, PassState, optimize_css
from .page import PageResult, apply_cached_css, optimize_page, render_style_block
from .cache import CacheStore, process_queue

__version__ = '0.1.0'

#!/usr/bin/env python3
"""
Reduce a page's stylesheets to the rules its HTML actually uses.

  python reduce_01_optimize_page.py --html page.html --css theme=css/style.css --out optimized.css

Each --css is HANDLE=SRC (SRC is a local path or URL) or just SRC (handle = file stem).
Settings resolve as CLI > env (CSS_OPTIMIZER_*, .env) > --config JSON > defaults.
"""
from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from .cache import CacheStore
from .config import ConfigError, load_config
from .page import optimize_page
from .sources import CssLoader, InMemoryRegistry


def parse_css_arg(value: str):
    if '=' in value and not value.startswith(('http://', 'https://')):
        handle, src = value.split('=', 1)
        return handle.strip(), src.strip()
    stem = Path(value.split('?', 1)[0]).stem or 'style'
    return stem, value


def report(result) -> None:
    if result.from_cache:
        print(f"[CACHE] served cached CSS for {result.page_url}")
        return
    pr = result.pass_result
    if pr is None:
        return
    for handle in pr.skipped:
        print(f"[SKIP] {handle}")
    for handle in pr.failed:
        print(f"[WARN] could not load {handle}")
    for handle, css in pr.optimized.items():
        print(f"[LOG] {handle}: {len(css)} chars")
    if pr.aborted:
        print('[WARN] memory limit approaching; output is partial')


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description='Drop CSS rules whose selectors match nothing in the page HTML')
    ap.add_argument('--html', required=True, help='Rendered page HTML (file path)')
    ap.add_argument('--css', action='append', default=[], help='Stylesheet HANDLE=SRC or SRC (repeatable, load order)')
    ap.add_argument('--page-url', default=os.getenv('PAGE_URL', ''), help='Page URL (cache key / excluded_urls check)')
    ap.add_argument('--config', default=os.getenv('CSS_OPTIMIZER_CONFIG'), help='JSON options file')
    ap.add_argument('--out', help='Write optimized CSS here (default: stdout)')
    ap.add_argument('--style-block', action='store_true', help='Wrap output in a <style> block')
    ap.add_argument('--cache-db', default=os.getenv('CSS_OPTIMIZER_CACHE_DB'), help='SQLite cache path (optional)')
    ap.add_argument('--exclude-class', action='append', default=None, help='Keep selectors containing this text (repeatable)')
    ap.add_argument('--no-media', action='store_true', help='Drop @media blocks instead of preserving them')
    ap.add_argument('--keep-font-awesome', action='store_true', help='Optimize icon-font stylesheets too')
    ap.add_argument('--site-url', help='Base URL for root-relative stylesheet sources')
    ap.add_argument('--site-root', help='Document root used to read stylesheets from disk')
    ap.add_argument('--memory-limit', help='Process memory ceiling, e.g. 512M')
    ap.add_argument('--debug', action='store_true', help='Verbose diagnostics')
    return ap


def main(argv=None):
    load_dotenv()
    args = build_parser().parse_args(argv)

    overrides = {
        'excluded_classes': args.exclude_class,
        'site_url': args.site_url,
        'site_root': args.site_root,
        'memory_limit': args.memory_limit,
    }
    if args.no_media:
        overrides['preserve_media_queries'] = False
    if args.keep_font_awesome:
        overrides['exclude_font_awesome'] = False
    if args.debug:
        overrides['debug_mode'] = True
    try:
        config = load_config(args.config, overrides)
    except ConfigError as e:
        raise SystemExit(f'[ERROR] {e}')

    logging.basicConfig(level=logging.INFO if config.debug_mode else logging.WARNING,
                        format='[%(levelname)s] %(name)s: %(message)s')

    html_path = Path(args.html)
    if not html_path.exists():
        raise SystemExit(f'Missing HTML file: {html_path}')
    if not args.css:
        raise SystemExit('No stylesheets given (use --css)')
    html = html_path.read_text(encoding='utf-8', errors='ignore')

    registry = InMemoryRegistry()
    for value in args.css:
        handle, src = parse_css_arg(value)
        registry.enqueue(handle, src)
    page_url = args.page_url or html_path.resolve().as_uri()

    cache = CacheStore(args.cache_db).connect() if args.cache_db else None
    try:
        result = optimize_page(page_url, html, registry, config, cache=cache, loader=CssLoader.from_config(config))
    finally:
        if cache is not None:
            cache.close()

    if result.skipped_reason:
        print(f"[SKIP] {page_url}: {result.skipped_reason}")
        return
    text = result.style_block if args.style_block else result.output_css
    if args.out:
        out = Path(args.out)
        report(result)
        out.write_text(text, encoding='utf-8')
        print(f"[LOG] Saved: {out} ({len(text)} chars)")
    else:
        print(text)


if __name__ == '__main__':
    main()

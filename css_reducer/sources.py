from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import urljoin, urlparse

import requests

from .config import DEFAULT_SKIP_HANDLES, FONT_AWESOME_HANDLES, OptimizerConfig


logger = logging.getLogger(__name__)


@dataclass
class StylesheetSource:
    handle: str
    src: str = ''
    size: int = 0
    registered: bool = True


class SkipPolicy:
    """Handles never optimized; contains-match against the handle, checked before any fetch."""

    def __init__(self, handles: Iterable[str] = DEFAULT_SKIP_HANDLES,
                 font_handles: Iterable[str] = FONT_AWESOME_HANDLES, exclude_fonts: bool = True):
        self.handles: Tuple[str, ...] = tuple(h for h in handles if h)
        self.font_handles: Tuple[str, ...] = tuple(h for h in font_handles if h)
        self.exclude_fonts = exclude_fonts

    @classmethod
    def from_config(cls, config: OptimizerConfig) -> 'SkipPolicy':
        return cls(config.skip_handles, FONT_AWESOME_HANDLES, config.exclude_font_awesome)

    @property
    def patterns(self) -> Tuple[str, ...]:
        if self.exclude_fonts:
            return self.handles + self.font_handles
        return self.handles

    def matched_pattern(self, handle: str) -> Optional[str]:
        for pattern in self.patterns:
            if pattern in handle:
                return pattern
        return None

    def should_skip(self, handle: str) -> bool:
        return self.matched_pattern(handle) is not None

    def should_process(self, source: Optional[StylesheetSource]) -> bool:
        if source is None or not source.registered or not source.src:
            return False
        return not self.should_skip(source.handle)


class StylesheetRegistry:
    """Host stylesheet queue. Subclass for a real host application."""

    def list_queued_handles(self) -> List[str]:
        raise NotImplementedError

    def get_source(self, handle: str) -> Optional[StylesheetSource]:
        raise NotImplementedError

    def substitute(self, handle: str, css: str) -> None:
        raise NotImplementedError

    def dequeue(self, handle: str) -> None:
        raise NotImplementedError


class InMemoryRegistry(StylesheetRegistry):
    """Ordered handle -> src queue; substitutions are recorded in load order."""

    def __init__(self, sources: Optional[Dict[str, str]] = None):
        self.queue: List[str] = []
        self.registered: Dict[str, StylesheetSource] = {}
        self.inline: Dict[str, str] = {}
        for handle, src in (sources or {}).items():
            self.enqueue(handle, src)

    def enqueue(self, handle: str, src: str, size: int = 0) -> None:
        if handle not in self.queue:
            self.queue.append(handle)
        self.registered[handle] = StylesheetSource(handle=handle, src=src, size=size)

    def list_queued_handles(self) -> List[str]:
        return list(self.queue)

    def get_source(self, handle: str) -> Optional[StylesheetSource]:
        return self.registered.get(handle)

    def substitute(self, handle: str, css: str) -> None:
        # swap the enqueued handle for its inline "-optimized" twin in place
        optimized = handle + '-optimized'
        if handle in self.queue:
            self.queue[self.queue.index(handle)] = optimized
        self.registered.pop(handle, None)
        self.registered[optimized] = StylesheetSource(handle=optimized, src='', size=len(css), registered=False)
        self.inline[optimized] = css

    def dequeue(self, handle: str) -> None:
        if handle in self.queue:
            self.queue.remove(handle)
        self.registered.pop(handle, None)


class CssLoader:
    """Read a stylesheet from disk when it lives under site_root, else fetch it."""

    def __init__(self, site_url: str = '', site_root: str = '', timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.site_url = site_url
        self.site_root = site_root
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: OptimizerConfig) -> 'CssLoader':
        return cls(config.site_url, config.site_root, config.fetch_timeout)

    def normalize_url(self, src: str) -> str:
        if src.startswith('//'):
            return 'https:' + src
        if src.startswith('/') and self.site_url:
            return urljoin(self.site_url.rstrip('/') + '/', src.lstrip('/'))
        return src

    def local_path(self, src: str) -> Optional[Path]:
        if not self.site_root:
            return None
        parsed = urlparse(src)
        path = (parsed.path or '').lstrip('/')
        if not path:
            return None
        root = Path(self.site_root)
        candidates = [
            root / path,
            root / 'wp-content' / path.replace('wp-content/', '', 1),
            Path(src) if not parsed.scheme and os.path.isabs(src) else None,
        ]
        for cand in candidates:
            if cand is not None and cand.is_file():
                return cand
        return None

    def fetch_remote(self, url: str) -> Optional[str]:
        p = urlparse(url)
        if p.scheme not in ('http', 'https') or not p.netloc:
            logger.warning('not a fetchable URL: %s', url)
            return None
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.warning('failed to fetch %s: %s', url, e)
            return None
        return resp.text

    def load(self, source: StylesheetSource) -> Optional[str]:
        """CSS text for a source, or None when it cannot be read."""
        src = self.normalize_url(source.src or '')
        if not src:
            return None
        parsed = urlparse(src)
        if not parsed.scheme:
            direct = Path(src)
            if direct.is_file():
                return self._read(direct)
        local = self.local_path(src)
        if local is not None:
            return self._read(local)
        if not parsed.scheme:
            logger.warning("no local file for style '%s': %s", source.handle, src)
            return None
        return self.fetch_remote(src)

    def _read(self, path: Path) -> Optional[str]:
        try:
            return path.read_text(encoding='utf-8', errors='ignore')
        except OSError as e:
            logger.warning('failed to read file %s: %s', path, e)
            return None

from __future__ import annotations

import re
from urllib.parse import urlparse, urlunparse


URL_RE = re.compile(r"""url\(\s*['"]?(?!data:)([^'")]+?)['"]?\s*\)""", re.I)


def rewrite_urls(css: str, base_url: str) -> str:
    """Make relative url(...) references absolute against base_url; data: URIs untouched."""
    if not css or not base_url:
        return css
    base = base_url.rstrip('/') + '/'

    def _sub(m: re.Match) -> str:
        url = m.group(1).strip()
        if url.lower().startswith('data:'):
            return m.group(0)
        if not url.startswith('http') and not url.startswith('//'):
            url = base + url.lstrip('/')
        return f'url("{url}")'

    return URL_RE.sub(_sub, css)


def stylesheet_base_url(src: str) -> str:
    """Directory URL of a stylesheet: https://x/css/app.css?v=2 -> https://x/css"""
    if not src:
        return ''
    p = urlparse(src)
    if not p.netloc:
        return ''
    path = p.path.rsplit('/', 1)[0] if '/' in p.path else ''
    return urlunparse((p.scheme, p.netloc, path, '', '', ''))

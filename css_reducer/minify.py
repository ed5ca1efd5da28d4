from __future__ import annotations

import re


COMMENT_RE = re.compile(r"/\*.*?\*/", re.S)
# quoted strings are copied through untouched
STRING_RE = re.compile(r"""("(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*')""")

# applied in order, after comments are gone
REPLACEMENTS = (
    (': ', ':'),
    ('; ', ';'),
    ('{ ', '{'),
    (' {', '{'),
    ('} ', '}'),
    (' }', '}'),
    (';}', '}'),
)


def _compact(css: str) -> str:
    parts = STRING_RE.split(css)
    # even indexes lie outside strings
    for i in range(0, len(parts), 2):
        part = parts[i]
        for old, new in REPLACEMENTS:
            part = part.replace(old, new)
        parts[i] = re.sub(r"\s+", ' ', part)
    return ''.join(parts).strip()


def minify_css(css: str) -> str:
    """Strip comments and redundant whitespace.

    Line breaks and tabs become spaces (so "div\\nspan" stays a descendant
    selector) and the punctuation pass repeats until nothing changes, which
    keeps minify_css(minify_css(x)) == minify_css(x). Text inside quotes is
    left as written.
    """
    if not css:
        return ''
    css = COMMENT_RE.sub('', css)
    css = re.sub(r"[\r\n\t]+", ' ', css)
    css = re.sub(r"\s+", ' ', css)
    while True:
        compacted = _compact(css)
        if compacted == css:
            return compacted
        css = compacted

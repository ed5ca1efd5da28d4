from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional


STYLE = 'style'
AT_RULE = 'at'
PASSTHROUGH = 'passthrough'

MAX_CSS_BYTES = 1_000_000

AT_KEYWORD_RE = re.compile(r"@(-?[a-zA-Z][a-zA-Z0-9_-]*)")


@dataclass(frozen=True)
class CssRule:
    kind: str
    selector_text: str = ''
    declarations: str = ''
    raw: str = ''
    at_keyword: Optional[str] = None

    @property
    def is_at_rule(self) -> bool:
        return self.kind == AT_RULE

    @property
    def selectors(self) -> List[str]:
        return [s.strip() for s in self.selector_text.split(',') if s.strip()]

    def to_css(self) -> str:
        if self.kind == STYLE:
            return f"{self.selector_text.strip()}{{{self.declarations}}}"
        return self.raw


def strip_comments(css: str) -> str:
    return re.sub(r"/\*.*?\*/", "", css, flags=re.S)


def at_keyword_of(head: str) -> str:
    m = AT_KEYWORD_RE.match(head.strip())
    return m.group(1).lower() if m else ''


def _matching_brace(css: str, open_pos: int) -> int:
    """Return index just past the '}' closing the '{' at open_pos (len(css) if unterminated)."""
    depth = 1
    k = open_pos + 1
    n = len(css)
    while k < n and depth:
        ch = css[k]
        if ch == '{':
            depth += 1
        elif ch == '}':
            depth -= 1
        k += 1
    return k


def parse_rules(css: str, max_bytes: int = MAX_CSS_BYTES) -> List[CssRule]:
    """Split CSS text into style rules and opaque at-rule units.

    Never raises. Oversize input comes back as a single passthrough unit.
    """
    if css is None:
        return []
    if len(css.encode('utf-8', errors='ignore')) > max_bytes:
        return [CssRule(kind=PASSTHROUGH, raw=css)]

    text = strip_comments(css)
    rules: List[CssRule] = []
    n = len(text)
    i = 0
    while i < n:
        # skip whitespace and stray closing braces
        while i < n and (text[i].isspace() or text[i] == '}'):
            i += 1
        if i >= n:
            break
        brace = text.find('{', i)
        if text[i] == '@':
            semi = text.find(';', i)
            if semi != -1 and (brace == -1 or semi < brace):
                raw = text[i:semi + 1].strip()
                rules.append(CssRule(kind=AT_RULE, selector_text=raw[:-1].strip(), raw=raw, at_keyword=at_keyword_of(raw)))
                i = semi + 1
                continue
            if brace == -1:
                break
            end = _matching_brace(text, brace)
            head = text[i:brace].strip()
            raw = text[i:end].strip()
            rules.append(CssRule(kind=AT_RULE, selector_text=head, raw=raw, at_keyword=at_keyword_of(head)))
            i = end
            continue
        if brace == -1:
            break
        close = text.find('}', brace + 1)
        if close == -1:
            close = n
        head = text[i:brace].strip()
        body = text[brace + 1:close]
        if head:
            rules.append(CssRule(kind=STYLE, selector_text=head, declarations=body.strip()))
        i = close + 1
    return rules

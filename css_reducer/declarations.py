from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List


@dataclass(frozen=True)
class Declaration:
    name: str
    value: str
    index: int

    @property
    def text(self) -> str:
        return f"{self.name}:{self.value}"


def split_segments(block: str) -> List[str]:
    """Split a declaration block on ';' outside of quotes and parentheses.

    Keeps `url(data:font/woff;base64,...)` in one piece.
    """
    parts: List[str] = []
    buf: List[str] = []
    depth = 0
    quote = ''
    for ch in block or '':
        if quote:
            if ch == quote:
                quote = ''
        elif ch in '"\'':
            quote = ch
        elif ch == '(':
            depth += 1
        elif ch == ')' and depth:
            depth -= 1
        elif ch == ';' and not depth:
            parts.append(''.join(buf))
            buf = []
            continue
        buf.append(ch)
    parts.append(''.join(buf))
    return parts


def parse_declarations(block: str) -> List[Declaration]:
    """Well-formed `prop: value` segments of a block, in source order.

    Segments that are empty or carry no ':' are dropped without notice.
    """
    out: List[Declaration] = []
    for part in split_segments(block):
        part = part.strip()
        if not part or ':' not in part:
            continue
        name, value = part.split(':', 1)
        name = name.strip()
        if not name:
            continue
        out.append(Declaration(name=name, value=value.strip(), index=len(out)))
    return out


def dedupe_declarations(block: str) -> str:
    # last declaration wins; margin vs margin-top or !important are not special-cased
    unique: Dict[str, str] = {}
    for part in split_segments(block):
        part = part.strip()
        if not part:
            continue
        pieces = part.split(':', 1)
        if len(pieces) != 2 or not pieces[0].strip():
            continue
        unique[pieces[0].strip()] = part
    if not unique:
        return ''
    return ';'.join(unique.values()) + ';'

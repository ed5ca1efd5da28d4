from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv


DEFAULT_SKIP_HANDLES = (
    'admin-bar',
    'dashicons',
    'code-block-pro',
    'wp-block-kevinbatdorf-code-block-pro',
    'kevinbatdorf',
    'shiki',
)

FONT_AWESOME_HANDLES = ('font-awesome', 'fontawesome', 'fa', 'font-awesome-official')

LIST_OPTIONS = ('excluded_classes', 'excluded_urls', 'skip_handles')
BOOL_OPTIONS = ('enabled', 'preserve_media_queries', 'exclude_font_awesome', 'debug_mode')

ENV_PREFIX = 'CSS_OPTIMIZER_'


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class OptimizerConfig:
    enabled: bool = True
    preserve_media_queries: bool = True
    exclude_font_awesome: bool = True
    excluded_classes: Tuple[str, ...] = ()
    excluded_urls: Tuple[str, ...] = ()
    debug_mode: bool = False
    custom_css: str = ''
    # tunables
    memory_limit: str = '512M'
    memory_fraction: float = 0.8
    batch_size: int = 5
    chunk_size: int = 100
    max_css_bytes: int = 1_000_000
    skip_handles: Tuple[str, ...] = field(default=DEFAULT_SKIP_HANDLES)
    fetch_timeout: float = 10.0
    site_url: str = ''
    site_root: str = ''

    @property
    def memory_limit_bytes(self) -> int:
        return parse_size(self.memory_limit)

    def with_overrides(self, **changes) -> 'OptimizerConfig':
        return replace(self, **_coerce_options(changes))


def parse_size(size) -> int:
    """Convert a shorthand byte size ("512M", "1g", "65536") to bytes."""
    if isinstance(size, int):
        return size
    text = str(size or '').strip()
    if not text:
        raise ConfigError('empty memory size')
    unit = text[-1].lower()
    number = text[:-1] if unit in 'kmg' else text
    try:
        value = int(float(number))
    except ValueError:
        raise ConfigError(f'invalid memory size: {size!r}')
    if unit == 'g':
        value *= 1024 ** 3
    elif unit == 'm':
        value *= 1024 ** 2
    elif unit == 'k':
        value *= 1024
    return value


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def _as_list(value) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = [v for v in (p.strip() for p in value.split(',')) if v]
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(v) for v in value if str(v).strip())


def _coerce_options(options: Dict) -> Dict:
    known = {f.name: f for f in fields(OptimizerConfig)}
    out = {}
    for key, value in options.items():
        if key not in known or value is None:
            continue
        if key in LIST_OPTIONS:
            out[key] = _as_list(value)
        elif key in BOOL_OPTIONS:
            out[key] = _as_bool(value)
        elif key in ('batch_size', 'chunk_size', 'max_css_bytes'):
            try:
                out[key] = max(1, int(value))
            except (TypeError, ValueError):
                raise ConfigError(f'{key} must be an integer, got {value!r}')
        elif key in ('memory_fraction', 'fetch_timeout'):
            try:
                out[key] = float(value)
            except (TypeError, ValueError):
                raise ConfigError(f'{key} must be a number, got {value!r}')
        else:
            out[key] = str(value)
    if 'memory_limit' in out:
        parse_size(out['memory_limit'])
    return out


def from_options(options: Optional[Dict] = None) -> OptimizerConfig:
    """Defaults merged with saved options; unknown keys ignored, bad list values emptied."""
    return OptimizerConfig(**_coerce_options(options or {}))


def options_from_env(environ=None) -> Dict[str, str]:
    environ = os.environ if environ is None else environ
    opts = {}
    for f in fields(OptimizerConfig):
        raw = environ.get(ENV_PREFIX + f.name.upper())
        if raw is not None and raw != '':
            opts[f.name] = raw
    return opts


def load_config(path: Optional[str] = None, overrides: Optional[Dict] = None, use_env: bool = True) -> OptimizerConfig:
    """Resolve a config snapshot: defaults < JSON file < CSS_OPTIMIZER_* env < overrides."""
    options: Dict = {}
    if path:
        p = Path(path)
        if not p.exists():
            raise ConfigError(f'config file not found: {p}')
        try:
            data = json.loads(p.read_text(encoding='utf-8'))
        except json.JSONDecodeError as e:
            raise ConfigError(f'invalid JSON in {p}: {e}')
        if not isinstance(data, dict):
            raise ConfigError(f'config file must hold a JSON object: {p}')
        options.update(data)
    if use_env:
        load_dotenv()
        options.update(options_from_env())
    if overrides:
        options.update({k: v for k, v in overrides.items() if v is not None})
    return from_options(options)

from __future__ import annotations

import pytest

from css_reducer.config import OptimizerConfig
from css_reducer.matcher import SelectorMatcher
from css_reducer.sources import InMemoryRegistry


PAGE_HTML = """
<html>
<head><title>t</title></head>
<body>
  <header id="top" class="site-header">
    <nav class="nav main-nav"><a href="/" class="nav-link active">Home</a></nav>
  </header>
  <div class='used'>
    <ul class="list"><li>one</li><li>two</li></ul>
    <span data-role="badge">x</span>
  </div>
</body>
</html>
"""


@pytest.fixture
def config() -> OptimizerConfig:
    return OptimizerConfig()


@pytest.fixture
def matcher() -> SelectorMatcher:
    return SelectorMatcher.from_html(PAGE_HTML)


@pytest.fixture
def page_html() -> str:
    return PAGE_HTML


@pytest.fixture
def write_css(tmp_path):
    """Write a stylesheet under tmp_path and return its path as a string."""
    def _write(name: str, css: str) -> str:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(css, encoding='utf-8')
        return str(path)
    return _write


@pytest.fixture
def registry() -> InMemoryRegistry:
    return InMemoryRegistry()


class FakeProbe:
    """Memory probe returning scripted values; the last one repeats."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def __call__(self) -> int:
        i = min(self.calls, len(self.values) - 1)
        self.calls += 1
        return self.values[i]

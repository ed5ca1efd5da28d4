"""Tests for skip policy, registry and stylesheet loading."""

import requests

from css_reducer.config import OptimizerConfig
from css_reducer.sources import CssLoader, InMemoryRegistry, SkipPolicy, StylesheetSource


class TestSkipPolicy:
    def test_default_denylist(self):
        policy = SkipPolicy.from_config(OptimizerConfig())
        assert policy.should_skip("admin-bar")
        assert policy.should_skip("wp-block-kevinbatdorf-code-block-pro-css")
        assert policy.should_skip("dashicons")
        assert not policy.should_skip("theme-main")

    def test_font_family_follows_flag(self):
        on = SkipPolicy.from_config(OptimizerConfig(exclude_font_awesome=True))
        off = SkipPolicy.from_config(OptimizerConfig(exclude_font_awesome=False))
        assert on.should_skip("font-awesome-5")
        assert not off.should_skip("font-awesome-5")

    def test_custom_patterns(self):
        policy = SkipPolicy(handles=["legacy"], font_handles=[], exclude_fonts=False)
        assert policy.matched_pattern("legacy-grid") == "legacy"
        assert policy.matched_pattern("theme") is None

    def test_unregistered_or_empty_src_not_processed(self):
        policy = SkipPolicy(handles=[], font_handles=[])
        assert not policy.should_process(None)
        assert not policy.should_process(StylesheetSource("a", src=""))
        assert not policy.should_process(StylesheetSource("a", src="a.css", registered=False))
        assert policy.should_process(StylesheetSource("a", src="a.css"))


class TestInMemoryRegistry:
    def test_substitute_preserves_order(self):
        reg = InMemoryRegistry({"one": "1.css", "two": "2.css", "three": "3.css"})
        reg.substitute("two", ".a{top:0}")
        assert reg.list_queued_handles() == ["one", "two-optimized", "three"]
        assert reg.inline == {"two-optimized": ".a{top:0}"}
        assert reg.get_source("two") is None

    def test_dequeue(self):
        reg = InMemoryRegistry({"one": "1.css", "two": "2.css"})
        reg.dequeue("one")
        reg.dequeue("missing")
        assert reg.list_queued_handles() == ["two"]
        assert reg.get_source("one") is None


class FakeResponse:
    def __init__(self, text="", status=200):
        self.text = text
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}")


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        if self.error:
            raise self.error
        return self.response


class TestCssLoader:
    def test_local_file(self, write_css):
        path = write_css("a.css", ".a{top:0}")
        loader = CssLoader(session=FakeSession())
        assert loader.load(StylesheetSource("a", src=path)) == ".a{top:0}"

    def test_site_root_resolution(self, tmp_path, write_css):
        write_css("wp-content/themes/t/style.css", "body{margin:0}")
        session = FakeSession()
        loader = CssLoader(site_url="https://example.com", site_root=str(tmp_path), session=session)
        css = loader.load(StylesheetSource("t", src="https://example.com/wp-content/themes/t/style.css"))
        assert css == "body{margin:0}"
        assert session.urls == []

    def test_remote_fetch(self):
        session = FakeSession(FakeResponse(".r{top:0}"))
        loader = CssLoader(session=session)
        assert loader.load(StylesheetSource("r", src="//cdn.example.com/r.css")) == ".r{top:0}"
        assert session.urls == ["https://cdn.example.com/r.css"]

    def test_root_relative_uses_site_url(self):
        session = FakeSession(FakeResponse(".r{top:0}"))
        loader = CssLoader(site_url="https://example.com/", session=session)
        loader.load(StylesheetSource("r", src="/assets/r.css"))
        assert session.urls == ["https://example.com/assets/r.css"]

    def test_http_error_is_no_content(self):
        loader = CssLoader(session=FakeSession(FakeResponse("", status=404)))
        assert loader.load(StylesheetSource("r", src="https://example.com/r.css")) is None

    def test_network_error_is_no_content(self):
        loader = CssLoader(session=FakeSession(error=requests.ConnectionError("down")))
        assert loader.load(StylesheetSource("r", src="https://example.com/r.css")) is None

    def test_missing_local_file(self, tmp_path):
        session = FakeSession()
        loader = CssLoader(site_root=str(tmp_path), session=session)
        assert loader.load(StylesheetSource("x", src="missing/x.css")) is None
        assert session.urls == []

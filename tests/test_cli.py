"""Tests for the command-line front end."""

import pytest

from css_reducer.cli import main, parse_css_arg


class TestParseCssArg:
    def test_handle_and_src(self):
        assert parse_css_arg("theme=css/style.css") == ("theme", "css/style.css")

    def test_bare_path_uses_stem(self):
        assert parse_css_arg("css/app.min.css") == ("app.min", "css/app.min.css")

    def test_url_with_query(self):
        assert parse_css_arg("https://x.com/a.css?v=1") == ("a", "https://x.com/a.css?v=1")


class TestMain:
    def test_writes_reduced_css(self, tmp_path, write_css, capsys):
        html = tmp_path / "page.html"
        html.write_text("<div class='used'></div>", encoding="utf-8")
        css = write_css("style.css", ".used { color: red }\n.unused { color: blue }\n@media print { .x { top: 0 } }")
        out = tmp_path / "out.css"
        main(["--html", str(html), "--css", f"theme={css}", "--out", str(out), "--no-media"])
        assert out.read_text(encoding="utf-8") == ".used{color:red}"
        assert "[LOG] theme:" in capsys.readouterr().out

    def test_style_block_to_stdout(self, tmp_path, write_css, capsys):
        html = tmp_path / "page.html"
        html.write_text("<div class='used'></div>", encoding="utf-8")
        css = write_css("style.css", ".used{top:0}")
        main(["--html", str(html), "--css", css, "--style-block"])
        assert capsys.readouterr().out.strip() == '<style id="css-optimizer-inline">.used{top:0}</style>'

    def test_missing_html(self, tmp_path):
        with pytest.raises(SystemExit):
            main(["--html", str(tmp_path / "none.html"), "--css", "a.css"])

    def test_custom_css_from_config_file(self, tmp_path, write_css, capsys):
        html = tmp_path / "page.html"
        html.write_text("<div class='used'></div>", encoding="utf-8")
        css = write_css("style.css", ".used{top:0}")
        cfg = tmp_path / "options.json"
        cfg.write_text('{"custom_css": ".promo{color:red}"}', encoding="utf-8")
        main(["--html", str(html), "--css", css, "--config", str(cfg)])
        assert capsys.readouterr().out.strip() == ".used{top:0}\n.promo{color:red}"

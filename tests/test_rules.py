"""Tests for splitting CSS text into rules."""

from css_reducer.rules import AT_RULE, PASSTHROUGH, STYLE, parse_rules


class TestStyleRules:
    def test_two_simple_rules(self):
        rules = parse_rules(".used{color:red} .unused{color:blue}")
        assert [r.kind for r in rules] == [STYLE, STYLE]
        assert rules[0].selector_text == ".used"
        assert rules[0].declarations == "color:red"
        assert rules[1].selector_text == ".unused"

    def test_selector_list_is_split(self):
        rules = parse_rules("h1, .title ,  #main > p { margin: 0 }")
        assert rules[0].selectors == ["h1", ".title", "#main > p"]

    def test_comments_are_removed(self):
        rules = parse_rules("/* header { } */ .a { color: red; /* inline */ }")
        assert len(rules) == 1
        assert rules[0].selector_text == ".a"
        assert "inline" not in rules[0].declarations

    def test_to_css_round_trips_style_rule(self):
        rule = parse_rules(".a { color: red }")[0]
        assert rule.to_css() == ".a{color: red}"


class TestAtRules:
    def test_media_block_is_one_opaque_unit(self):
        css = "@media (max-width:600px){.x{color:red}.y{color:blue}} .z{top:0}"
        rules = parse_rules(css)
        assert len(rules) == 2
        media = rules[0]
        assert media.kind == AT_RULE
        assert media.at_keyword == "media"
        assert media.raw == "@media (max-width:600px){.x{color:red}.y{color:blue}}"
        assert rules[1].selector_text == ".z"

    def test_statement_at_rules(self):
        rules = parse_rules('@charset "utf-8"; @import url(a.css); .a{top:0}')
        assert [r.kind for r in rules] == [AT_RULE, AT_RULE, STYLE]
        assert rules[0].at_keyword == "charset"
        assert rules[1].raw == "@import url(a.css);"

    def test_font_face_keyword(self):
        rules = parse_rules("@font-face{font-family:x;src:url(a.woff)}")
        assert rules[0].at_keyword == "font-face"


class TestMalformedInput:
    def test_empty(self):
        assert parse_rules("") == []

    def test_unterminated_block_is_best_effort(self):
        rules = parse_rules(".a{color:red} .b{color:blue")
        assert [r.selector_text for r in rules] == [".a", ".b"]
        assert rules[1].declarations == "color:blue"

    def test_stray_closing_brace(self):
        rules = parse_rules("} .a{color:red}")
        assert [r.selector_text for r in rules] == [".a"]

    def test_text_without_braces(self):
        assert parse_rules("just some text") == []


class TestSizeCeiling:
    def test_oversize_input_is_single_passthrough(self):
        css = ".a{color:red}" * 10
        rules = parse_rules(css, max_bytes=20)
        assert len(rules) == 1
        assert rules[0].kind == PASSTHROUGH
        assert rules[0].raw == css
        assert rules[0].to_css() == css

# Tests for rendering chunks back to wikitext
#
# Copyright (c) 2020-2021 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import unittest

from wikichunks import (
    MagicWord,
    Markup,
    Named,
    Positional,
    Transclude,
    parse_page,
    to_wikitext,
)


class NodeExpTests(unittest.TestCase):
    def backcvt(self, text, expected=None):
        page = parse_page(text)
        self.assertEqual(to_wikitext(page), text)
        if expected is not None:
            self.assertEqual(to_wikitext(page, canonical=True), expected)
            # Canonical text parses back to an equal page
            self.assertEqual(parse_page(expected), page)

    def test_basic1(self):
        self.backcvt("", "")

    def test_basic2(self):
        self.backcvt("foo bar\nxyz\n", "foo bar\nxyz\n")

    def test_basic3(self):
        self.backcvt("{{", "{{")

    def test_basic4(self):
        self.backcvt("a {{b", "a {{b")

    def test_template1(self):
        self.backcvt("{{Foo}}", "{{Foo}}")

    def test_template2(self):
        self.backcvt("{{ Foo |k = v }}", "{{Foo|k= v }}")

    def test_template3(self):
        self.backcvt("{{Foo|a|b=c|d}}", "{{Foo|a|b=c|d}}")

    def test_template4(self):
        self.backcvt("x {{Foo||bar}} y", "x {{Foo||bar}} y")

    def test_template5(self):
        self.backcvt("{{Foo<!-- c -->|a}}", "{{Foo|a}}")

    def test_nested(self):
        self.backcvt("{{Outer|{{Inner}}}}", "{{Outer|{{Inner}}}}")

    def test_nested_equals(self):
        self.backcvt("{{A|{{B}}x=y}}", "{{A|{{B}}x=y}}")

    def test_placeholder(self):
        self.backcvt("{{{1}}} {{Foo|{{{2}}}}}", "{{{1}}} {{Foo|{{{2}}}}}")

    def test_open_brace(self):
        self.backcvt("{{{Foo}}", "{{{Foo}}")

    def test_magic1(self):
        self.backcvt("{{ PAGENAME }}", "{{PAGENAME}}")

    def test_magic2(self):
        self.backcvt("{{#if: x | y }}", "{{#if: x | y }}")

    def test_magic3(self):
        self.backcvt("{{ subst : Foo|a=1}}", "{{subst: Foo|a=1}}")

    def test_comment(self):
        self.backcvt("<!-- {{x}} --> {{y}}", "<!-- {{x}} --> {{y}}")

    def test_unicode(self):
        self.backcvt("東京{{地図|緯度=35}}", "東京{{地図|緯度=35}}")

    def test_constructed(self):
        page = (
            Markup("a"),
            Transclude("Foo", [Positional("x"), Named("k", "v")]),
            MagicWord("lc", "ABC"),
            MagicWord("PAGENAME"),
        )
        text = to_wikitext(page)
        self.assertEqual(text, "a{{Foo|x|k=v}}{{lc:ABC}}{{PAGENAME}}")
        self.assertEqual(parse_page(text), page)

    def test_chunk(self):
        self.assertEqual(to_wikitext(Transclude("Foo")), "{{Foo}}")
        self.assertEqual(to_wikitext(Markup("x")), "x")

    def test_handler(self):
        page = parse_page("Hello {{Name|first=Ada}}, it is {{CURRENTYEAR}}.")

        def handler(chunk):
            if isinstance(chunk, Transclude) and chunk.name == "Name":
                return chunk.arguments["first"]
            return None

        self.assertEqual(
            to_wikitext(page, handler), "Hello Ada, it is {{CURRENTYEAR}}."
        )

    def test_handler_returns_chunks(self):
        page = parse_page("{{Two}}")

        def handler(chunk):
            if chunk.name == "Two":
                return [Markup("<"), Transclude("One"), ">"]
            if chunk.name == "One":
                return "1"
            return None

        self.assertEqual(to_wikitext(page, handler), "<1>")

    def test_invalid(self):
        with self.assertRaises(RuntimeError):
            to_wikitext([Markup("a"), 3])

# Tests for magic words and parser functions
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import unittest

from wikichunks import (
    MagicWord,
    Markup,
    Named,
    Positional,
    Transclude,
    Wtc,
    parse_page,
)


class MagicTests(unittest.TestCase):
    def chunk(self, text, expected, ctx=None):
        page = parse_page(text, ctx)
        self.assertEqual(page, (expected,))
        return page[0]

    def test_variable(self):
        self.chunk("{{FULLPAGENAME}}", MagicWord("FULLPAGENAME"))

    def test_variable_spaces(self):
        self.chunk("{{ PAGENAME }}", MagicWord("PAGENAME"))

    def test_variable_arg(self):
        self.chunk(
            "{{FULLPAGENAME:A different name}}",
            MagicWord("FULLPAGENAME", "A different name"),
        )

    def test_variable_arg_verbatim(self):
        self.chunk(
            "{{ PAGENAME : x }}",
            MagicWord("PAGENAME", " x "),
        )

    def test_variable_case(self):
        # Variables are case-sensitive
        self.chunk("{{Pagename}}", Transclude("Pagename"))

    def test_variable_template(self):
        # A template that calls the magic word
        self.chunk(
            "{{FULLPAGENAME|A different name}}",
            Transclude("FULLPAGENAME", [Positional("A different name")]),
        )

    def test_subst(self):
        self.chunk("{{subst:OtherPage}}", MagicWord("subst", "OtherPage"))

    def test_subst_params(self):
        self.chunk(
            "{{SUBST:Foo|a|b=c}}",
            MagicWord("SUBST", "Foo", [Positional("a"), Named("b", "c")]),
        )

    def test_function(self):
        self.chunk("{{lc:ABC}}", MagicWord("lc", "ABC"))

    def test_function_no_colon(self):
        self.chunk("{{lc}}", Transclude("lc"))

    def test_parser_fn(self):
        self.chunk(
            "{{#if: {{{1|}}} | yes | no }}",
            MagicWord(
                "#if",
                " {{{1|}}} ",
                [Positional(" yes "), Positional(" no ")],
            ),
        )

    def test_parser_fn_equals(self):
        self.chunk(
            "{{#switch:x|a=1|#default=2}}",
            MagicWord(
                "#switch", "x", [Named("a", "1"), Named("#default", "2")]
            ),
        )

    def test_parser_fn_no_colon(self):
        self.chunk("{{#tag}}", MagicWord("#tag"))

    def test_parser_fn_nested(self):
        t = self.chunk(
            "{{#if:{{PAGENAME}}|{{Foo}}}}",
            MagicWord("#if", "{{PAGENAME}}", [Positional("{{Foo}}")]),
        )
        self.assertEqual(t.params[0].chunks, (Transclude("Foo"),))

    def test_namespace_page(self):
        self.chunk("{{Foo:Bar}}", Transclude("Foo:Bar"))

    def test_main_namespace(self):
        self.chunk("{{:Foo:Bar}}", Transclude(":Foo:Bar"))

    def test_pipe_magic(self):
        self.chunk("{{!}}", MagicWord("!"))

    def test_in_text(self):
        self.assertEqual(
            parse_page("See {{CURRENTYEAR}} meetings"),
            (Markup("See "), MagicWord("CURRENTYEAR"), Markup(" meetings")),
        )

    def test_magic_arguments(self):
        t = self.chunk(
            "{{#invoke:Mod|fn|a|k=v}}",
            MagicWord(
                "#invoke",
                "Mod",
                [Positional("fn"), Positional("a"), Named("k", "v")],
            ),
        )
        self.assertEqual(t.arguments, {1: "fn", 2: "a", "k": "v"})

    def test_context_words(self):
        ctx = Wtc(magic_words=["TLUGMEETING"], quiet=True)
        self.chunk("{{TLUGMEETING}}", MagicWord("TLUGMEETING"), ctx)
        self.chunk("{{TLUGMEETING}}", Transclude("TLUGMEETING"))

    def test_context_functions(self):
        ctx = Wtc(magic_functions=["Calendar"], quiet=True)
        self.chunk("{{calendar:2024}}", MagicWord("calendar", "2024"), ctx)
        self.chunk("{{calendar:2024}}", Transclude("calendar:2024"))

# Some definitions used for both parsing and rendering chunks
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re
import unicodedata

# Delimiters of the transclusion syntax
TRANSCLUDE_START = "{{"
TRANSCLUDE_END = "}}"
ARG_START = "{{{"
LINK_START = "[["
LINK_END = "]]"
PARAM_SEP = "|"
NAME_SEP = "="
MAGIC_SEP = ":"

# Tags whose contents are never scanned for transclusions.  The contents
# are kept verbatim in Markup chunks.
ESCAPE_TAGS: frozenset[str] = frozenset(["nowiki", "pre"])

# MediaWiki variables.  These are case-sensitive and may be used either
# bare ({{PAGENAME}}) or with an argument ({{PAGENAME:Other page}}).
# See https://www.mediawiki.org/wiki/Help:Magic_words#Variables
MAGIC_VARIABLES: frozenset[str] = frozenset(
    [
        "FULLPAGENAME",
        "FULLPAGENAMEE",
        "PAGENAME",
        "PAGENAMEE",
        "BASEPAGENAME",
        "ROOTPAGENAME",
        "SUBPAGENAME",
        "TALKPAGENAME",
        "SUBJECTPAGENAME",
        "ARTICLEPAGENAME",
        "NAMESPACE",
        "NAMESPACEE",
        "NAMESPACENUMBER",
        "TALKSPACE",
        "SUBJECTSPACE",
        "ARTICLESPACE",
        "PAGEID",
        "PAGESIZE",
        "PAGELANGUAGE",
        "SITENAME",
        "SERVER",
        "SERVERNAME",
        "SCRIPTPATH",
        "STYLEPATH",
        "CURRENTYEAR",
        "CURRENTMONTH",
        "CURRENTMONTHNAME",
        "CURRENTMONTHABBREV",
        "CURRENTDAY",
        "CURRENTDAY2",
        "CURRENTDOW",
        "CURRENTDAYNAME",
        "CURRENTTIME",
        "CURRENTHOUR",
        "CURRENTWEEK",
        "CURRENTTIMESTAMP",
        "LOCALYEAR",
        "LOCALMONTH",
        "LOCALDAY",
        "LOCALTIME",
        "LOCALTIMESTAMP",
        "REVISIONID",
        "REVISIONDAY",
        "REVISIONMONTH",
        "REVISIONYEAR",
        "REVISIONTIMESTAMP",
        "REVISIONUSER",
        "NUMBEROFPAGES",
        "NUMBEROFARTICLES",
        "NUMBEROFFILES",
        "NUMBEROFEDITS",
        "NUMBEROFUSERS",
        "DISPLAYTITLE",
        "DEFAULTSORT",
        "CONTENTLANGUAGE",
        "DIRECTIONMARK",
        "!",
    ]
)

# Functions and transclusion modifiers that require a colon
# ({{lc:Foo}}, {{subst:Foo}}).  Matched case-insensitively.
# See https://www.mediawiki.org/wiki/Help:Magic_words#Parser_functions
MAGIC_FUNCTIONS: frozenset[str] = frozenset(
    [
        "subst",
        "safesubst",
        "msg",
        "msgnw",
        "raw",
        "int",
        "lc",
        "uc",
        "lcfirst",
        "ucfirst",
        "ns",
        "nse",
        "urlencode",
        "anchorencode",
        "fullurl",
        "fullurle",
        "localurl",
        "localurle",
        "canonicalurl",
        "filepath",
        "formatnum",
        "formatdate",
        "padleft",
        "padright",
        "plural",
        "grammar",
        "gender",
        "bidi",
        "tag",
        "pagesincategory",
        "numberingroup",
    ]
)

# Prefix of parser functions that are magic words regardless of any table
PARSER_FN_PREFIX = "#"

_comment_re = re.compile(r"(?s)<!--.*?(?:-->|$)")
_title_space_re = re.compile(r"[\s_]+")


def strip_comments(text: str) -> str:
    """Removes HTML comments, including an unterminated trailing one."""
    return _comment_re.sub("", text)


def canonicalize_title(title: str) -> str:
    """Canonicalizes a page title the way MediaWiki does before lookup:
    NFC normalization, underscores and runs of whitespace replaced by a
    single space, surrounding space removed and the first letter
    upper-cased.  Nothing else is case-folded."""
    title = unicodedata.normalize("NFC", title)
    title = _title_space_re.sub(" ", title).strip()
    if title:
        title = title[0].upper() + title[1:]
    return title

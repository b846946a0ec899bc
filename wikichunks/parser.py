# Transclusion syntax parser for WikiMedia style markup
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org
import enum
import re
from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING,
    ClassVar,
    Literal,
    NamedTuple,
    Optional,
    Union,
    overload,
)

from .common import (
    ARG_START,
    ESCAPE_TAGS,
    LINK_END,
    LINK_START,
    MAGIC_FUNCTIONS,
    MAGIC_SEP,
    MAGIC_VARIABLES,
    NAME_SEP,
    PARAM_SEP,
    PARSER_FN_PREFIX,
    TRANSCLUDE_END,
    TRANSCLUDE_START,
    canonicalize_title,
    strip_comments,
)

if TYPE_CHECKING:
    from .core import Wtc


@enum.unique
class ChunkKind(enum.Enum):
    """Chunk types in a parsed page."""

    # Literal text.  Comments, <nowiki>/<pre> spans, template argument
    # placeholders {{{...}}} and unclosed braces all end up here, and the
    # renderer emits them verbatim.
    MARKUP = enum.auto()

    # A transclusion {{name|arg1|key=value|...}}.  The name is the page
    # (usually template) to substitute; parameters are in source order.
    TRANSCLUDE = enum.auto()

    # A magic word or parser function, such as {{FULLPAGENAME}},
    # {{FULLPAGENAME:Other}}, {{subst:Foo}} or {{#if:x|y}}.  The text after
    # the first colon is in ``arg``; further parameters as for TRANSCLUDE.
    MAGIC_WORD = enum.auto()


_int_key_re = re.compile(r"[1-9][0-9]*")


@dataclass(frozen=True)
class Positional:
    """A parameter identified by its position.  The value is verbatim."""

    value: str

    @property
    def chunks(self) -> "Page":
        """The value parsed as a page of its own.  Transclusions nested in
        a parameter are plain text in the outer chunk; this gives them."""
        return parse_page(self.value)


@dataclass(frozen=True)
class Named:
    """A ``key=value`` parameter.  The key is trimmed, the value is not."""

    key: str
    value: str

    @property
    def chunks(self) -> "Page":
        return parse_page(self.value)


Param = Union[Positional, Named]

TemplateArguments = dict[Union[int, str], str]


class _CallChunk:
    """Operations shared by chunks that carry parameters."""

    params: tuple[Param, ...]

    def __post_init__(self) -> None:
        # Allow lists when constructing by hand; the chunk stays hashable
        object.__setattr__(self, "params", tuple(self.params))

    @property
    def arguments(self) -> TemplateArguments:
        """Parameters as a lookup table, the way a template sees them.
        Positional parameters are numbered from 1.  A named parameter whose
        key is a number overrides that positional slot, and a later
        definition of the same key wins."""
        ret: TemplateArguments = {}
        index = 0
        for param in self.params:
            if isinstance(param, Named):
                if _int_key_re.fullmatch(param.key):
                    ret[int(param.key)] = param.value
                else:
                    ret[param.key] = param.value
            else:
                index += 1
                ret[index] = param.value
        return ret


@dataclass(frozen=True)
class Markup:
    """Literal text of the page."""

    text: str
    kind: ClassVar[ChunkKind] = ChunkKind.MARKUP


@dataclass(frozen=True)
class Transclude(_CallChunk):
    """Reference to another page to be substituted at render time.
    ``source`` is the exact text the chunk was parsed from; it is not
    part of equality and is None for chunks built by hand."""

    name: str
    params: tuple[Param, ...] = ()
    source: Optional[str] = field(default=None, compare=False, repr=False)
    kind: ClassVar[ChunkKind] = ChunkKind.TRANSCLUDE

    def target_title(self, namespace: str = "Template") -> str:
        """Returns the canonical title of the page to transclude.  A leading
        colon ({{:Foo}}) refers to the main namespace; otherwise the name
        is looked up in ``namespace`` unless it already starts with it."""
        name = self.name
        if name.startswith(MAGIC_SEP):
            return canonicalize_title(name[1:])
        name = canonicalize_title(name)
        if not namespace:
            return name
        namespace = canonicalize_title(namespace)
        prefix, sep, rest = name.partition(MAGIC_SEP)
        if sep and canonicalize_title(prefix) == namespace:
            return namespace + MAGIC_SEP + canonicalize_title(rest)
        return namespace + MAGIC_SEP + name


@dataclass(frozen=True)
class MagicWord(_CallChunk):
    """A magic word or parser function call.  ``arg`` is the verbatim text
    after the first colon, or None if there was no colon."""

    name: str
    arg: Optional[str] = None
    params: tuple[Param, ...] = ()
    source: Optional[str] = field(default=None, compare=False, repr=False)
    kind: ClassVar[ChunkKind] = ChunkKind.MAGIC_WORD


Chunk = Union[Markup, Transclude, MagicWord]

# A parsed page.  The order of chunks is the rendering order.
Page = tuple[Chunk, ...]


# Tags whose content is not interpreted, and comments.  Group 1 is the tag
# name and group 2 the slash of a self-closing tag.
_opaque_re_str = r"<!--|<(" + r"|".join(sorted(ESCAPE_TAGS)) + r")\b[^>]*?(/?)>"

# Tokens that matter outside transclusions
_top_re = re.compile(r"\{\{+|" + _opaque_re_str, re.IGNORECASE)

# Tokens that matter inside transclusions and placeholders
_inner_re = re.compile(
    r"\{\{+|\}\}+|\[\[|\]\]|[|=]|" + _opaque_re_str, re.IGNORECASE
)

_escape_end_re: dict[str, re.Pattern] = {
    tag: re.compile(r"</" + tag + r"\s*>", re.IGNORECASE)
    for tag in ESCAPE_TAGS
}

_TEMPLATE_BRACES = len(TRANSCLUDE_START)
_ARG_BRACES = len(ARG_START)


class _Segment(NamedTuple):
    """A ``|``-separated part of a transclusion.  ``eq`` is the position of
    the ``=`` that makes it a named parameter, or None."""

    start: int
    end: int
    eq: Optional[int]


class _Found(NamedTuple):
    """A closed transclusion: the text it covers and its segments."""

    start: int
    end: int
    segments: list[_Segment]


class _Frame:
    """A run of opening braces that has not been matched yet."""

    __slots__ = (
        "start",  # position of the first brace of the run
        "count",  # number of braces still unmatched
        "segments",  # completed segments of the innermost construct
        "seg_start",
        "eq",  # position of the = splitting the current segment, or None
        "nested",  # a {{ has been seen in the current segment
        "links",  # unclosed [[ since the last brace
        "children",  # transclusions closed directly inside, in order
    )

    def __init__(self, start: int, count: int) -> None:
        self.start = start
        self.count = count
        self.reset()

    def reset(self) -> None:
        """Starts the content over after the innermost braces of the run
        have been matched."""
        self.segments: list[_Segment] = []
        self.seg_start = self.start + self.count
        self.eq: Optional[int] = None
        self.nested = False
        self.links = 0
        self.children: list[_Found] = []


class _Scanner:
    """Single forward pass over the text of one page.  Open brace runs are
    kept on a stack; a closing run matches the innermost ones, using three
    braces for a template argument placeholder when both sides have them
    and two for a transclusion otherwise."""

    __slots__ = ("text", "ctx", "variables", "functions", "no_end_tag")

    def __init__(self, text: str, ctx: Optional["Wtc"]) -> None:
        self.text = text
        self.ctx = ctx
        if ctx is None:
            self.variables = MAGIC_VARIABLES
            self.functions = MAGIC_FUNCTIONS
        else:
            self.variables = ctx.magic_variables
            self.functions = ctx.magic_functions
        # Escaping tags whose end tag does not occur in the rest of the text
        self.no_end_tag: set[str] = set()

    def report(self, kind: str, msg: str, pos: int, sortid: str) -> None:
        """Reports a lint message to the context, if there is one.  This
        never affects the parse result."""
        if self.ctx is None:
            return
        snippet = self.text[pos : pos + 40]
        msg = "{} at position {}: {!r}".format(msg, pos, snippet)
        if kind == "warning":
            self.ctx.warning(msg, sortid=sortid, pos=pos)
        else:
            self.ctx.debug(msg, sortid=sortid, pos=pos)

    def skip_opaque(self, m: re.Match) -> int:
        """Returns the end of a comment or escaped span that starts at the
        match.  An unclosed comment runs to the end of the text; an escaping
        tag without its end tag only covers the tag itself."""
        text = self.text
        if m.group(0) == "<!--":
            end = text.find("-->", m.end())
            if end < 0:
                self.report(
                    "debug",
                    "unterminated HTML comment",
                    m.start(),
                    "parser/101",
                )
                return len(text)
            return end + 3
        if m.group(2):  # <nowiki/>
            return m.end()
        tag = m.group(1).lower()
        close = None
        if tag not in self.no_end_tag:
            close = _escape_end_re[tag].search(text, m.end())
        if close is None:
            self.no_end_tag.add(tag)
            self.report(
                "debug",
                "<{}> without end tag".format(tag),
                m.start(),
                "parser/102",
            )
            return m.end()
        return close.end()

    def scan(self) -> list[_Found]:
        """Scans the whole text, returning the transclusions at the top
        level in order.  Braces still open at the end of the text are
        literal; transclusions closed inside them are top level then."""
        text = self.text
        found: list[_Found] = []
        stack: list[_Frame] = []
        pos = 0
        while True:
            m = (_inner_re if stack else _top_re).search(text, pos)
            if m is None:
                break
            p = m.start()
            token = m.group(0)
            pos = m.end()
            if token.startswith(TRANSCLUDE_START):
                if stack:
                    stack[-1].nested = True
                stack.append(_Frame(p, len(token)))
            elif token.startswith(TRANSCLUDE_END):
                self.close(stack, found, p, len(token))
            elif token.startswith("<"):
                pos = self.skip_opaque(m)
            else:
                frame = stack[-1]
                if token == LINK_START:
                    frame.links += 1
                elif frame.links:
                    # | and = inside [[...]] belong to the link
                    if token == LINK_END:
                        frame.links -= 1
                elif token == PARAM_SEP:
                    frame.segments.append(
                        _Segment(frame.seg_start, p, frame.eq)
                    )
                    frame.seg_start = p + 1
                    frame.eq = None
                    frame.nested = False
                elif token == NAME_SEP:
                    # Only the first = of a parameter (never of the name)
                    # splits it, and not after a nested transclusion.
                    if (
                        frame.segments
                        and frame.eq is None
                        and not frame.nested
                    ):
                        frame.eq = p

        for frame in stack:
            self.report(
                "warning",
                "unterminated transclusion",
                frame.start,
                "parser/105",
            )
            found.extend(frame.children)
        return found

    def close(
        self, stack: list[_Frame], found: list[_Found], pos: int, count: int
    ) -> None:
        """Matches a run of ``count`` closing braces at ``pos`` against the
        innermost open braces.  Braces left over on either side are
        literal."""
        while stack and count >= _TEMPLATE_BRACES:
            frame = stack[-1]
            # Unclosed links cannot extend past the braces around them
            frame.links = 0
            if count >= _ARG_BRACES and frame.count >= _ARG_BRACES:
                n = _ARG_BRACES
            else:
                n = _TEMPLATE_BRACES
            start = frame.start + frame.count - n
            end = pos + n
            frame.segments.append(_Segment(frame.seg_start, pos, frame.eq))
            segments = frame.segments
            frame.count -= n
            pos = end
            count -= n
            if frame.count >= _TEMPLATE_BRACES:
                frame.reset()
                frame.nested = True
            else:
                stack.pop()
                if frame.count and n == _TEMPLATE_BRACES:
                    # {{{name}} is a transclusion after a literal {
                    self.report(
                        "debug",
                        "unterminated template argument",
                        frame.start,
                        "parser/104",
                    )
            # Placeholders are literal text at this level
            if n == _TEMPLATE_BRACES:
                item = _Found(start, end, segments)
                if stack:
                    stack[-1].children.append(item)
                else:
                    found.append(item)

    def transclusion(self, item: _Found) -> Chunk:
        """Builds the chunk for a transclusion found at the top level."""
        text = self.text
        source = text[item.start : item.end]
        first = item.segments[0]
        raw = text[first.start : first.end]
        params = tuple(parse_param(text, seg) for seg in item.segments[1:])

        colon = raw.find(MAGIC_SEP)
        if colon >= 0:
            prefix = strip_comments(raw[:colon]).strip()
            if (
                prefix.startswith(PARSER_FN_PREFIX)
                or prefix in self.variables
                or prefix.lower() in self.functions
            ):
                return MagicWord(prefix, raw[colon + 1 :], params, source)

        name = strip_comments(raw).strip()
        if name.startswith(PARSER_FN_PREFIX) or (
            name in self.variables and not params
        ):
            return MagicWord(name, None, params, source)
        if not name:
            self.report(
                "debug",
                "transclusion with empty page name",
                item.start,
                "parser/103",
            )
        return Transclude(name, params, source)


def parse_param(text: str, seg: _Segment) -> Param:
    """Classifies one parameter segment as named or positional."""
    if seg.eq is None:
        return Positional(text[seg.start : seg.end])
    key = strip_comments(text[seg.start : seg.eq]).strip()
    return Named(key, text[seg.eq + 1 : seg.end])


def parse_page(text: str, ctx: Optional["Wtc"] = None) -> Page:
    """Parses markup into a sequence of chunks.  This never fails: syntax
    that cannot be closed is kept as literal text.  If ``ctx`` is given,
    problems found while parsing are reported to it as warnings and debug
    messages; the returned page is the same either way."""
    assert isinstance(text, str)
    scanner = _Scanner(text, ctx)
    chunks: list[Chunk] = []
    pos = 0
    for item in scanner.scan():
        # Everything between transclusions is one piece of markup
        if item.start > pos:
            chunks.append(Markup(text[pos : item.start]))
        chunks.append(scanner.transclusion(item))
        pos = item.end
    if pos < len(text):
        chunks.append(Markup(text[pos:]))
    return tuple(chunks)


@overload
def print_page(
    page: Union[Page, Chunk], indent: int, ret_value: Literal[True]
) -> str: ...


@overload
def print_page(
    page: Union[Page, Chunk],
    indent: int = ...,
    ret_value: Literal[False] = ...,
) -> None: ...


def print_page(
    page: Union[Page, Chunk], indent: int = 0, ret_value=False
) -> Optional[str]:
    """Prints the chunks of a page for debugging purposes."""
    assert isinstance(indent, int)
    if not isinstance(page, tuple):
        page = (page,)
    parts = []
    for chunk in page:
        if chunk.kind == ChunkKind.MARKUP:
            parts.append("{}MARKUP {!r}".format(" " * indent, chunk.text))
            continue
        if chunk.kind == ChunkKind.MAGIC_WORD and chunk.arg is not None:
            head = "{}:{!r}".format(chunk.name, chunk.arg)
        else:
            head = chunk.name
        parts.append("{}{} {}".format(" " * indent, chunk.kind.name, head))
        for param in chunk.params:
            if isinstance(param, Named):
                parts.append(
                    "{}    {}={!r}".format(" " * indent, param.key, param.value)
                )
            else:
                parts.append("{}    {!r}".format(" " * indent, param.value))

    if ret_value:
        return "\n".join(parts)
    print("\n".join(parts))
    return None

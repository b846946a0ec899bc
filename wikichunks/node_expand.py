# Expanding parsed chunks back to Wikitext
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

from collections.abc import Sequence
from typing import Callable, Optional, Union

from .common import (
    MAGIC_SEP,
    NAME_SEP,
    PARAM_SEP,
    TRANSCLUDE_END,
    TRANSCLUDE_START,
)
from .parser import Chunk, ChunkKind, MagicWord, Markup, Named, Page, Transclude

GeneralChunk = Union[str, Chunk, Sequence[Union[str, Chunk]]]

ChunkHandlerFnCallable = Callable[[Chunk], Optional[GeneralChunk]]


def to_wikitext(
    node: Union[GeneralChunk, Page],
    chunk_handler_fn: Optional[ChunkHandlerFnCallable] = None,
    canonical: bool = False,
) -> str:
    """Converts a page (or a chunk) back to Wikitext.  Transclusions and
    magic words are rendered as the text they were parsed from, so that
    the result is identical to the parsed text.  If ``canonical`` is True,
    or a chunk was constructed by hand, they are rendered as
    {{name|positional|key=value}} instead.
    If ``chunk_handler_fn`` is supplied, it will be called for each
    Transclude and MagicWord chunk being rendered, and if it returns
    non-None, the returned value will be rendered instead of the chunk.
    The returned value may be a list, tuple, string, or a chunk;
    ``chunk_handler_fn`` will be called for any chunks in it."""
    assert chunk_handler_fn is None or callable(chunk_handler_fn)

    def recurse(node: Union[GeneralChunk, Page]) -> str:
        if isinstance(node, str):
            return node
        if isinstance(node, (list, tuple)):
            return "".join(map(recurse, node))
        if not isinstance(node, (Markup, Transclude, MagicWord)):
            raise RuntimeError("invalid chunk: {}".format(node))
        if node.kind == ChunkKind.MARKUP:
            return node.text

        if chunk_handler_fn is not None:
            ret = chunk_handler_fn(node)
            if ret is not None and ret is not node:
                return recurse(ret)

        if node.source is not None and not canonical:
            return node.source
        parts: list[str] = [TRANSCLUDE_START, node.name]
        if node.kind == ChunkKind.MAGIC_WORD and node.arg is not None:
            parts.append(MAGIC_SEP)
            parts.append(node.arg)
        for param in node.params:
            parts.append(PARAM_SEP)
            if isinstance(param, Named):
                parts.append(param.key)
                parts.append(NAME_SEP)
            parts.append(param.value)
        parts.append(TRANSCLUDE_END)
        return "".join(parts)

    return recurse(node)

# Definition of the processing context for chunking Wikitext pages, with
# collection of lint messages and caching of parsed pages.
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import logging
from collections.abc import Iterable
from typing import Optional, TypedDict, Union

from lru import LRU

from .common import MAGIC_FUNCTIONS, MAGIC_VARIABLES
from .logging_utils import logger
from .node_expand import ChunkHandlerFnCallable, to_wikitext
from .parser import Chunk, Page, parse_page

_log_levels: dict[str, int] = {
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "DEBUG": logging.DEBUG,
}


class ErrorMessageData(TypedDict):
    msg: str
    trace: str
    title: Optional[str]
    called_from: str
    pos: Optional[int]


class CollatedErrorReturnData(TypedDict):
    errors: list[ErrorMessageData]
    warnings: list[ErrorMessageData]
    debugs: list[ErrorMessageData]


class CacheInfo(TypedDict):
    size: int
    maxsize: int
    hits: int
    misses: int


# Cached value: the page and the lint messages produced while parsing it
CachedPage = tuple[Page, list[tuple[str, ErrorMessageData]]]


class Wtc:
    """Context used for chunking wikitext pages.  The intended usage pattern
    is to initialize this context once per worker (this holds the magic
    word tables and the parse cache), and then use it for processing many
    pages, calling start_page() for each one.  Messages about malformed
    markup are collected per page; they never change the parse result."""

    __slots__ = (
        "debugs",  # List of debug messages (cleared for each new page)
        "errors",  # List of error messages (cleared for each new page)
        "warnings",  # List of warning messages (cleared for each new page)
        "title",  # current page title
        "magic_variables",  # Case-sensitive magic word names
        "magic_functions",  # Lower-case names that require a colon
        "parse_cache",  # Mapping from page text -> CachedPage, or None
        "cache_hits",
        "cache_misses",
        "recording",  # Lint messages of the parse in progress, or None
    )

    def __init__(
        self,
        magic_words: Optional[Iterable[str]] = None,
        magic_functions: Optional[Iterable[str]] = None,
        cache_size: int = 1000,
        quiet: bool = False,
    ):
        assert isinstance(cache_size, int) and cache_size >= 0
        self.errors: list[ErrorMessageData] = []
        self.warnings: list[ErrorMessageData] = []
        self.debugs: list[ErrorMessageData] = []
        self.title: Optional[str] = None
        self.magic_variables: frozenset[str] = MAGIC_VARIABLES
        if magic_words is not None:
            self.magic_variables = self.magic_variables | frozenset(magic_words)
        self.magic_functions: frozenset[str] = MAGIC_FUNCTIONS
        if magic_functions is not None:
            self.magic_functions = self.magic_functions | frozenset(
                x.lower() for x in magic_functions
            )
        self.parse_cache: Optional[LRU] = (
            LRU(cache_size) if cache_size > 0 else None
        )
        self.cache_hits = 0
        self.cache_misses = 0
        self.recording: Optional[list[tuple[str, ErrorMessageData]]] = None
        if not quiet:
            logger.setLevel(logging.DEBUG)

    def start_page(self, title: str) -> None:
        """Starts a new page.  Calling this is optional, but it names the
        page in messages and clears the self.errors, self.warnings and
        self.debugs lists."""
        assert isinstance(title, str)
        self.title = title
        self.errors = []
        self.warnings = []
        self.debugs = []

    def _fmt_errmsg(self, kind: str, msg: str, trace: Optional[str]) -> None:
        assert isinstance(kind, str)
        assert isinstance(msg, str)
        assert isinstance(trace, (str, type(None)))
        loc = self.title or "ERROR_TITLE"
        if trace:
            msg += "\n" + trace
        logger.log(_log_levels[kind], "{}: {}: {}".format(loc, kind, msg))

    def _add_message(
        self,
        kind: str,
        msg: str,
        trace: Optional[str],
        sortid: str,
        pos: Optional[int],
    ) -> None:
        assert isinstance(msg, str)
        assert isinstance(trace, (str, type(None)))
        # sortid should be a static string only used to sort messages
        # into buckets based on where they have been called.
        assert isinstance(sortid, str)
        assert pos is None or isinstance(pos, int)
        data: ErrorMessageData = {
            "msg": msg,
            "trace": trace or "",
            "title": self.title or "ERROR_TITLE",
            "called_from": sortid,
            "pos": pos,
        }
        if kind == "ERROR":
            self.errors.append(data)
        elif kind == "WARNING":
            self.warnings.append(data)
        else:
            self.debugs.append(data)
        if self.recording is not None:
            self.recording.append((kind, data))
        self._fmt_errmsg(kind, msg, trace)

    def error(
        self,
        msg: str,
        trace: Optional[str] = None,
        sortid="XYZunsorted",
        pos: Optional[int] = None,
    ) -> None:
        """Logs an error message.  The error is also saved in
        self.errors.  The parser itself only reports warnings and debug
        messages; this is for code rendering the chunks, such as a
        chunk_handler_fn that cannot find a template."""
        self._add_message("ERROR", msg, trace, sortid, pos)

    def warning(
        self,
        msg: str,
        trace: Optional[str] = None,
        sortid="XYZunsorted",
        pos: Optional[int] = None,
    ) -> None:
        """Logs a warning message.  The warning is also saved in
        self.warnings."""
        self._add_message("WARNING", msg, trace, sortid, pos)

    def debug(
        self,
        msg: str,
        trace: Optional[str] = None,
        sortid="XYZunsorted",
        pos: Optional[int] = None,
    ) -> None:
        """Logs a debug message.  The message is also saved in
        self.debugs."""
        self._add_message("DEBUG", msg, trace, sortid, pos)

    def to_return(self) -> CollatedErrorReturnData:
        """Returns a dictionary with errors, warnings, and debug messages
        from the context.  Note that the values are reset whenever starting
        processing a new page.  The value returned by this function is
        JSON-compatible and can easily be returned by a parallel process."""
        return {
            "errors": self.errors,
            "warnings": self.warnings,
            "debugs": self.debugs,
        }

    def parse(self, text: str) -> Page:
        """Parses the given text into chunks, reporting unterminated
        transclusions and similar problems as warnings and debug messages.
        Pages are cached by their text; the messages of a cached page are
        reported again when it is returned from the cache."""
        assert isinstance(text, str)
        if self.parse_cache is not None:
            cached: Optional[CachedPage] = self.parse_cache.get(text)
            if cached is not None:
                self.cache_hits += 1
                page, messages = cached
                for kind, data in messages:
                    self._add_message(
                        kind,
                        data["msg"],
                        data["trace"] or None,
                        data["called_from"],
                        data["pos"],
                    )
                return page
            self.cache_misses += 1

        self.recording = []
        try:
            page = parse_page(text, self)
            messages = self.recording
        finally:
            self.recording = None
        if self.parse_cache is not None:
            self.parse_cache[text] = (page, messages)
        return page

    def cache_info(self) -> CacheInfo:
        """Returns statistics about the parse cache."""
        if self.parse_cache is None:
            return {
                "size": 0,
                "maxsize": 0,
                "hits": self.cache_hits,
                "misses": self.cache_misses,
            }
        return {
            "size": len(self.parse_cache),
            "maxsize": self.parse_cache.get_size(),
            "hits": self.cache_hits,
            "misses": self.cache_misses,
        }

    def clear_cache(self) -> None:
        if self.parse_cache is not None:
            self.parse_cache.clear()
        self.cache_hits = 0
        self.cache_misses = 0

    def page_to_wikitext(
        self,
        page: Union[Page, Chunk],
        chunk_handler_fn: Optional[ChunkHandlerFnCallable] = None,
        canonical: bool = False,
    ) -> str:
        """Converts a page or chunk back to Wikitext.  See
        node_expand.to_wikitext()."""
        return to_wikitext(page, chunk_handler_fn, canonical)

from .common import MAGIC_FUNCTIONS, MAGIC_VARIABLES
from .core import Wtc
from .node_expand import to_wikitext
from .parser import (
    Chunk,
    ChunkKind,
    MagicWord,
    Markup,
    Named,
    Page,
    Positional,
    Transclude,
    parse_page,
)

__all__ = (
    "Wtc",
    "Chunk",
    "ChunkKind",
    "MagicWord",
    "Markup",
    "Named",
    "Page",
    "Positional",
    "Transclude",
    "parse_page",
    "to_wikitext",
    "MAGIC_VARIABLES",  # Some applications extend the default tables
    "MAGIC_FUNCTIONS",
)

from .chunk import Chunk, chunk
from .collect import Collect, collect
from .filter import Filter, filter
from .flat import Flat, FlatMap, flat, flat_map
from .group_by import GroupBy, group_by
from .join import Join, join
from .map import Map, map
from .reduce import NOT_PROVIDED, Reduce, reduce
from .split import Split, split
from .take import Take, take
from .tap import Tap, tap
from .unique import Unique, unique
from .validate import Validate, validate

__all__ = [
    "Chunk",
    "Collect",
    "Filter",
    "Flat",
    "FlatMap",
    "GroupBy",
    "Join",
    "Map",
    "NOT_PROVIDED",
    "Reduce",
    "Split",
    "Take",
    "Tap",
    "Unique",
    "Validate",
    "chunk",
    "collect",
    "filter",
    "flat",
    "flat_map",
    "group_by",
    "join",
    "map",
    "reduce",
    "split",
    "take",
    "tap",
    "unique",
    "validate",
]

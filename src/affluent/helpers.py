"""Reusable pipeline fragments for ``Pipeline.apply``.

Each helper returns a function taking a pipeline and returning the extended
pipeline::

    words = await Pipeline(lines).apply(trim).apply(split_words(" ")).result()
"""

import json
import re
from typing import Any, Callable, Optional, Pattern, Union

from affluent.errors import ErrorPolicy
from affluent.pipeline import Pipeline

Fragment = Callable[[Pipeline[Any]], Pipeline[Any]]


def split_words(separator: Union[str, Pattern[str]] = " ") -> Fragment:
    """Split each string item and emit the parts as individual items."""

    def fragment(pipeline: Pipeline[str]) -> Pipeline[str]:
        return pipeline.split(separator).flat()

    return fragment


def join_all(separator: str = "") -> Fragment:
    """Join every string item into a single string."""

    def fragment(pipeline: Pipeline[str]) -> Pipeline[str]:
        return pipeline.join(separator)

    return fragment


def trim(pipeline: Pipeline[str]) -> Pipeline[str]:
    """Strip surrounding whitespace from each string item."""
    return pipeline.map(str.strip)


def replace(search: Union[str, Pattern[str]], replacement: str) -> Fragment:
    """Replace every occurrence of ``search`` in each string item.

    Args:
        search: Literal substring or compiled regular expression
        replacement: Replacement text (may use group references for patterns)
    """
    if isinstance(search, re.Pattern):

        def substitute(text: str) -> str:
            return search.sub(replacement, text)

    else:

        def substitute(text: str) -> str:
            return text.replace(search, replacement)

    def fragment(pipeline: Pipeline[str]) -> Pipeline[str]:
        return pipeline.map(substitute)

    return fragment


def parse_json(error_policy: Optional[ErrorPolicy[str, Any]] = None) -> Fragment:
    """Decode each item as a JSON document.

    Malformed documents raise ``json.JSONDecodeError`` unless ``error_policy``
    handles them.
    """

    def fragment(pipeline: Pipeline[str]) -> Pipeline[Any]:
        return pipeline.map(json.loads, error_policy)

    return fragment


def stringify_json(pipeline: Pipeline[Any]) -> Pipeline[str]:
    """Encode each item as a JSON document."""
    return pipeline.map(json.dumps)

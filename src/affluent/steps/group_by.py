from typing import Any, Callable, Dict, List, Mapping, Union

from ..base import Stream, T
from .reduce import Reduce, _ReduceProcessor


def _key_getter(key: Union[str, Callable[[T], Any]]) -> Callable[[T], Any]:
    if callable(key):
        return key

    def _get(item: T) -> Any:
        # Records are usually dicts; fall back to attributes for objects
        if isinstance(item, Mapping):
            return item.get(key)
        return getattr(item, key, None)

    return _get


class GroupBy(Reduce[T, Dict[Any, List[T]]]):
    """Pipeline step that groups records by a field into a dictionary.

    GroupBy is a reduce whose accumulator maps each observed value of ``key``
    to the list of records sharing it. Groups keep the arrival order of their
    records, and keys appear in the order they were first seen. The single
    dictionary is emitted once the input is exhausted.

    Example:
        >>> rows = [{"k": "x", "v": 1}, {"k": "y", "v": 2}, {"k": "x", "v": 3}]
        >>> await (rows | group_by("k")).result()
        >>> # [{"x": [{"k": "x", "v": 1}, {"k": "x", "v": 3}], "y": [{"k": "y", "v": 2}]}]

        >>> # Group words by length
        >>> await (["cat", "dog", "bird"] | group_by(len)).result()
        >>> # [{3: ["cat", "dog"], 4: ["bird"]}]

    Note:
        Records missing the field are grouped under ``None``. Key values
        must be hashable.
    """

    def __init__(self, key: Union[str, Callable[[T], Any]]):
        """Initialize the GroupBy step.

        Args:
            key: Field name (mapping key or attribute) or function returning the group key
        """
        self.key = key
        self.get_key = _key_getter(key)
        super().__init__(self._add)

    def _add(self, groups: Dict[Any, List[T]], item: T) -> Dict[Any, List[T]]:
        groups.setdefault(self.get_key(item), []).append(item)
        return groups

    def _build_processor(self, input_stream: Stream[T]) -> _ReduceProcessor[T, Dict[Any, List[T]]]:
        # A fresh accumulator per run, the step itself stays reusable
        return _ReduceProcessor(input_stream, self._add, {}, step_name=self.name)


def group_by(key: Union[str, Callable[[T], Any]]) -> GroupBy[T]:
    """Create a group_by step that groups records by a field or key function.

    Args:
        key: Field name looked up on each record, or a function returning
             the grouping key

    Returns:
        A GroupBy step that can be used in pipelines
    """
    return GroupBy(key)

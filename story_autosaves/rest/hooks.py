"""Filter hooks: named extension points that may observe or replace a value.

A filter callback receives the current value plus any extra arguments and
returns the value to pass on. Callbacks run in ascending priority order;
equal priorities run in registration order.
"""

import itertools
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

FilterCallback = Callable[..., Any]


class FilterRegistry:
    """Registry of filter callbacks keyed by hook name."""

    def __init__(self):
        self._filters: Dict[str, List[Tuple[int, int, FilterCallback]]] = defaultdict(list)
        self._sequence = itertools.count()

    def add_filter(self, hook: str, callback: FilterCallback, priority: int = 10) -> None:
        self._filters[hook].append((priority, next(self._sequence), callback))
        self._filters[hook].sort(key=lambda entry: entry[:2])

    def remove_filter(self, hook: str, callback: FilterCallback) -> bool:
        """Remove every registration of *callback* for *hook*. Returns True if any existed."""
        before = len(self._filters.get(hook, ()))
        self._filters[hook] = [e for e in self._filters.get(hook, []) if e[2] is not callback]
        return len(self._filters[hook]) < before

    def has_filter(self, hook: str) -> bool:
        return bool(self._filters.get(hook))

    def apply_filters(self, hook: str, value: Any, *args: Any) -> Any:
        for _priority, _seq, callback in list(self._filters.get(hook, ())):
            value = callback(value, *args)
        return value

    def clear(self, hook: Optional[str] = None) -> None:
        if hook is None:
            self._filters.clear()
        else:
            self._filters.pop(hook, None)


# Process-wide registry used by controllers.
filters = FilterRegistry()

"""
Search, filter and pagination over an in-memory collection.

The pipeline owns the two page invariants: any filter or search change puts
the page back to 1 immediately, and a refresh that shrinks the result so the
current page no longer exists clamps it back to 1 on the next render.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar, Union

from ctfbot.config import Config
from ctfbot.services.stale_guard import StaleGuard

logger = logging.getLogger(__name__)

T = TypeVar('T')

SearchField = Union[str, Callable[[Any], Any]]
Predicate = Callable[[Any], bool]


def resolve_field(item: Any, path: str) -> Any:
    """Follow a dotted path through mappings and attributes; missing parts give None."""
    value = item
    for part in path.split('.'):
        if value is None:
            return None
        if isinstance(value, dict):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


def _field_texts(item: Any, search_field: SearchField) -> List[str]:
    value = search_field(item) if callable(search_field) else resolve_field(item, search_field)
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value if v is not None]
    return [str(value)]


class Debouncer:
    """Delays a callback until input has been quiet for ``delay`` seconds."""

    def __init__(self, delay: float, guard: Optional[StaleGuard] = None):
        self.delay = delay
        self.guard = guard
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None and not self._handle.cancelled()

    def schedule(self, callback: Callable[[], Any]):
        """Replace any pending call with ``callback``."""
        self.cancel()

        def fire():
            self._handle = None
            callback()

        if self.guard is not None:
            self._handle = self.guard.schedule(self.delay, fire)
        else:
            self._handle = asyncio.get_running_loop().call_later(self.delay, fire)

    def cancel(self):
        if self._handle is None:
            return
        if self.guard is not None:
            self.guard.cancel(self._handle)
        else:
            self._handle.cancel()
        self._handle = None


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    """One render pass worth of pipeline output."""
    page_items: List[T]
    total: int
    page: int
    page_count: int
    page_size: int

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.page_count

    @property
    def showing_from(self) -> int:
        return 0 if self.total == 0 else (self.page - 1) * self.page_size + 1

    @property
    def showing_to(self) -> int:
        return min(self.total, self.page * self.page_size)


class ListQueryPipeline(Generic[T]):
    """
    Live search/filter/paginate state for one list panel.

    Args:
        items: Initial collection
        search_fields: Dotted paths or callables matched against the search term
        page_size: Items per page
        debounce_delay: Quiet period before a new search term applies
        guard: Owning panel's guard; its unmount cancels a pending debounce
        on_change: Called after the debounced term is applied
    """

    def __init__(
        self,
        items: Sequence[T] = (),
        search_fields: Sequence[SearchField] = (),
        page_size: int = 10,
        debounce_delay: float = None,
        guard: Optional[StaleGuard] = None,
        on_change: Optional[Callable[[], Any]] = None
    ):
        if page_size < 1:
            raise ValueError("page_size must be a positive integer")
        self._items: List[T] = list(items)
        self.search_fields = tuple(search_fields)
        self.page_size = page_size
        self.search_term = ""
        self.debounced_term = ""
        self.page = 1
        self.on_change = on_change
        self._filters: Dict[str, Predicate] = {}
        self._debouncer = Debouncer(
            Config.SEARCH_DEBOUNCE_SECONDS if debounce_delay is None else debounce_delay,
            guard
        )
        self._version = 0
        self._cache_key: Optional[Tuple[int, str]] = None
        self._cache: List[T] = []
        self.filter_runs = 0

    # --- inputs ---

    @property
    def items(self) -> List[T]:
        return self._items

    def set_items(self, items: Sequence[T]):
        """Replace the collection after a fetch; the page is clamped on the next render."""
        self._items = list(items)
        self._version += 1

    def invalidate(self):
        """Force the next render to re-run the filters (e.g. after the clock moved on)."""
        self._version += 1

    def set_search_term(self, term: str):
        """Record a keystroke; page resets now, the filter applies after the quiet period."""
        self.search_term = term or ""
        self.page = 1
        self._debouncer.schedule(self._apply_search_term)

    def flush_search(self):
        """Apply the pending search term immediately."""
        if self._debouncer.pending:
            self._debouncer.cancel()
            self._apply_search_term()

    def _apply_search_term(self):
        if self.debounced_term == self.search_term:
            return
        self.debounced_term = self.search_term
        self._version += 1
        logger.debug(f"Search term applied: {self.debounced_term!r}")
        if self.on_change is not None:
            self.on_change()

    def set_filter(self, name: str, predicate: Optional[Predicate]):
        """Install, replace or (with None) remove a named filter."""
        if predicate is None:
            self._filters.pop(name, None)
        else:
            self._filters[name] = predicate
        self.page = 1
        self._version += 1

    def clear_filters(self):
        """Drop every filter and the search term."""
        self._debouncer.cancel()
        self._filters.clear()
        self.search_term = ""
        self.debounced_term = ""
        self.page = 1
        self._version += 1

    @property
    def active_filters(self) -> Tuple[str, ...]:
        return tuple(self._filters)

    def set_page(self, page: int) -> bool:
        """Move to ``page``; out-of-range requests are ignored."""
        if page < 1 or page > self.page_count:
            return False
        self.page = page
        return True

    def next_page(self) -> bool:
        return self.set_page(self.page + 1)

    def previous_page(self) -> bool:
        return self.set_page(self.page - 1)

    def set_page_size(self, page_size: int):
        if page_size < 1:
            raise ValueError("page_size must be a positive integer")
        self.page_size = page_size
        self.page = 1

    def close(self):
        """Cancel a pending debounce; call on unmount."""
        self._debouncer.cancel()

    # --- outputs ---

    def _matches(self, item: T, needle: str) -> bool:
        for predicate in self._filters.values():
            if not predicate(item):
                return False
        if not needle:
            return True
        for search_field in self.search_fields:
            for text in _field_texts(item, search_field):
                if needle in text.lower():
                    return True
        return False

    @property
    def filtered_items(self) -> List[T]:
        key = (self._version, self.debounced_term)
        if key != self._cache_key:
            needle = self.debounced_term.strip().lower()
            self._cache = [item for item in self._items if self._matches(item, needle)]
            self._cache_key = key
            self.filter_runs += 1
        return self._cache

    @property
    def total(self) -> int:
        return len(self.filtered_items)

    @property
    def page_count(self) -> int:
        return max(1, math.ceil(self.total / self.page_size))

    def render(self) -> QueryResult[T]:
        """Compute the visible slice, clamping a page that no longer exists back to 1."""
        page_count = self.page_count
        if self.page > page_count:
            logger.debug(f"Page {self.page} exceeds page count {page_count}; resetting to 1")
            self.page = 1
        start = (self.page - 1) * self.page_size
        filtered = self.filtered_items
        return QueryResult(
            page_items=filtered[start:start + self.page_size],
            total=len(filtered),
            page=self.page,
            page_count=page_count,
            page_size=self.page_size,
        )

    @property
    def page_items(self) -> List[T]:
        return self.render().page_items

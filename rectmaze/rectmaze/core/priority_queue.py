import heapq
import itertools
from typing import Any, Hashable, Tuple


class IndexedPriorityQueue:
    """
    Min-priority queue addressable by item, supporting in-place priority changes.

    Backed by a binary heap with lazy invalidation: changing an item's priority pushes a new
    heap entry and marks the old one stale. Entries are (priority, counter, item) so ties pop
    in insertion order and items themselves are never compared.
    """

    _REMOVED = object()

    def __init__(self) -> None:
        self._heap = []
        self._entries = {}
        self._counter = itertools.count()

    def push(self, item: Hashable, priority: Any) -> None:
        """
        Adds an item, or replaces the priority of an item already queued.

        Parameters:
        - item: any hashable key.
        - priority: any value orderable against the other priorities.
        """
        if item in self._entries:
            self._invalidate(item)
        entry = [priority, next(self._counter), item]
        self._entries[item] = entry
        heapq.heappush(self._heap, entry)

    def change_priority(self, item: Hashable, priority: Any) -> None:
        """
        Updates the priority of a queued item.

        Parameters:
        - item: an item currently in the queue.
        - priority: the new priority.
        """
        if item not in self._entries:
            raise KeyError(f"{item!r} is not in the queue")
        self.push(item, priority)

    def priority(self, item: Hashable) -> Any:
        return self._entries[item][0]

    def pop(self) -> Tuple[Hashable, Any]:
        """
        Removes and returns the (item, priority) pair with the lowest priority.
        """
        while self._heap:
            priority, _, item = heapq.heappop(self._heap)
            if item is not self._REMOVED:
                del self._entries[item]
                return item, priority
        raise KeyError("pop from an empty priority queue")

    def _invalidate(self, item: Hashable) -> None:
        entry = self._entries.pop(item)
        entry[-1] = self._REMOVED

    def __contains__(self, item: Hashable) -> bool:
        return item in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

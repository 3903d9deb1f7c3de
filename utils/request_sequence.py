from collections import defaultdict
from typing import Hashable


class RequestSequencer:
    """
    Stale-response guard for reloads.

    Every reload takes a ticket before it awaits the network. When the
    response arrives it is applied only if no newer ticket was issued for
    the same key in the meantime; otherwise it is dropped.
    """

    def __init__(self):
        self._latest: dict[Hashable, int] = defaultdict(int)

    def issue(self, key: Hashable = None) -> int:
        self._latest[key] += 1
        return self._latest[key]

    def is_current(self, key: Hashable, ticket: int) -> bool:
        return self._latest[key] == ticket

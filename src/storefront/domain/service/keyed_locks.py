"""Named mutual-exclusion locks.

Used to serialise read-modify-write cycles on one collection (the store)
or on one product (the stock ledger) inside a process.
"""

from __future__ import annotations

import asyncio
import threading
import weakref


class KeyedAsyncLocks:
    """One ``asyncio.Lock`` per key, per running event loop.

    asyncio locks bind to the loop they first wait on, so a store that
    outlives one ``asyncio.run()`` call keeps a separate lock table for each
    loop that uses it. Entries are weak: a lock lives only while someone
    holds it or waits on it, so the table does not grow with the number of
    products ever touched.
    """

    def __init__(self) -> None:
        self._by_loop: weakref.WeakKeyDictionary[
            asyncio.AbstractEventLoop, weakref.WeakValueDictionary[str, asyncio.Lock]
        ] = weakref.WeakKeyDictionary()

    def lock(self, key: str) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        locks = self._by_loop.get(loop)
        if locks is None:
            locks = self._by_loop[loop] = weakref.WeakValueDictionary()
        lock = locks.get(key)
        if lock is None:
            lock = locks[key] = asyncio.Lock()
        return lock

    def __len__(self) -> int:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return 0
        return len(self._by_loop.get(loop, ()))


class KeyedThreadLocks:
    """One re-entrant thread lock per key.

    Entries are never dropped. Keys are collection names, a small fixed set.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def lock(self, key: str) -> threading.RLock:
        with self._guard:
            if key not in self._locks:
                self._locks[key] = threading.RLock()
            return self._locks[key]

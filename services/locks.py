import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Hashable, Iterator

from services.errors import ConflictError

logger = logging.getLogger(__name__)


class InvoiceLockRegistry:
     """
     One lock per key (an invoice id, or ``("job", job_id)``), acquired
     with a bounded wait.

     Serializes mutations of the same record inside this process; the
     version columns catch writers in other processes. An entry lives only
     while someone holds or waits for it.
     """

     def __init__(self):
          self._guard = threading.Lock()
          self._locks: Dict[Hashable, threading.Lock] = {}
          self._users: Dict[Hashable, int] = {}

     def __len__(self) -> int:
          with self._guard:
               return len(self._locks)

     def _checkout(self, key: Hashable) -> threading.Lock:
          with self._guard:
               lock = self._locks.get(key)
               if lock is None:
                    lock = self._locks[key] = threading.Lock()
               self._users[key] = self._users.get(key, 0) + 1
               return lock

     def _checkin(self, key: Hashable) -> None:
          with self._guard:
               self._users[key] -= 1
               if not self._users[key]:
                    del self._users[key]
                    del self._locks[key]

     @contextmanager
     def hold(self, key: Hashable, timeout: float, **context: Any) -> Iterator[None]:
          """
          Hold the lock for ``key``.

          ``context`` is attached to the ConflictError; it defaults to
          ``invoice_id=key``.

          Raises:
               ConflictError: the lock was not free within ``timeout`` seconds
          """
          lock = self._checkout(key)
          try:
               if not lock.acquire(timeout=timeout):
                    logger.warning("Timed out after %ss waiting for %s", timeout, key)
                    raise ConflictError(
                         f"{key} is being modified; retry the operation",
                         **(context or {"invoice_id": key}),
                         timeout_seconds=timeout,
                    )
               try:
                    yield
               finally:
                    lock.release()
          finally:
               self._checkin(key)

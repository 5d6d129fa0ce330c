# services/number_allocator.py
"""
Invoice and payment number allocation.

Numbers look like ``INV-2026-000042``: a prefix per kind, the allocation
year and a per-tenant counter that never resets. The counter is the only
source of uniqueness; the year is there for readability. Two
implementations share the formatting:

- InMemoryNumberAllocator: a lock-guarded counter, for single-process
  use and tests.
- DatabaseNumberAllocator: an atomic ``UPDATE ... SET last_value =
  last_value + 1`` on the ``number_sequences`` row, committed in its own
  transaction so a rolled-back invoice never hands its number out twice.
"""
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from config import BillingSettings
from models import NumberSequence
from services.errors import AllocationExhaustedError

logger = logging.getLogger(__name__)

INVOICE = "invoice"
PAYMENT = "payment"


def _utcnow() -> datetime:
     return datetime.now(timezone.utc)


class NumberAllocator:
     """Base allocator: formatting, kind validation and exhaustion checks."""

     def __init__(
          self,
          tenant_id: str = "default",
          prefixes: Optional[Dict[str, str]] = None,
          max_sequence: int = 999999,
          clock: Callable[[], datetime] = _utcnow,
     ):
          self.tenant_id = tenant_id
          self.prefixes = prefixes or {INVOICE: "INV", PAYMENT: "PAY"}
          self.max_sequence = max_sequence
          self._clock = clock
          self._width = len(str(max_sequence))

     @classmethod
     def settings_kwargs(cls, settings: BillingSettings) -> dict:
          return {
               "tenant_id": settings.tenant_id,
               "prefixes": {
                    INVOICE: settings.invoice_number_prefix,
                    PAYMENT: settings.payment_number_prefix,
               },
               "max_sequence": settings.number_max_sequence,
          }

     def allocate(self, kind: str) -> str:
          """
          Return a new identifier for ``kind`` ("invoice" or "payment").

          Raises:
               ValueError: unknown kind
               AllocationExhaustedError: the counter passed max_sequence
          """
          if kind not in self.prefixes:
               raise ValueError(f"Unknown number kind: {kind!r}")
          value = self._next_value(kind)
          if value > self.max_sequence:
               raise AllocationExhaustedError(
                    f"{kind} number space exhausted for tenant {self.tenant_id}",
                    kind=kind,
                    tenant_id=self.tenant_id,
                    max_sequence=self.max_sequence,
               )
          return self.format(kind, value)

     def format(self, kind: str, value: int) -> str:
          year = self._clock().year
          return f"{self.prefixes[kind]}-{year}-{value:0{self._width}d}"

     def _next_value(self, kind: str) -> int:
          raise NotImplementedError


class InMemoryNumberAllocator(NumberAllocator):
     """Process-local counter. Thread-safe; not shared across processes."""

     def __init__(self, *args, start: int = 0, **kwargs):
          super().__init__(*args, **kwargs)
          self._lock = threading.Lock()
          self._counters: Dict[str, int] = {kind: start for kind in self.prefixes}

     def _next_value(self, kind: str) -> int:
          with self._lock:
               self._counters[kind] += 1
               return self._counters[kind]


class DatabaseNumberAllocator(NumberAllocator):
     """Counter persisted in ``number_sequences``; safe across processes."""

     def __init__(self, session_factory: sessionmaker, *args, **kwargs):
          super().__init__(*args, **kwargs)
          self._session_factory = session_factory

     def _increment(self, db, kind: str) -> Optional[int]:
          stmt = (
               update(NumberSequence)
               .where(
                    NumberSequence.tenant_id == self.tenant_id,
                    NumberSequence.kind == kind,
               )
               .values(last_value=NumberSequence.last_value + 1)
               .returning(NumberSequence.last_value)
               .execution_options(synchronize_session=False)
          )
          return db.execute(stmt).scalar_one_or_none()

     def _next_value(self, kind: str) -> int:
          # Two attempts: the second covers losing the race to create the row.
          for attempt in range(2):
               db = self._session_factory()
               try:
                    value = self._increment(db, kind)
                    if value is None:
                         db.add(NumberSequence(tenant_id=self.tenant_id, kind=kind, last_value=1))
                         db.flush()
                         value = 1
                    db.commit()
                    return value
               except IntegrityError:
                    db.rollback()
                    if attempt:
                         raise
                    logger.info("Sequence row for %s/%s created concurrently; retrying", self.tenant_id, kind)
               except Exception:
                    db.rollback()
                    raise
               finally:
                    db.close()

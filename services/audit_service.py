# services/audit_service.py
"""
Audit events emitted by the billing engine.

Sinks are best effort: a failing sink is logged and never blocks or rolls
back the operation being audited.
"""
import json
import logging
from typing import Any, Dict, Optional, Protocol

from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import sessionmaker

from models import AuditLog

logger = logging.getLogger(__name__)

INVOICE_GENERATED = "invoice_generated"
PAYMENT_RECORDED = "payment_recorded"
UPDATE = "update"
EMAIL_SENT = "email_sent"


class AuditEvent(BaseModel):
     action: str
     entity_type: str
     entity_id: Optional[str] = None
     actor: Optional[str] = None
     old_data: Optional[Dict[str, Any]] = None
     new_data: Optional[Dict[str, Any]] = None

     model_config = ConfigDict(frozen=True)


class AuditSink(Protocol):
     def record(self, event: AuditEvent) -> None:
          ...


class LoggingAuditSink:
     """Writes audit events to the application log."""

     def record(self, event: AuditEvent) -> None:
          logger.info("AUDIT %s", event.model_dump_json(exclude_none=True))


class DatabaseAuditSink:
     """
     Writes audit events to ``audit_logs`` through its own session, so the
     audit row is independent of the caller's transaction.
     """

     def __init__(self, session_factory: sessionmaker):
          self._session_factory = session_factory

     def record(self, event: AuditEvent) -> None:
          db = self._session_factory()
          try:
               db.add(AuditLog(
                    action=event.action,
                    entity_type=event.entity_type,
                    entity_id=event.entity_id,
                    actor=event.actor,
                    old_data=json.dumps(event.old_data, default=str) if event.old_data is not None else None,
                    new_data=json.dumps(event.new_data, default=str) if event.new_data is not None else None,
               ))
               db.commit()
          except Exception:
               db.rollback()
               raise
          finally:
               db.close()


def record_audit_event(sink: AuditSink, event: AuditEvent) -> bool:
     """Record ``event``; failures are logged and swallowed."""
     try:
          sink.record(event)
          return True
     except Exception:
          logger.exception("Failed to record audit event %s for %s %s", event.action, event.entity_type, event.entity_id)
          return False


def invoice_snapshot(invoice) -> Dict[str, Any]:
     """Mutable financial state of an invoice, for old_data/new_data."""
     return {
          "invoice_number": invoice.invoice_number,
          "status": invoice.status.value if invoice.status is not None else None,
          "total": str(invoice.total),
          "amount_paid": str(invoice.amount_paid),
          "balance": str(invoice.balance),
     }

"""
FastAPI dependencies: caller identity, permission checks and the billing
services shared by the routers.
"""
import logging
from functools import lru_cache
from typing import Callable, Dict, FrozenSet

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt

from config import BillingSettings, get_settings
from database import SessionLocal
from services.audit_service import DatabaseAuditSink
from services.invoice_service import InvoiceService
from services.locks import InvoiceLockRegistry
from services.notification_service import LoggingNotifier, Notifier, WebhookNotifier
from services.number_allocator import DatabaseNumberAllocator, NumberAllocator
from services.payment_ledger import PaymentLedger
from utils.email import BrevoEmailNotifier

logger = logging.getLogger(__name__)

# Permissions
GENERATE_INVOICES = "generate_invoices"
SEND_INVOICES = "send_invoices"
RECORD_PAYMENTS = "record_payments"
VOID_INVOICES = "void_invoices"
VIEW_BILLING = "view_billing"

ROLE_PERMISSIONS: Dict[str, FrozenSet[str]] = {
     "ADMIN": frozenset({GENERATE_INVOICES, SEND_INVOICES, RECORD_PAYMENTS, VOID_INVOICES, VIEW_BILLING}),
     "ACCOUNTS": frozenset({GENERATE_INVOICES, SEND_INVOICES, RECORD_PAYMENTS, VIEW_BILLING}),
     "OPERATIONS": frozenset({GENERATE_INVOICES, SEND_INVOICES, VIEW_BILLING}),
     "VIEWER": frozenset({VIEW_BILLING}),
}


def has_permission(role: str, permission: str) -> bool:
     return permission in ROLE_PERMISSIONS.get((role or "").upper(), frozenset())


# Token Auth Dependency
def verify_token(request: Request, settings: BillingSettings = Depends(get_settings)) -> dict:
     auth = request.headers.get("Authorization")
     if not auth or not auth.startswith("Bearer "):
          raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
     if not settings.jwt_secret:
          logger.error("JWT_SECRET is not configured; rejecting request")
          raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication not configured")
     token = auth.split(" ", 1)[1]
     try:
          return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
     except JWTError:
          raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")


def require_permission(permission: str) -> Callable[..., dict]:
     """Dependency factory: the caller's role must grant ``permission``."""

     def _check(token: dict = Depends(verify_token)) -> dict:
          if not has_permission(token.get("role"), permission):
               raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Role {token.get('role')!r} may not {permission.replace('_', ' ')}",
               )
          return token

     return _check


def actor_of(token: dict) -> str:
     return str(token.get("email") or token.get("sub") or token.get("id") or "unknown")


# ---------------------------------------------------------------------------
# Service wiring (one instance per process so locks and counters are shared)
# ---------------------------------------------------------------------------

def build_notifier(settings: BillingSettings) -> Notifier:
     if settings.notification_url:
          return WebhookNotifier(settings.notification_url)
     if settings.brevo_api_key:
          return BrevoEmailNotifier(settings.brevo_api_key, settings.mail_sender_email)
     return LoggingNotifier()


@lru_cache(maxsize=1)
def get_lock_registry() -> InvoiceLockRegistry:
     return InvoiceLockRegistry()


@lru_cache(maxsize=1)
def get_number_allocator() -> NumberAllocator:
     settings = get_settings()
     return DatabaseNumberAllocator(SessionLocal, **NumberAllocator.settings_kwargs(settings))


@lru_cache(maxsize=1)
def get_invoice_service() -> InvoiceService:
     settings = get_settings()
     return InvoiceService(
          allocator=get_number_allocator(),
          notifier=build_notifier(settings),
          audit_sink=DatabaseAuditSink(SessionLocal),
          settings=settings,
          locks=get_lock_registry(),
     )


@lru_cache(maxsize=1)
def get_payment_ledger() -> PaymentLedger:
     settings = get_settings()
     return PaymentLedger(
          allocator=get_number_allocator(),
          notifier=build_notifier(settings),
          audit_sink=DatabaseAuditSink(SessionLocal),
          settings=settings,
          locks=get_lock_registry(),
     )

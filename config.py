"""
Runtime configuration for the CargoClear billing backend.

Values are read from environment variables (optionally loaded from a
.env file). The billing engine receives a BillingSettings instance
instead of reading the environment itself, so tests can build one
directly.
"""
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
     raw = os.getenv(name)
     if raw is None:
          return default
     return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
     raw = os.getenv(name)
     if raw is None or raw.strip() == "":
          return default
     return int(raw)


def _env_float(name: str, default: float) -> float:
     raw = os.getenv(name)
     if raw is None or raw.strip() == "":
          return default
     return float(raw)


@dataclass(frozen=True)
class BillingSettings:
     """Settings consumed by the invoice and payment services."""

     tenant_id: str = "default"
     payment_terms_days: int = 30
     currency: str = "USD"
     allow_overpayment: bool = False
     lock_timeout_seconds: float = 5.0
     invoice_number_prefix: str = "INV"
     payment_number_prefix: str = "PAY"
     number_max_sequence: int = 999999

     # Company details printed on customer notifications
     company_name: Optional[str] = None
     company_email: Optional[str] = None
     company_address: Optional[str] = None
     company_phone: Optional[str] = None

     # Notification delivery
     notification_url: Optional[str] = None
     brevo_api_key: Optional[str] = None
     mail_sender_email: str = "noreply@cargoclear.app"

     # Auth
     jwt_secret: Optional[str] = None
     jwt_algorithm: str = "HS256"

     cors_origins: List[str] = field(default_factory=list)

     @classmethod
     def from_env(cls) -> "BillingSettings":
          """Build settings from the process environment."""
          origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
          return cls(
               tenant_id=os.getenv("TENANT_ID", "default"),
               payment_terms_days=_env_int("PAYMENT_TERMS_DAYS", 30),
               currency=os.getenv("INVOICE_CURRENCY", "USD"),
               allow_overpayment=_env_bool("ALLOW_OVERPAYMENT", False),
               lock_timeout_seconds=_env_float("LOCK_TIMEOUT_SECONDS", 5.0),
               invoice_number_prefix=os.getenv("INVOICE_NUMBER_PREFIX", "INV"),
               payment_number_prefix=os.getenv("PAYMENT_NUMBER_PREFIX", "PAY"),
               number_max_sequence=_env_int("NUMBER_MAX_SEQUENCE", 999999),
               company_name=os.getenv("COMPANY_NAME"),
               company_email=os.getenv("COMPANY_EMAIL"),
               company_address=os.getenv("COMPANY_ADDRESS"),
               company_phone=os.getenv("COMPANY_PHONE"),
               notification_url=os.getenv("NOTIFICATION_URL"),
               brevo_api_key=os.getenv("BREVO_API_KEY"),
               mail_sender_email=os.getenv("MAIL_SENDER_EMAIL", "noreply@cargoclear.app"),
               jwt_secret=os.getenv("JWT_SECRET"),
               jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
               cors_origins=origins,
          )


_settings: Optional[BillingSettings] = None


def get_settings() -> BillingSettings:
     """Return the process-wide settings, reading the environment once."""
     global _settings
     if _settings is None:
          _settings = BillingSettings.from_env()
     return _settings

# models/number_sequence.py
from sqlalchemy import Column, Integer, String, UniqueConstraint
from .base import Base


class NumberSequence(Base):
     """
     Per-tenant counter backing invoice and payment numbers.
     One row per (tenant_id, kind); ``last_value`` only ever increases.
     """
     __tablename__ = "number_sequences"
     __table_args__ = (
          UniqueConstraint("tenant_id", "kind", name="uq_number_sequences_tenant_kind"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)
     tenant_id = Column(String(64), nullable=False)
     kind = Column(String(16), nullable=False)
     last_value = Column(Integer, nullable=False, default=0)

     def __repr__(self):
          return f"<NumberSequence(tenant_id='{self.tenant_id}', kind='{self.kind}', last_value={self.last_value})>"

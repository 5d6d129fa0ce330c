# models/job.py
import enum
from decimal import Decimal

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
from .base import Base


class JobStatus(str, enum.Enum):
     """Lifecycle of a clearing job, as seen by billing."""
     OPEN = "OPEN"
     INVOICED = "INVOICED"
     PARTIALLY_PAID = "PARTIALLY_PAID"
     CLEARED = "CLEARED"
     CANCELLED = "CANCELLED"


class Job(Base):
     """
     Job model - a clearing job and its itemized fee charges.
     """
     __tablename__ = "jobs"

     id = Column(Integer, primary_key=True, autoincrement=True)
     job_number = Column(String(50), nullable=False, unique=True, index=True)
     customer_id = Column(
          Integer,
          ForeignKey("customers.id", ondelete="RESTRICT"),
          nullable=False,
          index=True
     )
     status = Column(
          Enum(JobStatus, name="job_status", create_constraint=True),
          default=JobStatus.OPEN,
          nullable=False,
          index=True
     )
     # Row revision (optimistic concurrency check)
     version = Column(Integer, nullable=False)

     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     customer = relationship("Customer", back_populates="jobs")
     charges = relationship(
          "JobCharge",
          back_populates="job",
          order_by="JobCharge.id",
          cascade="all, delete-orphan"
     )
     invoices = relationship("Invoice", back_populates="job")

     __mapper_args__ = {"version_id_col": version}

     def __repr__(self):
          return f"<Job(id={self.id}, job_number='{self.job_number}', status='{self.status.value}')>"


class JobCharge(Base):
     """
     A single fee line attached to a job before invoicing.
     Immutable once the job is invoiced.
     """
     __tablename__ = "job_charges"

     id = Column(Integer, primary_key=True, autoincrement=True)
     job_id = Column(
          Integer,
          ForeignKey("jobs.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     fee_id = Column(String(64), nullable=False)
     fee_name = Column(String(255), nullable=False)
     description_override = Column(String(500), nullable=True)
     amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
     tax_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

     job = relationship("Job", back_populates="charges")

     @property
     def total(self) -> Decimal:
          """Charge total: amount plus tax."""
          return Decimal(self.amount or 0) + Decimal(self.tax_amount or 0)

     def __repr__(self):
          return f"<JobCharge(id={self.id}, fee='{self.fee_name}', amount={self.amount}, tax={self.tax_amount})>"

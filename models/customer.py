# models/customer.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from sqlalchemy.orm import relationship
from .base import Base


class Customer(Base):
     """
     Customer model - the shipper/consignee billed for clearing jobs.
     Owned by the operations workflow; billing only reads it.
     """
     __tablename__ = "customers"

     id = Column(Integer, primary_key=True, autoincrement=True)
     name = Column(String(255), nullable=False)
     email = Column(String(255), nullable=True)
     is_active = Column(Boolean, default=True, nullable=False)
     quickbooks_customer_id = Column(String(64), nullable=True)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     jobs = relationship("Job", back_populates="customer")
     invoices = relationship("Invoice", back_populates="customer")

     def __repr__(self):
          return f"<Customer(id={self.id}, name='{self.name}')>"

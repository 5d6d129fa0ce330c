# models/audit_log.py
from sqlalchemy import Column, Integer, String, Text, DateTime, func
from .base import Base


class AuditLog(Base):
     """
     Append-only audit trail row written by the database audit sink.
     old_data/new_data hold JSON documents.
     """
     __tablename__ = "audit_logs"

     id = Column(Integer, primary_key=True, autoincrement=True)
     action = Column(String(50), nullable=False, index=True)
     entity_type = Column(String(50), nullable=False)
     entity_id = Column(String(64), nullable=True, index=True)
     actor = Column(String(255), nullable=True)
     old_data = Column(Text, nullable=True)
     new_data = Column(Text, nullable=True)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     def __repr__(self):
          return f"<AuditLog(id={self.id}, action='{self.action}', entity={self.entity_type}:{self.entity_id})>"

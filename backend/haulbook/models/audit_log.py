"""
Audit Log Database Model.

Tracks every mutation of rate versions, ledger transactions and opening balances.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from backend.haulbook.db.session import Base


class AuditLog(Base):
    """
    Audit log model for tracking changes to rates and ledgers.

    Events logged:
    - RATE_VERSION_CREATED / UPDATED / DELETED
    - RATE_VERSION_SUPERSEDED (predecessor closed by a new version)
    - LEDGER_TX_CREATED / UPDATED / DELETED
    - OPENING_BALANCE_SET
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions)
    actor_username = Column(String(100), nullable=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # Which record was touched
    entity_type = Column(String(50), nullable=True, index=True)
    entity_id = Column(String(120), nullable=True, index=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    # Timestamp
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', entity={self.entity_type}:{self.entity_id})>"

"""
Audit logging service for tracking changes to rates and ledgers.

Provides centralized logging for compliance and dispute resolution.
"""

from typing import Optional, Dict, Any
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from backend.haulbook.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    # Rate versioning
    RATE_VERSION_CREATED = "RATE_VERSION_CREATED"
    RATE_VERSION_SUPERSEDED = "RATE_VERSION_SUPERSEDED"
    RATE_VERSION_UPDATED = "RATE_VERSION_UPDATED"
    RATE_VERSION_DELETED = "RATE_VERSION_DELETED"

    # Running ledgers
    LEDGER_TX_CREATED = "LEDGER_TX_CREATED"
    LEDGER_TX_UPDATED = "LEDGER_TX_UPDATED"
    LEDGER_TX_DELETED = "LEDGER_TX_DELETED"
    OPENING_BALANCE_SET = "OPENING_BALANCE_SET"


async def log_event(
    db: AsyncSession,
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Any = None,
    actor_username: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Log a change event to the audit log.

    Args:
        db: Database session (committed by this call)
        action: Action being performed (use AuditAction constants)
        entity_type: Kind of record touched, e.g. "rate_version"
        entity_id: Identifier of the record touched
        actor_username: Username of actor, None for system actions
        metadata: Additional context, made JSON-safe before storing

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_username=actor_username,
        action=action,
        entity_type=entity_type,
        entity_id=None if entity_id is None else str(entity_id),
        meta_data=jsonable_encoder(metadata) if metadata else None,
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    entity_type: Optional[str] = None,
    entity_id: Any = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering.

    Args:
        db: Database session
        entity_type: Filter by record kind
        entity_id: Filter by record identifier
        action: Filter by action type
        limit: Maximum number of records to return

    Returns:
        List of AuditLog instances, most recent first
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if entity_type:
        query = query.where(AuditLog.entity_type == entity_type)

    if entity_id is not None:
        query = query.where(AuditLog.entity_id == str(entity_id))

    if action:
        query = query.where(AuditLog.action == action)

    query = query.limit(limit)

    result = await db.execute(query)
    return result.scalars().all()

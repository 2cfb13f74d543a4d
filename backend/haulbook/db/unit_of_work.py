"""
Unit of work for rate and ledger mutations.

Every read-check-write sequence on one party key or ledger account runs inside
`atomic`: the key is locked for the duration, the session is committed only if
the block finishes, and any failure rolls the whole block back. Key locks are
held in-process and, on PostgreSQL, also as transaction-scoped advisory locks
so writers in other worker processes queue behind them too.
"""

import hashlib
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Hashable, List, Union

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.haulbook.core.exceptions import AppException, TransactionFailureError
from backend.haulbook.services.key_locks import key_locks

logger = logging.getLogger("haulbook.db")


def advisory_lock_id(key: Hashable) -> int:
    """Signed 64-bit id of a lock key, identical in every process (unlike hash())."""
    parts = key if isinstance(key, tuple) else (key,)
    text = "|".join(str(getattr(part, "value", part)) for part in parts)
    digest = hashlib.blake2b(text.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


def _is_postgres(db: AsyncSession) -> bool:
    bind = getattr(db, "bind", None)
    return bind is not None and getattr(bind.dialect, "name", None) == "postgresql"


@asynccontextmanager
async def atomic(db: AsyncSession, scope: Union[Hashable, List[Hashable]], operation: str):
    """
    Run a block as one transaction scoped to `scope`.

    Args:
        db: Database session (must not hold uncommitted work from elsewhere)
        scope: Lock key, e.g. ("rate", ...) or ("ledger", book, account), or a
            list of keys when the block touches several accounts
        operation: Name used in logs and in TransactionFailureError

    Raises:
        AppException: Domain errors raised inside the block, after rollback
        TransactionFailureError: Storage errors, after rollback
    """
    scopes = scope if isinstance(scope, list) else [scope]
    # Fixed acquisition order so two multi-key blocks cannot deadlock
    ordered = sorted(set(scopes), key=repr)

    async with AsyncExitStack() as stack:
        for key in ordered:
            await stack.enter_async_context(key_locks.hold(key))

        try:
            if _is_postgres(db):
                # Released by the commit or rollback below
                for key in ordered:
                    await db.execute(select(func.pg_advisory_xact_lock(advisory_lock_id(key))))
            yield db
            await db.commit()
        except AppException:
            await db.rollback()
            raise
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error("Transaction aborted during %s: %s", operation, exc)
            raise TransactionFailureError(operation, reason=type(exc).__name__) from exc
        except BaseException:
            await db.rollback()
            raise

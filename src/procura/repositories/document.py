"""Repository for signable documents.

All state changes are conditional updates: the WHERE clause carries the
status the caller read, so a concurrent writer makes the update match no
rows and the caller sees a rowcount of zero.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import and_, update
from sqlalchemy.ext.asyncio import AsyncSession

from procura.models.documents import SIGNABLE_DOCUMENTS, SignableDocument
from procura.models.signature import SLOT_COLUMN_PREFIXES, MAX_SIGNATURE_LEVEL


class SignableDocumentRepository:
    """Reads and conditionally updates one signable document table."""

    def __init__(self, session: AsyncSession, entity_type: str) -> None:
        """Initialize repository.

        @param session - SQLAlchemy async session
        @param entity_type - Document type key (e.g. "requirement")
        @raises ValueError if the type has no document table
        """
        try:
            self.model = SIGNABLE_DOCUMENTS[entity_type]
        except KeyError:
            raise ValueError(f"Unknown entity type: {entity_type}") from None
        self.session = session
        self.table = self.model.__table__
        # IDs written through Core updates; their loaded instances are stale
        self._stale: set[int] = set()

    async def get(self, entity_id: int) -> SignableDocument | None:
        """Load a document, refreshing it if this repository updated it.

        @param entity_id - Document ID
        @returns Document or None if not found
        """
        document = await self.session.get(self.model, entity_id)
        if document is not None and entity_id in self._stale:
            await self.session.refresh(document)
            self._stale.discard(entity_id)
        return document

    async def _execute(self, entity_id: int, stmt: Any) -> int:
        result = await self.session.execute(stmt)
        if result.rowcount:
            self._stale.add(entity_id)
        return result.rowcount

    def _guard(self, entity_id: int, expected_status: str) -> Any:
        c = self.table.c
        return and_(
            c.id == entity_id,
            c.status == expected_status,
            c.rejected_at.is_(None),
        )

    async def sign_slot(
        self,
        entity_id: int,
        level: int,
        *,
        signature: str,
        signed_by: int,
        signed_at: datetime,
        expected_status: str,
        new_status: str,
    ) -> int:
        """Fill one slot if it is still empty and the status is unchanged.

        @param entity_id - Document ID
        @param level - Signature level (1..4)
        @param signature - Opaque signature blob
        @param signed_by - Signer ID
        @param signed_at - Signature timestamp
        @param expected_status - Status the caller evaluated against
        @param new_status - Status to store
        @returns Number of updated rows (0 or 1)
        """
        if not 1 <= level <= MAX_SIGNATURE_LEVEL:
            raise ValueError(f"Signature level must be 1..{MAX_SIGNATURE_LEVEL}, got {level}")
        prefix = SLOT_COLUMN_PREFIXES[level - 1]
        stmt = (
            update(self.table)
            .where(
                and_(
                    self._guard(entity_id, expected_status),
                    self.table.c[f"{prefix}_signed_at"].is_(None),
                )
            )
            .values(
                {
                    f"{prefix}_signature": signature,
                    f"{prefix}_signed_by": signed_by,
                    f"{prefix}_signed_at": signed_at,
                    "status": new_status,
                }
            )
        )
        return await self._execute(entity_id, stmt)

    async def reject(
        self,
        entity_id: int,
        *,
        reason: str,
        rejected_by: int,
        rejected_at: datetime,
        expected_status: str,
        new_status: str,
    ) -> int:
        """Record a rejection and clear every slot.

        @param entity_id - Document ID
        @param reason - Rejection reason
        @param rejected_by - Rejecting user ID
        @param rejected_at - Rejection timestamp
        @param expected_status - Status the caller read
        @param new_status - Rejected status label
        @returns Number of updated rows (0 or 1)
        """
        values: dict[str, Any] = {
            "rejected_reason": reason,
            "rejected_by": rejected_by,
            "rejected_at": rejected_at,
            "status": new_status,
        }
        for prefix in SLOT_COLUMN_PREFIXES:
            values[f"{prefix}_signature"] = None
            values[f"{prefix}_signed_by"] = None
            values[f"{prefix}_signed_at"] = None
        stmt = (
            update(self.table)
            .where(self._guard(entity_id, expected_status))
            .values(values)
        )
        return await self._execute(entity_id, stmt)

    async def set_status(
        self, entity_id: int, *, expected_status: str, new_status: str
    ) -> int:
        """Move a document to a new status if nobody changed it meanwhile.

        @param entity_id - Document ID
        @param expected_status - Status the caller read
        @param new_status - Status to store
        @returns Number of updated rows (0 or 1)
        """
        stmt = (
            update(self.table)
            .where(self._guard(entity_id, expected_status))
            .values(status=new_status)
        )
        return await self._execute(entity_id, stmt)

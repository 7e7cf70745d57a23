"""Repositories for signature configurations and templates."""

from typing import Sequence

from sqlalchemy import and_, select, update

from procura.models.approval import ApprovalConfiguration, ApprovalTemplate
from procura.repositories.base import BaseRepository


class ApprovalConfigurationRepository(BaseRepository[ApprovalConfiguration]):
    """Repository for per-document configuration rows."""

    model = ApprovalConfiguration

    async def get_active_for_document(
        self, entity_type: str, entity_id: int
    ) -> Sequence[ApprovalConfiguration]:
        """Get active rows of a document ordered by level.

        @param entity_type - Document type
        @param entity_id - Document ID
        @returns Active configuration rows
        """
        stmt = (
            select(self.model)
            .where(
                and_(
                    self.model.entity_type == entity_type,
                    self.model.entity_id == entity_id,
                    self.model.is_active.is_(True),
                )
            )
            .order_by(self.model.signature_level)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def deactivate_for_document(self, entity_type: str, entity_id: int) -> int:
        """Supersede every active row of a document.

        @param entity_type - Document type
        @param entity_id - Document ID
        @returns Number of deactivated rows
        """
        stmt = (
            update(self.model)
            .where(
                and_(
                    self.model.entity_type == entity_type,
                    self.model.entity_id == entity_id,
                    self.model.is_active.is_(True),
                )
            )
            .values(is_active=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def get_by_entity_type(
        self, entity_type: str
    ) -> Sequence[ApprovalConfiguration]:
        """Get all rows of a document type.

        @param entity_type - Document type
        @returns Rows ordered by document and level
        """
        return await self.get_by_filter(
            entity_type=entity_type,
            order_by=(self.model.entity_id, self.model.signature_level, self.model.id),
        )


class ApprovalTemplateRepository(BaseRepository[ApprovalTemplate]):
    """Repository for named template rows."""

    model = ApprovalTemplate

    async def get_template_rows(
        self, template_name: str, entity_type: str
    ) -> Sequence[ApprovalTemplate]:
        """Get active rows of one template ordered by level.

        @param template_name - Template name (e.g. "DEFAULT")
        @param entity_type - Document type
        @returns Template rows
        """
        return await self.get_by_filter(
            template_name=template_name,
            entity_type=entity_type,
            is_active=True,
            order_by=(self.model.signature_level,),
        )

    async def get_active(
        self, entity_type: str | None = None
    ) -> Sequence[ApprovalTemplate]:
        """Get active template rows, optionally for one document type.

        @param entity_type - Optional document type filter
        @returns Rows ordered by type, name and level
        """
        return await self.get_by_filter(
            entity_type=entity_type,
            is_active=True,
            order_by=(
                self.model.entity_type,
                self.model.template_name,
                self.model.signature_level,
            ),
        )

    async def level_taken(
        self,
        template_name: str,
        entity_type: str,
        signature_level: int,
        exclude_id: int | None = None,
    ) -> bool:
        """Check whether an active row already occupies a template level.

        @param template_name - Template name
        @param entity_type - Document type
        @param signature_level - Level
        @param exclude_id - Row to ignore (the row being updated)
        @returns True if another active row uses the level
        """
        stmt = select(self.model.id).where(
            and_(
                self.model.template_name == template_name,
                self.model.entity_type == entity_type,
                self.model.signature_level == signature_level,
                self.model.is_active.is_(True),
            )
        )
        if exclude_id is not None:
            stmt = stmt.where(self.model.id != exclude_id)
        result = await self.session.execute(stmt.limit(1))
        return result.scalars().first() is not None

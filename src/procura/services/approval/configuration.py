"""Signature configuration store.

Resolves which role signs each level of a document, and manages the named
templates documents are configured from. The store works inside the
caller's session and never commits.
"""

import logging
from collections import defaultdict
from typing import Iterable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from procura.models.approval import ApprovalConfiguration, ApprovalTemplate
from procura.repositories.approval import (
    ApprovalConfigurationRepository,
    ApprovalTemplateRepository,
)
from procura.services.approval.exceptions import InvalidStateError, NotFoundError
from procura.services.approval.schemas import (
    ConfigurationRow,
    EntityType,
    SignatureRole,
    TemplateCreate,
)

logger = logging.getLogger(__name__)


def _to_row(record: ApprovalConfiguration | ApprovalTemplate) -> ConfigurationRow:
    try:
        role = SignatureRole(record.role_name)
    except ValueError:
        raise InvalidStateError(
            f"Unknown signature role '{record.role_name}' at level {record.signature_level}"
        ) from None
    return ConfigurationRow(
        level=record.signature_level, role=role, required=record.is_required
    )


class ApprovalConfigurationStore:
    """Per-document configuration rows and the templates that seed them."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize store.

        @param session - SQLAlchemy async session owned by the caller
        """
        self.session = session
        self.configurations = ApprovalConfigurationRepository(session)
        self.templates = ApprovalTemplateRepository(session)

    # =========================================================================
    # Document configuration
    # =========================================================================

    async def resolve(
        self, entity_type: EntityType, entity_id: int
    ) -> list[ConfigurationRow]:
        """Active configuration of a document, ordered by level.

        No fallback is applied: an empty list means no signatures are required.

        @param entity_type - Document type
        @param entity_id - Document ID
        @returns Ordered configuration rows
        """
        records = await self.configurations.get_active_for_document(
            entity_type.value, entity_id
        )
        return [_to_row(record) for record in records]

    async def apply_custom(
        self,
        entity_type: EntityType,
        entity_id: int,
        rows: Iterable[ConfigurationRow],
        actor_id: int | None = None,
    ) -> list[ConfigurationRow]:
        """Replace the active configuration of a document.

        Existing rows are deactivated, not deleted. Signatures already
        recorded on the document are left alone.

        @param entity_type - Document type
        @param entity_id - Document ID
        @param rows - New configuration rows
        @param actor_id - User performing the change
        @returns New configuration, ordered by level
        """
        new_rows = sorted(rows, key=lambda r: r.level)
        levels = [row.level for row in new_rows]
        if len(levels) != len(set(levels)):
            raise InvalidStateError("Signature levels must be unique")

        superseded = await self.configurations.deactivate_for_document(
            entity_type.value, entity_id
        )
        await self.configurations.create_many(
            [
                {
                    "entity_type": entity_type.value,
                    "entity_id": entity_id,
                    "signature_level": row.level,
                    "role_name": row.role.value,
                    "is_required": row.required,
                    "is_active": True,
                    "updated_by": actor_id,
                }
                for row in new_rows
            ]
        )
        logger.info(
            f"Configured {entity_type.value}:{entity_id} with levels {levels} "
            f"({superseded} previous rows deactivated)"
        )
        return new_rows

    async def apply_template(
        self,
        entity_type: EntityType,
        entity_id: int,
        template_name: str,
        actor_id: int | None = None,
    ) -> list[ConfigurationRow]:
        """Replace the configuration of a document with a template's rows.

        @param entity_type - Document type
        @param entity_id - Document ID
        @param template_name - Template name
        @param actor_id - User performing the change
        @returns New configuration
        @raises NotFoundError if the template has no active rows for the type
        """
        records = await self.templates.get_template_rows(template_name, entity_type.value)
        if not records:
            raise NotFoundError(
                f"Template '{template_name}' not found for {entity_type.value}"
            )
        return await self.apply_custom(
            entity_type, entity_id, [_to_row(r) for r in records], actor_id
        )

    async def get_or_create(
        self, entity_type: EntityType, entity_id: int, default_template: str
    ) -> list[ConfigurationRow]:
        """Resolve a configuration, seeding it from the default template if empty.

        @param entity_type - Document type
        @param entity_id - Document ID
        @param default_template - Template used for seeding
        @returns Configuration rows (empty if nothing could be seeded)
        """
        rows = await self.resolve(entity_type, entity_id)
        if rows:
            return rows
        if not await self.templates.get_template_rows(default_template, entity_type.value):
            logger.warning(
                f"No '{default_template}' template for {entity_type.value}; "
                f"{entity_type.value}:{entity_id} stays unconfigured"
            )
            return []
        return await self.apply_template(entity_type, entity_id, default_template)

    async def list_configurations(
        self, entity_type: EntityType
    ) -> Sequence[ApprovalConfiguration]:
        """All configuration rows of a document type, active or not."""
        return await self.configurations.get_by_entity_type(entity_type.value)

    async def toggle_configuration(
        self, configuration_id: int, is_active: bool, actor_id: int | None = None
    ) -> ApprovalConfiguration:
        """Activate or deactivate a single configuration row.

        @param configuration_id - Row ID
        @param is_active - New active flag
        @param actor_id - User performing the change
        @returns Updated row
        @raises NotFoundError if the row does not exist
        """
        record = await self.configurations.update(
            configuration_id, {"is_active": is_active, "updated_by": actor_id}
        )
        if record is None:
            raise NotFoundError(f"Configuration {configuration_id} not found")
        logger.info(
            f"Configuration {configuration_id} "
            f"{'activated' if is_active else 'deactivated'} by {actor_id}"
        )
        return record

    # =========================================================================
    # Templates
    # =========================================================================

    async def list_templates(
        self, entity_type: EntityType | None = None
    ) -> Sequence[ApprovalTemplate]:
        return await self.templates.get_active(
            entity_type.value if entity_type is not None else None
        )

    async def grouped_templates(self) -> dict[str, dict[str, list[ApprovalTemplate]]]:
        """Active template rows grouped by document type, then template name."""
        grouped: dict[str, dict[str, list[ApprovalTemplate]]] = defaultdict(
            lambda: defaultdict(list)
        )
        for record in await self.templates.get_active():
            grouped[record.entity_type][record.template_name].append(record)
        return {etype: dict(names) for etype, names in grouped.items()}

    async def get_template(self, template_id: int) -> ApprovalTemplate:
        record = await self.templates.get_by_id(template_id)
        if record is None or not record.is_active:
            raise NotFoundError(f"Template row {template_id} not found")
        return record

    async def create_template(self, data: TemplateCreate) -> ApprovalTemplate:
        """Add one level to a template.

        @param data - Template row
        @returns Created row
        @raises InvalidStateError if the level is already taken in the template
        """
        if await self.templates.level_taken(
            data.template_name, data.entity_type.value, data.signature_level
        ):
            raise InvalidStateError(
                f"Template '{data.template_name}' already defines level "
                f"{data.signature_level} for {data.entity_type.value}"
            )
        record = await self.templates.create(
            {
                "template_name": data.template_name,
                "entity_type": data.entity_type.value,
                "signature_level": data.signature_level,
                "role_name": data.role_name.value,
                "is_required": data.is_required,
                "description": data.description,
                "is_active": True,
            }
        )
        logger.info(
            f"Template '{record.template_name}' ({record.entity_type}) level "
            f"{record.signature_level} created as {record.role_name}"
        )
        return record

    async def update_template(
        self, template_id: int, data: TemplateCreate
    ) -> ApprovalTemplate:
        """Replace the contents of a template row.

        Documents already configured from the template keep their rows.
        """
        await self.get_template(template_id)
        if await self.templates.level_taken(
            data.template_name,
            data.entity_type.value,
            data.signature_level,
            exclude_id=template_id,
        ):
            raise InvalidStateError(
                f"Template '{data.template_name}' already defines level "
                f"{data.signature_level} for {data.entity_type.value}"
            )
        record = await self.templates.update(
            template_id,
            {
                "template_name": data.template_name,
                "entity_type": data.entity_type.value,
                "signature_level": data.signature_level,
                "role_name": data.role_name.value,
                "is_required": data.is_required,
                "description": data.description,
            },
        )
        logger.info(f"Template row {template_id} updated")
        return record

    async def delete_template(self, template_id: int) -> None:
        """Soft-delete a template row."""
        await self.get_template(template_id)
        await self.templates.update(template_id, {"is_active": False})
        logger.info(f"Template row {template_id} deactivated")

    @staticmethod
    def available_entity_types() -> list[EntityType]:
        return list(EntityType)

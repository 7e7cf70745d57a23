"""Tests for the signature configuration store."""

import pytest

from procura.models import ApprovalConfiguration
from procura.services.approval import (
    ApprovalConfigurationStore,
    ConfigurationRow,
    EntityType,
    InvalidStateError,
    NotFoundError,
    SignatureRole,
)
from procura.services.approval.schemas import TemplateCreate


def template_row(level, role, name="DEFAULT", entity_type=EntityType.REQUIREMENT, required=True):
    return TemplateCreate(
        template_name=name,
        entity_type=entity_type,
        signature_level=level,
        role_name=role,
        is_required=required,
    )


class TestApprovalConfigurationStore:
    """Tests for ApprovalConfigurationStore."""

    @pytest.mark.asyncio
    async def test_resolve_unconfigured(self, db_session):
        """Test an unconfigured document resolves to no rows."""
        store = ApprovalConfigurationStore(db_session)

        assert await store.resolve(EntityType.REQUIREMENT, 1) == []

    @pytest.mark.asyncio
    async def test_apply_custom(self, db_session, all_required_chain):
        """Test custom rows are stored and resolved in level order."""
        store = ApprovalConfigurationStore(db_session)

        await store.apply_custom(
            EntityType.REQUIREMENT, 1, list(reversed(all_required_chain)), actor_id=1
        )

        assert await store.resolve(EntityType.REQUIREMENT, 1) == all_required_chain

    @pytest.mark.asyncio
    async def test_apply_custom_duplicate_levels(self, db_session):
        """Test duplicate levels are refused."""
        store = ApprovalConfigurationStore(db_session)
        rows = [
            ConfigurationRow(level=1, role=SignatureRole.SOLICITANTE),
            ConfigurationRow(level=1, role=SignatureRole.GERENCIA),
        ]

        with pytest.raises(InvalidStateError, match="unique"):
            await store.apply_custom(EntityType.REQUIREMENT, 1, rows)

    @pytest.mark.asyncio
    async def test_reapply_supersedes_previous_rows(self, db_session, all_required_chain):
        """Test applying a template deactivates the previous configuration."""
        store = ApprovalConfigurationStore(db_session)
        await store.apply_custom(EntityType.REQUIREMENT, 1, all_required_chain)
        await store.create_template(template_row(1, SignatureRole.SOLICITANTE, name="SHORT"))
        await store.create_template(template_row(2, SignatureRole.GERENCIA, name="SHORT"))

        rows = await store.apply_template(EntityType.REQUIREMENT, 1, "SHORT", actor_id=5)

        assert [(r.level, r.role) for r in rows] == [
            (1, SignatureRole.SOLICITANTE),
            (2, SignatureRole.GERENCIA),
        ]
        assert await store.resolve(EntityType.REQUIREMENT, 1) == rows
        history = await store.configurations.get_by_filter(entity_type="requirement")
        assert sum(1 for r in history if not r.is_active) == 4

    @pytest.mark.asyncio
    async def test_apply_missing_template(self, db_session):
        """Test applying an unknown template is NotFound."""
        store = ApprovalConfigurationStore(db_session)

        with pytest.raises(NotFoundError, match="NOPE"):
            await store.apply_template(EntityType.REQUIREMENT, 1, "NOPE")

    @pytest.mark.asyncio
    async def test_template_scoped_by_entity_type(self, db_session):
        """Test a template of another document type is not applied."""
        store = ApprovalConfigurationStore(db_session)
        await store.create_template(
            template_row(1, SignatureRole.SOLICITANTE, entity_type=EntityType.QUOTATION)
        )

        with pytest.raises(NotFoundError):
            await store.apply_template(EntityType.REQUIREMENT, 1, "DEFAULT")

    @pytest.mark.asyncio
    async def test_get_or_create_seeds_default(self, db_session):
        """Test an unconfigured document is seeded from DEFAULT."""
        store = ApprovalConfigurationStore(db_session)
        await store.create_template(template_row(1, SignatureRole.SOLICITANTE))
        await store.create_template(template_row(2, SignatureRole.ADMINISTRACION))

        rows = await store.get_or_create(EntityType.REQUIREMENT, 3, "DEFAULT")

        assert [r.level for r in rows] == [1, 2]
        assert await store.resolve(EntityType.REQUIREMENT, 3) == rows

    @pytest.mark.asyncio
    async def test_get_or_create_keeps_existing(self, db_session, all_required_chain):
        """Test an existing configuration is not replaced."""
        store = ApprovalConfigurationStore(db_session)
        await store.create_template(template_row(1, SignatureRole.GERENCIA))
        await store.apply_custom(EntityType.REQUIREMENT, 3, all_required_chain)

        rows = await store.get_or_create(EntityType.REQUIREMENT, 3, "DEFAULT")

        assert rows == all_required_chain

    @pytest.mark.asyncio
    async def test_get_or_create_without_default(self, db_session):
        """Test nothing is seeded when no DEFAULT template exists."""
        store = ApprovalConfigurationStore(db_session)

        assert await store.get_or_create(EntityType.QUOTATION, 3, "DEFAULT") == []

    @pytest.mark.asyncio
    async def test_unknown_stored_role(self, db_session):
        """Test a stored row with an unknown role is reported, not ignored."""
        db_session.add(
            ApprovalConfiguration(
                entity_type="requirement", entity_id=9, signature_level=1, role_name="JEFE"
            )
        )
        await db_session.flush()
        store = ApprovalConfigurationStore(db_session)

        with pytest.raises(InvalidStateError, match="JEFE"):
            await store.resolve(EntityType.REQUIREMENT, 9)

    @pytest.mark.asyncio
    async def test_toggle_configuration(self, db_session, all_required_chain):
        """Test a single row can be deactivated."""
        store = ApprovalConfigurationStore(db_session)
        await store.apply_custom(EntityType.REQUIREMENT, 1, all_required_chain)
        target = (await store.list_configurations(EntityType.REQUIREMENT))[3]

        record = await store.toggle_configuration(target.id, False, actor_id=2)

        assert record.is_active is False
        assert record.updated_by == 2
        assert [r.level for r in await store.resolve(EntityType.REQUIREMENT, 1)] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_toggle_missing_configuration(self, db_session):
        """Test toggling an unknown row is NotFound."""
        with pytest.raises(NotFoundError):
            await ApprovalConfigurationStore(db_session).toggle_configuration(404, True)


class TestTemplateManagement:
    """Tests for template CRUD."""

    @pytest.mark.asyncio
    async def test_duplicate_level_refused(self, db_session):
        """Test two active rows cannot share a template level."""
        store = ApprovalConfigurationStore(db_session)
        await store.create_template(template_row(1, SignatureRole.SOLICITANTE))

        with pytest.raises(InvalidStateError, match="already defines level 1"):
            await store.create_template(template_row(1, SignatureRole.GERENCIA))

    @pytest.mark.asyncio
    async def test_update_template(self, db_session):
        """Test a template row can be changed in place."""
        store = ApprovalConfigurationStore(db_session)
        record = await store.create_template(template_row(2, SignatureRole.ADMINISTRACION))

        updated = await store.update_template(
            record.id, template_row(2, SignatureRole.OFICINA_TECNICA, required=False)
        )

        assert updated.role_name == "OFICINA_TECNICA"
        assert updated.is_required is False

    @pytest.mark.asyncio
    async def test_update_into_taken_level(self, db_session):
        """Test moving a row onto a taken level is refused."""
        store = ApprovalConfigurationStore(db_session)
        await store.create_template(template_row(1, SignatureRole.SOLICITANTE))
        record = await store.create_template(template_row(2, SignatureRole.GERENCIA))

        with pytest.raises(InvalidStateError):
            await store.update_template(record.id, template_row(1, SignatureRole.GERENCIA))

    @pytest.mark.asyncio
    async def test_delete_is_soft(self, db_session):
        """Test deleted rows disappear from listings but free their level."""
        store = ApprovalConfigurationStore(db_session)
        record = await store.create_template(template_row(1, SignatureRole.SOLICITANTE))

        await store.delete_template(record.id)

        assert await store.list_templates(EntityType.REQUIREMENT) == []
        with pytest.raises(NotFoundError):
            await store.get_template(record.id)
        await store.create_template(template_row(1, SignatureRole.SOLICITANTE))

    @pytest.mark.asyncio
    async def test_grouped_templates(self, db_session):
        """Test grouping by document type then template name."""
        store = ApprovalConfigurationStore(db_session)
        await store.create_template(template_row(1, SignatureRole.SOLICITANTE))
        await store.create_template(template_row(2, SignatureRole.GERENCIA))
        await store.create_template(template_row(1, SignatureRole.SOLICITANTE, name="FAST"))
        await store.create_template(
            template_row(1, SignatureRole.ADMINISTRACION, entity_type=EntityType.FUEL_CONTROL)
        )

        grouped = await store.grouped_templates()

        assert set(grouped) == {"requirement", "fuel_control"}
        assert set(grouped["requirement"]) == {"DEFAULT", "FAST"}
        assert [r.signature_level for r in grouped["requirement"]["DEFAULT"]] == [1, 2]

    def test_available_entity_types(self):
        """Test every signable document type is listed."""
        assert ApprovalConfigurationStore.available_entity_types() == list(EntityType)

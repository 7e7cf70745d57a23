"""Tests for signature workflow repositories (SQLite in-memory)."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from procura.models import ApprovalConfiguration, GeneralSettings, Requirement
from procura.models.signature import SignatureSlots
from procura.repositories import (
    ApprovalConfigurationRepository,
    GeneralSettingsRepository,
    SignableDocumentRepository,
)

NOW = datetime(2025, 10, 20, 9, 0, tzinfo=timezone.utc)


async def add_requirement(session, **kwargs) -> Requirement:
    document = Requirement(code=kwargs.pop("code", "REQ-0001"), amount=Decimal("5000"),
                           created_by=10, status="PENDING", **kwargs)
    session.add(document)
    await session.flush()
    return document


class TestSignableDocumentRepository:
    """Tests for SignableDocumentRepository."""

    @pytest.mark.asyncio
    async def test_unknown_entity_type(self, db_session):
        """Test an unknown entity type is refused."""
        with pytest.raises(ValueError, match="Unknown entity type"):
            SignableDocumentRepository(db_session, "invoice")

    @pytest.mark.asyncio
    async def test_get_missing(self, db_session):
        """Test loading a missing document returns None."""
        repo = SignableDocumentRepository(db_session, "requirement")

        assert await repo.get(404) is None

    @pytest.mark.asyncio
    async def test_sign_slot(self, db_session):
        """Test a conditional signature fills the slot and status."""
        document = await add_requirement(db_session)
        repo = SignableDocumentRepository(db_session, "requirement")

        updated = await repo.sign_slot(
            document.id, 1, signature="blob", signed_by=10, signed_at=NOW,
            expected_status="PENDING", new_status="SIGNED_1",
        )
        reloaded = await repo.get(document.id)

        assert updated == 1
        assert reloaded.status == "SIGNED_1"
        slots = SignatureSlots.of(reloaded)
        assert slots.is_signed(1)
        assert slots.slot(1).signed_by == 10
        assert slots.slot(1).signature == "blob"
        assert not slots.is_signed(2)

    @pytest.mark.asyncio
    async def test_sign_slot_already_filled(self, db_session):
        """Test the second writer of the same slot updates nothing."""
        document = await add_requirement(db_session)
        repo = SignableDocumentRepository(db_session, "requirement")

        first = await repo.sign_slot(
            document.id, 1, signature="a", signed_by=10, signed_at=NOW,
            expected_status="PENDING", new_status="SIGNED_1",
        )
        second = await repo.sign_slot(
            document.id, 1, signature="b", signed_by=11, signed_at=NOW,
            expected_status="PENDING", new_status="SIGNED_1",
        )
        reloaded = await repo.get(document.id)

        assert (first, second) == (1, 0)
        assert SignatureSlots.of(reloaded).slot(1).signature == "a"

    @pytest.mark.asyncio
    async def test_sign_slot_stale_status(self, db_session):
        """Test a status change since the read blocks the update."""
        document = await add_requirement(db_session)
        repo = SignableDocumentRepository(db_session, "requirement")

        updated = await repo.sign_slot(
            document.id, 2, signature="blob", signed_by=30, signed_at=NOW,
            expected_status="SIGNED_1", new_status="SIGNED_2",
        )

        assert updated == 0

    @pytest.mark.asyncio
    async def test_reject_clears_slots(self, db_session):
        """Test a rejection records who and why, and clears signatures."""
        document = await add_requirement(db_session)
        repo = SignableDocumentRepository(db_session, "requirement")
        await repo.sign_slot(
            document.id, 1, signature="blob", signed_by=10, signed_at=NOW,
            expected_status="PENDING", new_status="SIGNED_1",
        )

        updated = await repo.reject(
            document.id, reason="over budget", rejected_by=30, rejected_at=NOW,
            expected_status="SIGNED_1", new_status="REJECTED",
        )
        reloaded = await repo.get(document.id)
        slots = SignatureSlots.of(reloaded)

        assert updated == 1
        assert reloaded.status == "REJECTED"
        assert slots.is_rejected
        assert slots.rejection.reason == "over budget"
        assert not any(slot.is_signed for slot in slots.slots)

    @pytest.mark.asyncio
    async def test_rejected_document_cannot_be_signed(self, db_session):
        """Test the rejection record is part of the signing guard."""
        document = await add_requirement(db_session)
        repo = SignableDocumentRepository(db_session, "requirement")
        await repo.reject(
            document.id, reason="x", rejected_by=30, rejected_at=NOW,
            expected_status="PENDING", new_status="PENDING",
        )

        updated = await repo.sign_slot(
            document.id, 1, signature="blob", signed_by=10, signed_at=NOW,
            expected_status="PENDING", new_status="SIGNED_1",
        )

        assert updated == 0

    @pytest.mark.asyncio
    async def test_set_status(self, db_session):
        """Test conditional status changes."""
        document = await add_requirement(db_session)
        repo = SignableDocumentRepository(db_session, "requirement")

        assert await repo.set_status(
            document.id, expected_status="PENDING", new_status="CANCELLED"
        ) == 1
        assert await repo.set_status(
            document.id, expected_status="PENDING", new_status="CANCELLED"
        ) == 0


class TestApprovalConfigurationRepository:
    """Tests for ApprovalConfigurationRepository."""

    @pytest.mark.asyncio
    async def test_active_rows_ordered(self, db_session):
        """Test only active rows of the document come back, by level."""
        repo = ApprovalConfigurationRepository(db_session)
        await repo.create_many([
            {"entity_type": "requirement", "entity_id": 1, "signature_level": 2,
             "role_name": "ADMINISTRACION"},
            {"entity_type": "requirement", "entity_id": 1, "signature_level": 1,
             "role_name": "SOLICITANTE"},
            {"entity_type": "requirement", "entity_id": 1, "signature_level": 3,
             "role_name": "GERENCIA", "is_active": False},
            {"entity_type": "requirement", "entity_id": 2, "signature_level": 1,
             "role_name": "SOLICITANTE"},
        ])

        rows = await repo.get_active_for_document("requirement", 1)

        assert [r.signature_level for r in rows] == [1, 2]

    @pytest.mark.asyncio
    async def test_deactivate_for_document(self, db_session):
        """Test deactivation is scoped to one document."""
        repo = ApprovalConfigurationRepository(db_session)
        db_session.add_all([
            ApprovalConfiguration(entity_type="quotation", entity_id=1,
                                  signature_level=1, role_name="SOLICITANTE"),
            ApprovalConfiguration(entity_type="quotation", entity_id=2,
                                  signature_level=1, role_name="SOLICITANTE"),
        ])
        await db_session.flush()

        count = await repo.deactivate_for_document("quotation", 1)

        assert count == 1
        assert await repo.get_active_for_document("quotation", 1) == []
        assert len(await repo.get_active_for_document("quotation", 2)) == 1


class TestGeneralSettingsRepository:
    """Tests for GeneralSettingsRepository."""

    @pytest.mark.asyncio
    async def test_no_settings_row(self, db_session):
        """Test a missing row yields None."""
        assert await GeneralSettingsRepository(db_session).get_low_amount_threshold() is None

    @pytest.mark.asyncio
    async def test_threshold(self, db_session):
        """Test the stored threshold is returned as Decimal."""
        db_session.add(GeneralSettings(id=1, low_amount_threshold=Decimal("2500.50")))
        await db_session.flush()

        value = await GeneralSettingsRepository(db_session).get_low_amount_threshold()

        assert value == Decimal("2500.50")

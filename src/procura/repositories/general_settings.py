"""Repository for the company-wide settings row."""

from decimal import Decimal

from sqlalchemy import select

from procura.models.settings import GeneralSettings
from procura.repositories.base import BaseRepository


class GeneralSettingsRepository(BaseRepository[GeneralSettings]):
    """Repository for GeneralSettings."""

    model = GeneralSettings

    async def get_low_amount_threshold(self) -> Decimal | None:
        """Get the configured low-amount threshold.

        @returns Threshold, or None when no settings row or value exists
        """
        stmt = select(self.model.low_amount_threshold).order_by(self.model.id).limit(1)
        result = await self.session.execute(stmt)
        value = result.scalar_one_or_none()
        return Decimal(value) if value is not None else None

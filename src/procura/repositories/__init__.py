"""Data access layer."""

from procura.repositories.approval import (
    ApprovalConfigurationRepository,
    ApprovalTemplateRepository,
)
from procura.repositories.base import BaseRepository
from procura.repositories.document import SignableDocumentRepository
from procura.repositories.general_settings import GeneralSettingsRepository

__all__ = [
    "ApprovalConfigurationRepository",
    "ApprovalTemplateRepository",
    "BaseRepository",
    "GeneralSettingsRepository",
    "SignableDocumentRepository",
]

"""Per-collection repositories over the shared cache."""

from .users import UserRepository
from .customers import CustomerRepository
from .app_codes import AppCodeRepository
from .documents import DocumentRepository
from .messages import MessageRepository
from .production import ProductionRepository
from .session import SessionRepository
from .settings import SettingsRepository
from .calculations import CalculationHistoryRepository

__all__ = [
    "UserRepository",
    "CustomerRepository",
    "AppCodeRepository",
    "DocumentRepository",
    "MessageRepository",
    "ProductionRepository",
    "SessionRepository",
    "SettingsRepository",
    "CalculationHistoryRepository",
]

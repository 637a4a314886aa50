"""Typed records persisted by the portal store."""

from .base import new_id, utcnow
from .user import User, UserCreate, UserType, UserUpdate
from .customer import Customer, CustomerCreate, CustomerUpdate
from .app_code import AppCode
from .document import Document, DocumentCreate, DocumentType
from .message import Message
from .production import DayTotal, HourlyOutput, ProductionReading, ProductionStats
from .session import Session
from .settings import Settings, SettingsUpdate
from .calculation import CalculationEntry, CalculationType

__all__ = [
    "new_id",
    "utcnow",
    "User",
    "UserCreate",
    "UserType",
    "UserUpdate",
    "Customer",
    "CustomerCreate",
    "CustomerUpdate",
    "AppCode",
    "Document",
    "DocumentCreate",
    "DocumentType",
    "Message",
    "DayTotal",
    "HourlyOutput",
    "ProductionReading",
    "ProductionStats",
    "Session",
    "Settings",
    "SettingsUpdate",
    "CalculationEntry",
    "CalculationType",
]

import enum
from datetime import datetime

from pydantic import Field

from solar_portal.models.base import Payload, Record


class DocumentType(str, enum.Enum):
    WARRANTY = "warranty"
    QUOTATION = "quotation"
    UTILITY = "utility"
    CONTRACTS = "contracts"


class Document(Record):
    id: str
    customer_id: str
    name: str
    type: DocumentType
    payload: str  # binary-as-text, typically a base64 data URL
    size: int  # bytes of the original file
    created_at: datetime


class DocumentCreate(Payload):
    customer_id: str
    name: str
    type: DocumentType = DocumentType.WARRANTY
    payload: str
    size: int = Field(ge=0)

from typing import List

from solar_portal.models import Document, DocumentCreate, DocumentType, new_id
from solar_portal.repositories.base import CollectionRepository, coerce_payload

# base64 text is about 4/3 of the bytes it encodes
BASE64_RATIO = 0.75


class DocumentRepository(CollectionRepository[Document]):
    collection = "documents"
    model = Document

    def get_by_customer(self, customer_id: str) -> List[Document]:
        return [d for d in self.get_all() if d.customer_id == customer_id]

    def get_by_type(self, customer_id: str, doc_type: DocumentType | str) -> List[Document]:
        doc_type = DocumentType(doc_type)
        return [d for d in self.get_by_customer(customer_id) if d.type == doc_type]

    def create(self, data: DocumentCreate | dict) -> Document:
        payload = coerce_payload(DocumentCreate, data)
        document = Document(id=new_id(), created_at=self.clock(), **payload.model_dump())
        return self._append(document)

    def get_storage_used(self) -> float:
        """Approximate decoded bytes held by all document payloads."""
        return sum(len(d.payload) * BASE64_RATIO for d in self.get_all() if d.payload)

from typing import Iterable, List

from solar_portal.models import Message, new_id
from solar_portal.repositories.base import CollectionRepository


class MessageRepository(CollectionRepository[Message]):
    collection = "messages"
    model = Message

    def get_conversation(self, user_a: str, user_b: str) -> List[Message]:
        """Messages between two users in either direction, oldest first."""
        conversation = [
            m for m in self.get_all()
            if (m.from_user_id, m.to_user_id) in ((user_a, user_b), (user_b, user_a))
        ]
        return sorted(conversation, key=lambda m: m.timestamp)

    def get_user_conversations(self, user_id: str) -> List[str]:
        """Ids of everyone the user has exchanged messages with, first seen first."""
        partners = {}
        for m in self.get_all():
            if m.from_user_id == user_id:
                partners.setdefault(m.to_user_id, None)
            if m.to_user_id == user_id:
                partners.setdefault(m.from_user_id, None)
        return list(partners)

    def send(self, from_user_id: str, to_user_id: str, text: str) -> Message:
        message = Message(
            id=new_id(),
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            text=text,
            timestamp=self.clock(),
        )
        return self._append(message)

    def mark_as_read(self, message_ids: Iterable[str]):
        ids = set(message_ids)
        messages = self.get_all()
        changed = False
        for index, m in enumerate(messages):
            if m.id in ids and not m.read:
                messages[index] = m.model_copy(update={"read": True})
                changed = True
        if changed:
            self.cache.put(self.collection, messages)

    def get_unread_count(self, user_id: str) -> int:
        return sum(1 for m in self.get_all() if m.to_user_id == user_id and not m.read)

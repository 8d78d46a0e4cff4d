"""
DTOs do Domínio de Notificações.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List

from .entities import Notification


@dataclass
class NotificationOutputDTO:
    id: str
    ticket_id: str
    ticket_number: str
    kind: str
    message: str
    read: bool
    created_at: datetime

    @classmethod
    def from_entity(cls, entity: Notification) -> "NotificationOutputDTO":
        return cls(
            id=entity.id,
            ticket_id=entity.ticket_id,
            ticket_number=entity.ticket_number,
            kind=entity.kind.value,
            message=entity.message,
            read=entity.read,
            created_at=entity.created_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ticket_id": self.ticket_id,
            "ticket_number": self.ticket_number,
            "kind": self.kind,
            "message": self.message,
            "read": self.read,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class NotificationFeedDTO:
    """Feed do usuário com contador de não lidas."""

    items: List[NotificationOutputDTO]
    unread_count: int

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "unread_count": self.unread_count,
        }

"""
DTOs do Domínio de Mensagens.
"""

from dataclasses import dataclass
from datetime import datetime

from .entities import Message


@dataclass(frozen=True)
class PostMessageInputDTO:
    """
    DTO de entrada para responder um ticket.

    Attributes:
        ticket_id: Ticket alvo
        body: Texto da mensagem
        is_internal: Nota interna (apenas agent/admin)
    """

    ticket_id: str
    body: str
    is_internal: bool = False

    def to_dict(self) -> dict:
        return {
            "ticket_id": self.ticket_id,
            "body": self.body,
            "is_internal": self.is_internal,
        }


@dataclass
class MessageOutputDTO:
    id: str
    ticket_id: str
    sender_id: str
    sender_name: str
    sender_role: str
    body: str
    is_internal: bool
    is_system: bool
    created_at: datetime

    @classmethod
    def from_entity(cls, entity: Message) -> "MessageOutputDTO":
        return cls(
            id=entity.id,
            ticket_id=entity.ticket_id,
            sender_id=entity.sender_id,
            sender_name=entity.sender_name,
            sender_role=entity.sender_role,
            body=entity.body,
            is_internal=entity.is_internal,
            is_system=entity.is_system,
            created_at=entity.created_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ticket_id": self.ticket_id,
            "sender_id": self.sender_id,
            "sender_name": self.sender_name,
            "sender_role": self.sender_role,
            "body": self.body,
            "is_internal": self.is_internal,
            "is_system": self.is_system,
            "created_at": self.created_at.isoformat(),
        }

"""
Entidades do Domínio de Notificações.

Uma notificação é a entrega de um Domain Event a um destinatário.
É única por (event_id, recipient_id): reprocessar o mesmo evento
não duplica o feed.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
import uuid

from campusdesk.core.shared.events import utcnow


class NotificationKind(Enum):
    TICKET_CREATED = "ticket_created"
    TICKET_ASSIGNED = "ticket_assigned"
    STATUS_CHANGED = "status_changed"
    NEW_MESSAGE = "new_message"
    INTERNAL_NOTE = "internal_note"


@dataclass
class Notification:
    """
    Entidade de Domínio: Notificação.

    Attributes:
        recipient_id: Destinatário
        ticket_id: Ticket relacionado
        ticket_number: Número do ticket (exibição)
        kind: Tipo da notificação
        message: Texto exibido no feed
        event_id: Evento de origem (chave de idempotência)
        read: Lida pelo destinatário
    """

    recipient_id: str
    ticket_id: str
    ticket_number: str
    kind: NotificationKind
    message: str
    event_id: str
    read: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=utcnow)
    read_at: Optional[datetime] = None

    def mark_as_read(self) -> bool:
        """
        Returns:
            True se a notificação ainda não estava lida
        """
        if self.read:
            return False
        self.read = True
        self.read_at = utcnow()
        return True

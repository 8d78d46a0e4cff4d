"""
Domínio de Mensagens - Conversa append-only de cada ticket.

Os use cases ficam em `campusdesk.core.messages.use_cases`.
"""

from .entities import Message
from .events import MessagePostedEvent
from .ports import MessageRepository, InMemoryMessageRepository

__all__ = [
    "Message",
    "MessagePostedEvent",
    "MessageRepository",
    "InMemoryMessageRepository",
]

"""
Ports (Interfaces) do Domínio de Mensagens.
"""

from datetime import timedelta
from typing import List, Protocol, runtime_checkable

from campusdesk.core.shared.exceptions import ConflictError
from campusdesk.core.shared.memory import InMemoryCollection

from .entities import Message


# Menor incremento usado para manter created_at estritamente crescente
TICK = timedelta(microseconds=1)


@runtime_checkable
class MessageRepository(Protocol):
    """
    Interface para persistência de Mensagens (append-only).

    Implementações:
    - DjangoMessageRepository (ORM)
    - InMemoryMessageRepository (testes)
    """

    def add(self, message: Message) -> None:
        """
        Grava mensagem nova.

        Ajusta `message.created_at` para max(created_at, última + 1µs)
        dentro do ticket, de forma atômica.

        Raises:
            ConflictError: Se o ID já existe
        """
        ...

    def list_for_ticket(self, ticket_id: str, include_internal: bool = True) -> List[Message]:
        """Mensagens do ticket em ordem (created_at, id) crescente."""
        ...


class InMemoryMessageRepository(InMemoryCollection):
    """Implementação em memória do MessageRepository."""

    def __init__(self):
        super().__init__()
        self._messages: dict = {}
        self._latest: dict = {}

    def add(self, message: Message) -> None:
        with self._lock:
            if message.id in self._messages:
                raise ConflictError(f"Mensagem {message.id} já existe", entity_id=message.id)
            latest = self._latest.get(message.ticket_id)
            if latest is not None and message.created_at <= latest:
                message.created_at = latest + TICK
            self._messages[message.id] = self._copy(message)
            self._latest[message.ticket_id] = message.created_at
        self._record_undo(self._restore(self._messages, message.id, None))
        self._record_undo(self._restore(self._latest, message.ticket_id, latest))

    def list_for_ticket(self, ticket_id: str, include_internal: bool = True) -> List[Message]:
        with self._lock:
            messages = [
                self._copy(m) for m in self._messages.values()
                if m.ticket_id == ticket_id and (include_internal or not m.is_internal)
            ]
        return sorted(messages, key=lambda m: m.sort_key)

    def clear(self) -> None:
        """Limpa todos os dados (útil para testes)."""
        with self._lock:
            self._messages.clear()
            self._latest.clear()

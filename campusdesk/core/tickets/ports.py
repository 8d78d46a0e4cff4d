"""
Ports (Interfaces) do Domínio de Tickets.

Define os contratos que os Adapters de infraestrutura devem implementar
para persistência e consulta de tickets, e a implementação em memória
usada pelos testes do Core.

Garantias exigidas de toda implementação:
- `add` rejeita número duplicado de forma atômica (ConflictError)
- `save` é compare-and-set sobre `version` (ConflictError se perdeu a corrida)
- `touch` só avança `updated_at` (máximo atômico, sem mudar `version`)
- Leituras nunca alteram `updated_at`
"""

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from campusdesk.core.authorization.policy import TicketVisibility
from campusdesk.core.shared.exceptions import ConflictError, EntityNotFoundError
from campusdesk.core.shared.memory import InMemoryCollection

from .dtos import TicketPage, TicketQueryDTO
from .entities import TicketEntity


@runtime_checkable
class TicketRepository(Protocol):
    """
    Interface para persistência de Tickets.

    Implementações:
    - DjangoTicketRepository (ORM, índice único em `number`)
    - InMemoryTicketRepository (para testes)
    """

    def add(self, ticket: TicketEntity) -> None:
        """
        Persiste ticket novo e define `ticket.version = 1`.

        Raises:
            ConflictError: Se `number` (ou `id`) já existe
        """
        ...

    def save(self, ticket: TicketEntity) -> None:
        """
        Grava alterações com compare-and-set sobre `ticket.version`.

        Em caso de sucesso, incrementa `ticket.version`.

        Raises:
            EntityNotFoundError: Se ticket não existe
            ConflictError: Se a versão gravada difere da lida
        """
        ...

    def touch(self, ticket_id: str, at: datetime) -> None:
        """Avança `updated_at` para `at` se for mais recente."""
        ...

    def get_by_id(self, ticket_id: str) -> Optional[TicketEntity]:
        """Busca ticket por ID; None se não existir."""
        ...

    def get_by_number(self, number: str) -> Optional[TicketEntity]:
        ...

    def search(
        self,
        query: TicketQueryDTO,
        visibility: Optional[TicketVisibility] = None,
    ) -> TicketPage:
        """
        Lista tickets: visibilidade primeiro, depois filtros do usuário.

        Ordenados por created_at decrescente (desempate por id).
        """
        ...


class InMemoryTicketRepository(InMemoryCollection):
    """
    Implementação em memória do TicketRepository.

    Example:
        repo = InMemoryTicketRepository()
        repo.add(ticket)
        assert repo.get_by_id(ticket.id).version == 1
    """

    def __init__(self):
        super().__init__()
        self._tickets: dict = {}
        self._numbers: dict = {}

    def add(self, ticket: TicketEntity) -> None:
        with self._lock:
            if ticket.number in self._numbers:
                raise ConflictError(
                    f"Número de ticket já existe: {ticket.number}",
                    entity_id=ticket.id,
                )
            if ticket.id in self._tickets:
                raise ConflictError(f"Ticket {ticket.id} já existe", entity_id=ticket.id)
            ticket.version = 1
            self._tickets[ticket.id] = self._copy(ticket)
            self._numbers[ticket.number] = ticket.id
        self._record_undo(self._restore(self._tickets, ticket.id, None))
        self._record_undo(self._restore(self._numbers, ticket.number, None))

    def save(self, ticket: TicketEntity) -> None:
        with self._lock:
            stored = self._tickets.get(ticket.id)
            if stored is None:
                raise EntityNotFoundError(
                    f"Ticket {ticket.id} não encontrado",
                    entity_type="Ticket",
                    entity_id=ticket.id,
                )
            if stored.version != ticket.version:
                raise ConflictError(
                    f"Ticket {ticket.number} foi modificado por outro processo",
                    entity_id=ticket.id,
                )
            updated = self._copy(ticket)
            updated.version = stored.version + 1
            # touch concorrente pode ter avançado updated_at
            updated.updated_at = max(updated.updated_at, stored.updated_at)
            self._tickets[ticket.id] = updated
            ticket.version = updated.version
            ticket.updated_at = updated.updated_at
        self._record_undo(self._restore(self._tickets, ticket.id, stored))

    def touch(self, ticket_id: str, at: datetime) -> None:
        with self._lock:
            stored = self._tickets.get(ticket_id)
            if stored is None:
                raise EntityNotFoundError(
                    f"Ticket {ticket_id} não encontrado",
                    entity_type="Ticket",
                    entity_id=ticket_id,
                )
            if at <= stored.updated_at:
                return
            previous = self._copy(stored)
            stored.updated_at = at
        self._record_undo(self._restore(self._tickets, ticket_id, previous))

    def get_by_id(self, ticket_id: str) -> Optional[TicketEntity]:
        with self._lock:
            ticket = self._tickets.get(ticket_id)
            return self._copy(ticket) if ticket else None

    def get_by_number(self, number: str) -> Optional[TicketEntity]:
        with self._lock:
            ticket_id = self._numbers.get(number)
            return self.get_by_id(ticket_id) if ticket_id else None

    def search(
        self,
        query: TicketQueryDTO,
        visibility: Optional[TicketVisibility] = None,
    ) -> TicketPage:
        with self._lock:
            candidates = list(self._tickets.values())

        matched = [
            t for t in candidates
            if (visibility is None or visibility.admits(t)) and query.matches(t)
        ]
        matched.sort(key=lambda t: t.id, reverse=True)
        matched.sort(key=lambda t: t.created_at, reverse=True)

        total = len(matched)
        if query.page_size:
            start = (query.page - 1) * query.page_size
            matched = matched[start:start + query.page_size]
        return TicketPage(items=[self._copy(t) for t in matched], total=total)

    def count(self) -> int:
        with self._lock:
            return len(self._tickets)

    def clear(self) -> None:
        """Limpa todos os dados (útil para testes)."""
        with self._lock:
            self._tickets.clear()
            self._numbers.clear()

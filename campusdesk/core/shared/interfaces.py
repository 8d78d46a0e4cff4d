"""
Interfaces (Ports) - Contratos entre Core e Adapters.

Este módulo define as interfaces que os Adapters devem implementar.
São os "Ports" da Arquitetura Hexagonal.

Tipos de Ports:
- Driven Ports: UnitOfWork, EventPublisher, EventStore
- Driving Ports: definidos no Workflow Engine

Princípio: Core define interfaces; Adapters implementam.
O fluxo de dependência sempre aponta para o Core.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .events import DomainEvent


class UnitOfWork(ABC):
    """
    Unit of Work - Coordena transações atômicas.

    Garante que as mutações de uma intenção do Workflow Engine
    (ticket + mensagem de auditoria + eventos) sejam aplicadas
    juntas ou não sejam aplicadas.

    Pattern: Context Manager reentrante
        with uow:
            ticket_repo.save(ticket)
            with uow:               # aninhado: não finaliza nada
                message_repo.add(message)
            uow.publish_event(event)
        # Commit automático ao sair do bloco mais externo
        # Rollback automático se exceção

    Responsabilidades:
    - Gerenciar início/fim de transação
    - Commit/Rollback coordenado
    - Gravar eventos no Event Store dentro da transação
    - Publicar eventos somente após commit bem-sucedido
    """

    def __init__(
        self,
        event_publisher: Optional["EventPublisher"] = None,
        event_store: Optional["EventStore"] = None,
    ):
        self._events: List[DomainEvent] = []
        self._event_publisher = event_publisher
        self._event_store = event_store
        self._depth = 0

    def __enter__(self) -> "UnitOfWork":
        if self._depth == 0:
            self._events.clear()
            self._begin_transaction()
        self._depth += 1
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self._depth -= 1
        if self._depth > 0:
            return False
        if exc_type is not None:
            self.rollback()
        else:
            self.commit()
        return False  # Não suprime exceções

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @abstractmethod
    def _begin_transaction(self) -> None:
        """Inicia uma nova transação no armazenamento."""
        raise NotImplementedError

    @abstractmethod
    def commit(self) -> None:
        """
        Persiste todas as mudanças e publica eventos.

        Ordem de execução:
        1. Gravar eventos no Event Store (mesma transação)
        2. Commit da transação
        3. Publicação dos eventos enfileirados
        """
        raise NotImplementedError

    @abstractmethod
    def rollback(self) -> None:
        """Desfaz todas as mudanças e descarta eventos."""
        raise NotImplementedError

    def publish_event(self, event: DomainEvent) -> None:
        """
        Enfileira evento para publicação após commit.

        Example:
            with uow:
                repo.add(ticket)
                uow.publish_event(TicketCreatedEvent(aggregate_id=ticket.id, ...))
            # Evento publicado aqui, após commit
        """
        self._events.append(event)

    def clear_events(self) -> None:
        """Limpa fila de eventos."""
        self._events.clear()

    def _persist_events(self) -> None:
        """Grava eventos pendentes no Event Store, se configurado."""
        if self._event_store is None:
            return
        for event in self._events:
            self._event_store.append(event)

    def _dispatch_events(self, events: List[DomainEvent]) -> None:
        """Entrega eventos já comitados ao publisher."""
        if self._event_publisher is None or not events:
            return
        self._event_publisher.publish_batch(events)


class EventPublisher(ABC):
    """
    Interface para publicação de eventos.

    Adapters implementam para integrar com diferentes
    sistemas de mensageria (Celery, assinantes em memória, etc.)
    """

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        """Publica evento para consumidores."""
        raise NotImplementedError

    def publish_batch(self, events: List[DomainEvent]) -> None:
        """Publica múltiplos eventos, em ordem."""
        for event in events:
            self.publish(event)


class EventStore(ABC):
    """
    Interface para persistência de eventos (outbox/auditoria).

    O append acontece dentro da transação do UoW, de modo que
    mutação e registro do evento são atômicos.
    """

    @abstractmethod
    def append(self, event: DomainEvent) -> None:
        """Adiciona evento ao store."""
        raise NotImplementedError

    @abstractmethod
    def get_events_for_aggregate(self, aggregate_id: str) -> List[Dict[str, Any]]:
        """
        Recupera eventos de um agregado, em ordem de gravação.

        Returns:
            Lista de eventos serializados (`DomainEvent.to_dict()`)
        """
        raise NotImplementedError

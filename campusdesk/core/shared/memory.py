"""
Base para repositórios em memória.

Útil para:
- Testes unitários do Core
- Prototipagem / desenvolvimento local

Cada coleção em memória protege seus dados com um lock (atomicidade
por documento, como um document store) e aceita um "journal" de
desfazer por thread. O InMemoryUnitOfWork vincula o journal ao entrar
na transação e executa os undos em ordem reversa no rollback.

Não usar em produção!
"""

import copy
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional

from .events import DomainEvent
from .interfaces import EventPublisher, EventStore, UnitOfWork


UndoAction = Callable[[], None]


class InMemoryCollection:
    """Coleção thread-safe com suporte a journal de desfazer."""

    def __init__(self):
        self._lock = threading.RLock()
        self._local = threading.local()

    def bind_journal(self, journal: List[UndoAction]) -> None:
        self._local.journal = journal

    def unbind_journal(self) -> None:
        self._local.journal = None

    def _record_undo(self, action: UndoAction) -> None:
        journal: Optional[List[UndoAction]] = getattr(self._local, "journal", None)
        if journal is not None:
            journal.append(action)

    def _restore(self, store: Dict[str, Any], key: str, previous: Any) -> UndoAction:
        """Cria undo que devolve `store[key]` ao valor anterior (ou remove)."""

        def undo() -> None:
            with self._lock:
                if previous is None:
                    store.pop(key, None)
                else:
                    store[key] = previous

        return undo

    @staticmethod
    def _copy(entity: Any) -> Any:
        # Cópias evitam que o chamador altere o "documento" armazenado
        return copy.deepcopy(entity)


class InMemoryEventStore(InMemoryCollection, EventStore):
    """Event Store em memória (outbox para testes)."""

    def __init__(self):
        super().__init__()
        self._events: List[Dict[str, Any]] = []

    def append(self, event: DomainEvent) -> None:
        data = event.to_dict()
        with self._lock:
            self._events.append(data)
        self._record_undo(lambda: self._remove(data))

    def _remove(self, data: Dict[str, Any]) -> None:
        with self._lock:
            if data in self._events:
                self._events.remove(data)

    def get_events_for_aggregate(self, aggregate_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(e) for e in self._events if e["aggregate_id"] == aggregate_id]

    def all_events(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(e) for e in self._events]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


class InMemoryUnitOfWork(UnitOfWork):
    """
    Unit of Work em memória para testes.

    Coleções em memória registram undos no journal vinculado pela
    transação; o rollback os executa em ordem reversa, de modo que
    uma intenção que falha no meio não deixa estado parcial.

    Example:
        uow = InMemoryUnitOfWork(collections=[ticket_repo, message_repo])
        with uow:
            ticket_repo.add(ticket)
            uow.publish_event(event)

        assert uow.committed
        assert len(uow.published_events) == 1
    """

    def __init__(
        self,
        event_publisher: Optional[EventPublisher] = None,
        event_store: Optional[EventStore] = None,
        collections: Iterable[InMemoryCollection] = (),
    ):
        super().__init__(event_publisher=event_publisher, event_store=event_store)
        self._collections: List[InMemoryCollection] = list(collections)
        if isinstance(event_store, InMemoryCollection) and event_store not in self._collections:
            self._collections.append(event_store)
        self._journal: List[UndoAction] = []
        self._committed = False
        self._rolled_back = False
        self._published_events: List[DomainEvent] = []

    def _begin_transaction(self) -> None:
        self._journal = []
        for collection in self._collections:
            collection.bind_journal(self._journal)

    def _unbind(self) -> None:
        for collection in self._collections:
            collection.unbind_journal()

    def commit(self) -> None:
        try:
            self._persist_events()
        except Exception:
            self.rollback()
            raise
        events = list(self._events)
        self._unbind()
        self._journal = []
        self._committed = True
        self.clear_events()
        self._published_events.extend(events)
        self._dispatch_events(events)

    def rollback(self) -> None:
        for undo in reversed(self._journal):
            undo()
        self._journal = []
        self._unbind()
        self._rolled_back = True
        self.clear_events()

    @property
    def committed(self) -> bool:
        return self._committed

    @property
    def rolled_back(self) -> bool:
        return self._rolled_back

    @property
    def published_events(self) -> List[DomainEvent]:
        """Eventos entregues após commits."""
        return list(self._published_events)

    def reset(self) -> None:
        """Reset para próximo teste."""
        self._committed = False
        self._rolled_back = False
        self._published_events.clear()
        self.clear_events()

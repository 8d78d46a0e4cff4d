"""
Unit of Work - Implementação Django.

Gerencia transações atômicas entre múltiplos repositórios,
garantindo que ticket, mensagem de auditoria e eventos de uma
intenção sejam gravados juntos.

Responsabilidades:
- Iniciar/finalizar transações
- Commit/Rollback coordenado
- Persistir eventos no Event Store dentro da transação
- Publicar eventos somente após o commit real

Uma instância não deve ser compartilhada entre threads: o container
cria um UoW por request/intenção.
"""

from typing import List, Optional
import logging

from django.db import DatabaseError, InterfaceError, OperationalError, transaction

from campusdesk.core.shared.events import DomainEvent
from campusdesk.core.shared.exceptions import StoreUnavailableError
from campusdesk.core.shared.interfaces import EventPublisher, EventStore, UnitOfWork


logger = logging.getLogger(__name__)


class DjangoUnitOfWork(UnitOfWork):
    """
    Implementação Django do Unit of Work.

    Usa `transaction.atomic` aberto manualmente. Dentro de um atomic
    externo (ATOMIC_REQUESTS, testes) vira um savepoint, e a publicação
    dos eventos espera o commit real via `transaction.on_commit`.

    Example:
        with DjangoUnitOfWork(event_publisher, event_store) as uow:
            ticket_repo.save(ticket)
            uow.publish_event(StatusChangedEvent(...))
        # Commit + eventos publicados

    Example com rollback:
        with DjangoUnitOfWork() as uow:
            ticket_repo.save(ticket)
            raise ValidationError("...")
        # Rollback automático, eventos descartados
    """

    def __init__(
        self,
        event_publisher: Optional[EventPublisher] = None,
        event_store: Optional[EventStore] = None,
        using: str = "default",
    ):
        super().__init__(event_publisher=event_publisher, event_store=event_store)
        self._using = using
        self._atomic = None
        self._committed = False
        self._rolled_back = False

    def _begin_transaction(self) -> None:
        self._committed = False
        self._rolled_back = False
        self._atomic = transaction.atomic(using=self._using)
        try:
            self._atomic.__enter__()
        except (OperationalError, InterfaceError) as e:
            self._atomic = None
            raise StoreUnavailableError(f"Banco indisponível: {e}") from e
        logger.debug("Transaction started")

    def commit(self) -> None:
        """
        Ordem de execução:
        1. Persistir eventos no Event Store (mesma transação)
        2. Commit (ou release do savepoint)
        3. Agendar publicação para depois do commit real
        """
        if self._atomic is None:
            logger.warning("Transaction already finalized")
            return

        try:
            self._persist_events()
        except Exception as e:
            logger.error(f"Commit failed: {e}")
            self.rollback()
            raise

        events = list(self._events)
        atomic, self._atomic = self._atomic, None
        try:
            atomic.__exit__(None, None, None)
        except (OperationalError, InterfaceError) as e:
            self.clear_events()
            raise StoreUnavailableError(f"Falha no commit: {e}") from e
        except DatabaseError as e:
            logger.error(f"Commit failed: {e}")
            self.clear_events()
            raise

        self._committed = True
        logger.debug("Transaction committed")
        self.clear_events()
        if events:
            transaction.on_commit(lambda: self._dispatch_events(events), using=self._using)

    def rollback(self) -> None:
        """Desfaz todas as mudanças e descarta eventos."""
        self.clear_events()
        if self._atomic is None:
            return
        atomic, self._atomic = self._atomic, None
        transaction.set_rollback(True, using=self._using)
        atomic.__exit__(None, None, None)
        self._rolled_back = True
        logger.debug("Transaction rolled back")

    def _dispatch_events(self, events: List[DomainEvent]) -> None:
        for event in events:
            logger.info(
                f"Publishing event: {event.event_type} "
                f"for aggregate {event.aggregate_id}"
            )
        super()._dispatch_events(events)

    @property
    def is_committed(self) -> bool:
        return self._committed

    @property
    def is_rolled_back(self) -> bool:
        return self._rolled_back

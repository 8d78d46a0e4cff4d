"""
Event Publishers - Publicadores de Eventos de Domínio.

Recebem os eventos do UnitOfWork após o commit.
Implementações:
- LoggingEventPublisher: Apenas loga (desenvolvimento)
- CeleryEventPublisher: Publica via Celery (produção)
- NotificationEventPublisher: Despacha notificações no mesmo processo (modo sync)
- InMemoryEventPublisher: Para testes
- CompositeEventPublisher: Vários destinos (ex.: Celery + SubscriptionHub)

Padrão Observer/Pub-Sub para desacoplamento.
"""

from typing import Callable, Dict, List
import json
import logging

from campusdesk.core.notifications.use_cases import NotificationDispatcher
from campusdesk.core.shared.events import DomainEvent
from campusdesk.core.shared.interfaces import EventPublisher

logger = logging.getLogger(__name__)


class LoggingEventPublisher(EventPublisher):
    """
    Publisher que apenas loga eventos.

    Usado em desenvolvimento para visualizar eventos
    sem necessidade de infraestrutura de mensageria.
    """

    def __init__(self, log_level: int = logging.INFO):
        self._log_level = log_level

    def publish(self, event: DomainEvent) -> None:
        logger.log(
            self._log_level,
            f"[EVENT] {event.event_type} | "
            f"aggregate={event.aggregate_id} | "
            f"data={json.dumps(event.to_dict(), default=str)}"
        )


class CeleryEventPublisher(EventPublisher):
    """
    Publisher que envia eventos para Celery.

    O worker reconstrói o evento (EventRegistry) e executa o
    NotificationDispatcher. Falha ao enfileirar é logada: o evento
    continua gravado no Event Store e pode ser reprocessado.
    """

    def __init__(self, also_log: bool = True):
        self._also_log = also_log

    def publish(self, event: DomainEvent) -> None:
        if self._also_log:
            logger.info(
                f"[EVENT->CELERY] {event.event_type} | "
                f"aggregate={event.aggregate_id}"
            )

        from campusdesk.adapters.django_app.events.handlers import dispatch_domain_event

        try:
            dispatch_domain_event.delay(event.event_type, event.to_dict())
        except Exception as e:
            logger.error(f"Falha ao publicar evento no Celery: {e}", exc_info=True)


class NotificationEventPublisher(EventPublisher):
    """
    Publisher síncrono: cria as notificações no mesmo processo.

    Usado com EVENT_PUBLISHER_MODE=sync (desenvolvimento e testes
    de integração sem broker). Recebe uma factory: cada publicação
    usa um dispatcher (e um UnitOfWork) próprio.
    """

    def __init__(self, dispatcher_factory: Callable[[], NotificationDispatcher]):
        self._dispatcher_factory = dispatcher_factory

    def publish(self, event: DomainEvent) -> None:
        dispatcher = self._dispatcher_factory()
        if dispatcher.handles(event):
            dispatcher.dispatch(event)


class InMemoryEventPublisher(EventPublisher):
    """
    Publisher em memória para testes.

    Armazena eventos publicados para verificação em testes.
    """

    def __init__(self):
        self._published_events: List[DomainEvent] = []
        self._handlers: Dict[str, List[Callable[[DomainEvent], None]]] = {}

    def publish(self, event: DomainEvent) -> None:
        self._published_events.append(event)
        for handler in self._handlers.get(event.event_type, []):
            handler(event)

    @property
    def published_events(self) -> List[DomainEvent]:
        return self._published_events.copy()

    def clear(self) -> None:
        self._published_events.clear()

    def get_events_by_type(self, event_type: str) -> List[DomainEvent]:
        """Filtra eventos por tipo ("TicketCreated", "Assigned"...)."""
        return [e for e in self._published_events if e.event_type == event_type]

    def register_handler(self, event_type: str, handler: Callable[[DomainEvent], None]) -> None:
        self._handlers.setdefault(event_type, []).append(handler)


class CompositeEventPublisher(EventPublisher):
    """
    Publisher que delega para múltiplos publishers.

    A falha de um destino é logada e não impede os demais: o commit
    já aconteceu e o evento está no Event Store.
    """

    def __init__(self, publishers: List[EventPublisher] = None):
        self._publishers = list(publishers or [])

    def publish(self, event: DomainEvent) -> None:
        self.publish_batch([event])

    def publish_batch(self, events: List[DomainEvent]) -> None:
        for publisher in self._publishers:
            try:
                publisher.publish_batch(events)
            except Exception as e:
                logger.error(
                    f"Erro ao publicar batch em {publisher.__class__.__name__}: {e}",
                    exc_info=True,
                )

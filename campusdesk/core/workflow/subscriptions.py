"""
Assinaturas em tempo real de mudanças de tickets.

O SubscriptionHub é um EventPublisher: registrado no UnitOfWork,
recebe os eventos após o commit e os entrega aos callbacks, filtrando
pela política de autorização do assinante (visibilidade do ticket e
notas internas). Nada é persistido; `cancel()` libera a assinatura.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional
import uuid

from campusdesk.core.authorization.policy import can_view, can_view_internal_notes
from campusdesk.core.identity.ports import PrincipalRepository
from campusdesk.core.identity.session import Session
from campusdesk.core.identity.use_cases import current_principal
from campusdesk.core.messages.events import MessagePostedEvent
from campusdesk.core.shared.events import DomainEvent
from campusdesk.core.shared.interfaces import EventPublisher
from campusdesk.core.tickets.ports import TicketRepository


logger = logging.getLogger(__name__)

Callback = Callable[[DomainEvent], None]


class Subscription:
    """
    Assinatura ativa de um principal.

    Attributes:
        subscription_id: Identificador
        session: Sessão do assinante (encerrar a sessão encerra a entrega)
        ticket_id: Ticket observado (None = todos os visíveis)
    """

    def __init__(
        self,
        hub: "SubscriptionHub",
        session: Session,
        callback: Callback,
        ticket_id: Optional[str] = None,
    ):
        self.subscription_id = str(uuid.uuid4())
        self.session = session
        self.callback = callback
        self.ticket_id = ticket_id
        self._hub = hub
        self._active = True

    @property
    def active(self) -> bool:
        return self._active and self.session.is_active

    def cancel(self) -> None:
        """Cancela a assinatura. Idempotente."""
        if self._active:
            self._active = False
            self._hub.unregister(self)

    def wants(self, event: DomainEvent) -> bool:
        return self.ticket_id is None or event.aggregate_id == self.ticket_id

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.cancel()
        return False


class SubscriptionHub(EventPublisher):
    """
    Distribui eventos de ticket para assinantes em processo.

    Example:
        hub = SubscriptionHub(ticket_repo, principal_repo)
        sub = hub.subscribe(session, received.append, ticket_id=ticket.id)
        ...
        sub.cancel()
    """

    def __init__(self, ticket_repo: TicketRepository, principal_repo: PrincipalRepository):
        self.ticket_repo = ticket_repo
        self.principal_repo = principal_repo
        self._lock = threading.Lock()
        self._subscriptions: Dict[str, Subscription] = {}

    def subscribe(
        self,
        session: Session,
        callback: Callback,
        ticket_id: Optional[str] = None,
    ) -> Subscription:
        subscription = Subscription(self, session, callback, ticket_id)
        with self._lock:
            self._subscriptions[subscription.subscription_id] = subscription
        logger.debug(
            f"Assinatura {subscription.subscription_id} de {session.actor_id} "
            f"(ticket={ticket_id or '*'})"
        )
        return subscription

    def unregister(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscriptions.pop(subscription.subscription_id, None)

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, event: DomainEvent) -> None:
        if event.aggregate_type != "Ticket":
            return

        with self._lock:
            subscriptions: List[Subscription] = list(self._subscriptions.values())

        ticket = None
        for subscription in subscriptions:
            if not subscription.active:
                subscription.cancel()
                continue
            if not subscription.wants(event):
                continue
            if ticket is None:
                ticket = self.ticket_repo.get_by_id(event.aggregate_id)
                if ticket is None:
                    return

            # Papel atual, não o do momento da assinatura
            principal = current_principal(self.principal_repo, subscription.session)
            if not can_view(principal, ticket):
                continue
            if (
                isinstance(event, MessagePostedEvent)
                and event.is_internal
                and not can_view_internal_notes(principal)
            ):
                continue

            try:
                subscription.callback(event)
            except Exception as e:
                logger.error(
                    f"Erro em assinante {subscription.subscription_id} "
                    f"para {event.event_type}: {e}",
                    exc_info=True,
                )

"""
Event Handlers - Processadores de Eventos de Domínio.

Handlers são executados de forma assíncrona via Celery quando
Domain Events são publicados. Isso permite:

- Desacoplamento: O Workflow Engine não conhece o feed de notificações
- Resiliência: Retry automático em falhas
- Idempotência: O dispatcher ignora (event_id, destinatário) já entregues

Padrão:
    @shared_task(bind=True, ...)
    def handle_<evento>(self, event_data: dict) -> None:
        # Processar evento
"""

import logging
from typing import Any, Dict

from celery import shared_task

from campusdesk.core.shared.events import EventRegistry

# Registro dos eventos no EventRegistry
import campusdesk.core.identity.events  # noqa: F401
import campusdesk.core.messages.events  # noqa: F401
import campusdesk.core.tickets.events  # noqa: F401

logger = logging.getLogger(__name__)


NOTIFICATION_EVENTS = frozenset({
    "TicketCreated",
    "Assigned",
    "StatusChanged",
    "MessagePosted",
})

IDENTITY_EVENTS = frozenset({
    "PrincipalRegistered",
    "RoleChanged",
})


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(Exception,),
    acks_late=True,
)
def handle_notification_event(self, event_data: Dict[str, Any]) -> int:
    """
    Cria notificações para um evento de ticket.

    Args:
        event_data: Evento serializado (`DomainEvent.to_dict()`)

    Returns:
        Quantidade de notificações criadas
    """
    from campusdesk.config.container import get_container

    try:
        event = EventRegistry.rebuild(event_data)
        dispatcher = get_container().notification_dispatcher()
        created = dispatcher.dispatch(event)
    except Exception as e:
        logger.error(f"Erro no handler de notificações: {e}", exc_info=True)
        raise

    logger.info(
        f"[HANDLER] {event.event_type}: {event.aggregate_id} | "
        f"notificações={len(created)}"
    )
    return len(created)


@shared_task(bind=True, ignore_result=True)
def handle_identity_event(self, event_data: Dict[str, Any]) -> None:
    """Registra eventos de identidade (auditoria de papéis)."""
    data = event_data.get("data", {})
    if event_data.get("event_type") == "RoleChanged":
        logger.info(
            f"[HANDLER] RoleChanged: {event_data.get('aggregate_id')} | "
            f"{data.get('previous_role')} -> {data.get('new_role')} | "
            f"por {event_data.get('actor_id')}"
        )
    else:
        logger.info(
            f"[HANDLER] PrincipalRegistered: {event_data.get('aggregate_id')} | "
            f"{data.get('email')}"
        )


@shared_task(bind=True, max_retries=5, default_retry_delay=30)
def dispatch_domain_event(self, event_type: str, event_data: Dict[str, Any]) -> None:
    """
    Dispatcher central para Domain Events.

    Roteia eventos para os handlers apropriados.
    Este é o ponto de entrada para todos os eventos.

    Args:
        event_type: Tipo do evento (ex: 'TicketCreated')
        event_data: Dados do evento serializado
    """
    if event_type in NOTIFICATION_EVENTS:
        logger.info(f"[DISPATCHER] Roteando {event_type} para notificações")
        handle_notification_event.delay(event_data)
    elif event_type in IDENTITY_EVENTS:
        handle_identity_event.delay(event_data)
    else:
        logger.warning(f"[DISPATCHER] Handler não encontrado para {event_type}")

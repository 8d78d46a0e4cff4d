"""
Dependency Injection Container.

Configura e gerencia todas as dependências da aplicação.
Usa dependency-injector para lazy-loading e injeção automática.

Padrões:
- Singleton: Uma instância para toda app (repositories, publisher, hub)
- Factory: Nova instância por chamada (UoW, engine, services)

Cada request recebe um WorkflowEngine com UnitOfWork próprio:
instâncias de UoW nunca são compartilhadas entre threads.
"""

from importlib import import_module
import logging
from typing import Callable, Optional

from dependency_injector import containers, providers

from campusdesk.core.identity.ports import InMemoryPrincipalRepository
from campusdesk.core.identity.use_cases import (
    BootstrapAdminService,
    ChangeRoleService,
    IdentityResolver,
    ListPrincipalsService,
    UpdateProfileService,
)
from campusdesk.core.messages.ports import InMemoryMessageRepository
from campusdesk.core.notifications.ports import InMemoryNotificationRepository
from campusdesk.core.notifications.use_cases import (
    ListNotificationsService,
    MarkAllAsReadService,
    MarkAsReadService,
    NotificationDispatcher,
)
from campusdesk.core.reports.use_cases import AgentPerformanceService, DashboardStatsService
from campusdesk.core.shared.interfaces import EventPublisher
from campusdesk.core.shared.memory import InMemoryEventStore, InMemoryUnitOfWork
from campusdesk.core.tickets.ports import InMemoryTicketRepository
from campusdesk.core.workflow import SubscriptionHub, WorkflowEngine, WorkflowSettings

logger = logging.getLogger(__name__)


HELPDESK_REPOSITORIES = 'campusdesk.adapters.django_app.helpdesk.repositories'
UNIT_OF_WORK = 'campusdesk.adapters.django_app.shared.unit_of_work'
PUBLISHERS = 'campusdesk.adapters.django_app.events.publishers'


def _lazy(module: str, name: str) -> Callable:
    """
    Import tardio dos adapters Django.

    Evita importar models antes do registro de apps estar pronto.
    """

    def factory(*args, **kwargs):
        return getattr(import_module(module), name)(*args, **kwargs)

    factory.__name__ = name
    return factory


def build_event_publisher(
    mode: str,
    subscriptions: SubscriptionHub,
    dispatcher_factory: Callable[[], NotificationDispatcher],
) -> EventPublisher:
    """
    Monta o publisher conforme EVENT_PUBLISHER_MODE.

    - 'celery': eventos vão para o worker (produção)
    - 'sync': notificações criadas no mesmo processo
    - 'log': apenas log

    Em todos os modos os assinantes em tempo real recebem os eventos.
    """
    publishers = import_module(PUBLISHERS)
    mode = (mode or 'sync').lower()

    if mode == 'celery':
        targets = [publishers.CeleryEventPublisher()]
    elif mode == 'sync':
        targets = [
            publishers.LoggingEventPublisher(logging.DEBUG),
            publishers.NotificationEventPublisher(dispatcher_factory),
        ]
    elif mode == 'log':
        targets = [publishers.LoggingEventPublisher()]
    else:
        raise ValueError(f"EVENT_PUBLISHER_MODE inválido: {mode}")

    logger.info(f"Event publisher configurado: {mode}")
    return publishers.CompositeEventPublisher(targets + [subscriptions])


class Container(containers.DeclarativeContainer):
    """
    Container principal de Dependency Injection.

    Organização:
    - Configuration: Flags lidas das settings do Django
    - Repositories: Persistência (Django ORM)
    - Events: Event Store, publisher, assinantes em tempo real
    - Unit of Work: Transações
    - Engine / Services: Use Cases

    Example:
        container = get_container()
        engine = container.workflow_engine()
        session = container.identity_resolver().start_session(uid, email)
        engine.file_ticket(session, input_dto)
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    config = providers.Configuration()

    workflow_settings = providers.Singleton(
        WorkflowSettings,
        ticket_number_prefix=config.ticket_number_prefix,
        reopen_on_reply=config.reopen_on_reply,
        strict_status_transitions=config.strict_status_transitions,
        conceal_forbidden_tickets=config.conceal_forbidden_tickets,
    )

    # =========================================================================
    # Repositories (Singleton - stateless)
    # =========================================================================

    principal_repository = providers.Singleton(_lazy(HELPDESK_REPOSITORIES, 'DjangoPrincipalRepository'))

    ticket_repository = providers.Singleton(_lazy(HELPDESK_REPOSITORIES, 'DjangoTicketRepository'))

    message_repository = providers.Singleton(_lazy(HELPDESK_REPOSITORIES, 'DjangoMessageRepository'))

    notification_repository = providers.Singleton(_lazy(HELPDESK_REPOSITORIES, 'DjangoNotificationRepository'))

    event_store = providers.Singleton(_lazy(HELPDESK_REPOSITORIES, 'DjangoEventStore'))

    # =========================================================================
    # Events
    # =========================================================================

    subscription_hub = providers.Singleton(
        SubscriptionHub,
        ticket_repo=ticket_repository,
        principal_repo=principal_repository,
    )

    # UoW do dispatcher: não publica eventos
    notification_uow = providers.Factory(_lazy(UNIT_OF_WORK, 'DjangoUnitOfWork'))

    notification_dispatcher = providers.Factory(
        NotificationDispatcher,
        principal_repo=principal_repository,
        ticket_repo=ticket_repository,
        notification_repo=notification_repository,
        uow=notification_uow,
    )

    event_publisher = providers.Singleton(
        build_event_publisher,
        mode=config.event_publisher_mode,
        subscriptions=subscription_hub,
        dispatcher_factory=notification_dispatcher.provider,
    )

    # =========================================================================
    # Unit of Work (Factory - nova instância por operação)
    # =========================================================================

    unit_of_work = providers.Factory(
        _lazy(UNIT_OF_WORK, 'DjangoUnitOfWork'),
        event_publisher=event_publisher,
        event_store=event_store,
    )

    # =========================================================================
    # Engine / Services (Factory - nova instância por chamada)
    # =========================================================================

    workflow_engine = providers.Factory(
        WorkflowEngine,
        uow=unit_of_work,
        principal_repo=principal_repository,
        ticket_repo=ticket_repository,
        message_repo=message_repository,
        settings=workflow_settings,
        subscriptions=subscription_hub,
    )

    identity_resolver = providers.Factory(
        IdentityResolver,
        principal_repo=principal_repository,
        uow=unit_of_work,
    )

    bootstrap_admin_service = providers.Factory(
        BootstrapAdminService,
        principal_repo=principal_repository,
        uow=unit_of_work,
    )

    change_role_service = providers.Factory(
        ChangeRoleService,
        principal_repo=principal_repository,
        uow=unit_of_work,
    )

    update_profile_service = providers.Factory(
        UpdateProfileService,
        principal_repo=principal_repository,
        uow=unit_of_work,
    )

    list_principals_service = providers.Factory(
        ListPrincipalsService,
        principal_repo=principal_repository,
    )

    list_notifications_service = providers.Factory(
        ListNotificationsService,
        notification_repo=notification_repository,
    )

    mark_as_read_service = providers.Factory(
        MarkAsReadService,
        notification_repo=notification_repository,
        uow=unit_of_work,
    )

    mark_all_as_read_service = providers.Factory(
        MarkAllAsReadService,
        notification_repo=notification_repository,
        uow=unit_of_work,
    )

    dashboard_stats_service = providers.Factory(
        DashboardStatsService,
        ticket_repo=ticket_repository,
    )

    agent_performance_service = providers.Factory(
        AgentPerformanceService,
        ticket_repo=ticket_repository,
    )


# =============================================================================
# Container Global (Singleton)
# =============================================================================

_container: Optional[Container] = None


def get_container() -> Container:
    """
    Retorna instância global do container.

    Cria se não existir (lazy initialization), carregando as flags
    das settings do Django.
    """
    global _container

    if _container is None:
        from django.conf import settings

        container = Container()
        container.config.from_dict({
            'ticket_number_prefix': settings.TICKET_NUMBER_PREFIX,
            'reopen_on_reply': settings.REOPEN_ON_REPLY,
            'strict_status_transitions': settings.STRICT_STATUS_TRANSITIONS,
            'conceal_forbidden_tickets': settings.CONCEAL_FORBIDDEN_TICKETS,
            'event_publisher_mode': settings.EVENT_PUBLISHER_MODE,
        })
        _container = container

    return _container


def reset_container() -> None:
    """
    Reset do container (para testes).

    Permite criar novo container limpo.
    """
    global _container
    _container = None


# =============================================================================
# Testing Container
# =============================================================================

def _recording_publisher(recorder: EventPublisher, subscriptions: SubscriptionHub,
                         dispatcher_factory: Callable[[], NotificationDispatcher]) -> EventPublisher:
    publishers = import_module(PUBLISHERS)
    return publishers.CompositeEventPublisher([
        recorder,
        publishers.NotificationEventPublisher(dispatcher_factory),
        subscriptions,
    ])


def _in_memory_publisher() -> EventPublisher:
    return import_module(PUBLISHERS).InMemoryEventPublisher()


class TestingContainer(containers.DeclarativeContainer):
    """
    Container para testes com implementações em memória.

    Grafo próprio e completo: engine e services recebem os mesmos
    repositórios em memória expostos pelo container. Notificações são
    criadas de forma síncrona e os eventos publicados ficam em
    `recorded_events` para verificação.

    Example:
        container = TestingContainer()
        container.workflow_settings.override(
            providers.Object(WorkflowSettings(reopen_on_reply=True))
        )
        engine = container.workflow_engine()
    """

    workflow_settings = providers.Singleton(WorkflowSettings)

    # InMemory implementations
    principal_repository = providers.Singleton(InMemoryPrincipalRepository)

    ticket_repository = providers.Singleton(InMemoryTicketRepository)

    message_repository = providers.Singleton(InMemoryMessageRepository)

    notification_repository = providers.Singleton(InMemoryNotificationRepository)

    event_store = providers.Singleton(InMemoryEventStore)

    subscription_hub = providers.Singleton(
        SubscriptionHub,
        ticket_repo=ticket_repository,
        principal_repo=principal_repository,
    )

    notification_uow = providers.Factory(
        InMemoryUnitOfWork,
        collections=providers.List(notification_repository),
    )

    notification_dispatcher = providers.Factory(
        NotificationDispatcher,
        principal_repo=principal_repository,
        ticket_repo=ticket_repository,
        notification_repo=notification_repository,
        uow=notification_uow,
    )

    recorded_events = providers.Singleton(_in_memory_publisher)

    event_publisher = providers.Singleton(
        _recording_publisher,
        recorder=recorded_events,
        subscriptions=subscription_hub,
        dispatcher_factory=notification_dispatcher.provider,
    )

    unit_of_work = providers.Factory(
        InMemoryUnitOfWork,
        event_publisher=event_publisher,
        event_store=event_store,
        collections=providers.List(
            principal_repository,
            ticket_repository,
            message_repository,
            notification_repository,
        ),
    )

    # Services com InMemory dependencies
    workflow_engine = providers.Factory(
        WorkflowEngine,
        uow=unit_of_work,
        principal_repo=principal_repository,
        ticket_repo=ticket_repository,
        message_repo=message_repository,
        settings=workflow_settings,
        subscriptions=subscription_hub,
    )

    identity_resolver = providers.Factory(
        IdentityResolver,
        principal_repo=principal_repository,
        uow=unit_of_work,
    )

    bootstrap_admin_service = providers.Factory(
        BootstrapAdminService,
        principal_repo=principal_repository,
        uow=unit_of_work,
    )

    change_role_service = providers.Factory(
        ChangeRoleService,
        principal_repo=principal_repository,
        uow=unit_of_work,
    )

    update_profile_service = providers.Factory(
        UpdateProfileService,
        principal_repo=principal_repository,
        uow=unit_of_work,
    )

    list_principals_service = providers.Factory(
        ListPrincipalsService,
        principal_repo=principal_repository,
    )

    list_notifications_service = providers.Factory(
        ListNotificationsService,
        notification_repo=notification_repository,
    )

    mark_as_read_service = providers.Factory(
        MarkAsReadService,
        notification_repo=notification_repository,
        uow=unit_of_work,
    )

    mark_all_as_read_service = providers.Factory(
        MarkAllAsReadService,
        notification_repo=notification_repository,
        uow=unit_of_work,
    )

    dashboard_stats_service = providers.Factory(
        DashboardStatsService,
        ticket_repo=ticket_repository,
    )

    agent_performance_service = providers.Factory(
        AgentPerformanceService,
        ticket_repo=ticket_repository,
    )

"""
Use Cases do Domínio de Notificações.

- NotificationDispatcher: Converte Domain Events em notificações
- ListNotificationsService: Feed do usuário
- MarkAsReadService / MarkAllAsReadService: Controle de leitura

Regras de destinatários:
    TicketCreated   -> agentes/admins que atendem o tipo do ticket
    Assigned        -> novo responsável
    StatusChanged   -> criador do ticket
    MessagePosted   -> pública: criador e responsável
                       interna: responsável e admins (nunca staff)
                       sistema: ninguém (o evento de origem já notifica)
Quem causou o evento nunca é notificado, e todo destinatário
precisa conseguir ver o ticket.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from campusdesk.core.authorization.policy import (
    can_handle_type,
    can_view,
    can_view_internal_notes,
)
from campusdesk.core.identity.entities import Role
from campusdesk.core.identity.ports import PrincipalRepository
from campusdesk.core.identity.session import Session
from campusdesk.core.messages.events import MessagePostedEvent
from campusdesk.core.shared.events import DomainEvent
from campusdesk.core.shared.exceptions import EntityNotFoundError, ForbiddenError
from campusdesk.core.shared.interfaces import UnitOfWork
from campusdesk.core.tickets.entities import TicketEntity
from campusdesk.core.tickets.events import (
    AssignedEvent,
    StatusChangedEvent,
    TicketCreatedEvent,
)
from campusdesk.core.tickets.ports import TicketRepository

from .dtos import NotificationFeedDTO, NotificationOutputDTO
from .entities import Notification, NotificationKind
from .ports import NotificationRepository


logger = logging.getLogger(__name__)

# (destinatários candidatos, tipo, texto, exige acesso a notas internas)
Plan = Tuple[List[str], NotificationKind, str, bool]


class NotificationDispatcher:
    """
    Consumidor de Domain Events que alimenta o feed de notificações.

    Idempotente por (event_id, recipient_id): o worker pode
    reprocessar um evento sem duplicar notificações.

    Example:
        dispatcher = NotificationDispatcher(principal_repo, ticket_repo, notification_repo)
        created = dispatcher.dispatch(event)
    """

    def __init__(
        self,
        principal_repo: PrincipalRepository,
        ticket_repo: TicketRepository,
        notification_repo: NotificationRepository,
        uow: Optional[UnitOfWork] = None,
    ):
        self.principal_repo = principal_repo
        self.ticket_repo = ticket_repo
        self.notification_repo = notification_repo
        self.uow = uow
        self._planners: Dict[type, Callable[[DomainEvent, TicketEntity], Optional[Plan]]] = {
            TicketCreatedEvent: self._plan_created,
            AssignedEvent: self._plan_assigned,
            StatusChangedEvent: self._plan_status_changed,
            MessagePostedEvent: self._plan_message,
        }

    def handles(self, event: DomainEvent) -> bool:
        return type(event) in self._planners

    def dispatch(self, event: DomainEvent) -> List[Notification]:
        """
        Cria as notificações de um evento.

        Returns:
            Notificações criadas nesta chamada (vazia em reprocessamento)
        """
        planner = self._planners.get(type(event))
        if planner is None:
            return []

        ticket = self.ticket_repo.get_by_id(event.aggregate_id)
        if ticket is None:
            logger.warning(f"Ticket {event.aggregate_id} ausente para {event.event_type}")
            return []

        plan = planner(event, ticket)
        if plan is None:
            return []
        candidates, kind, text, internal_only = plan

        notifications = [
            Notification(
                recipient_id=recipient_id,
                ticket_id=ticket.id,
                ticket_number=ticket.number,
                kind=kind,
                message=text,
                event_id=event.event_id,
            )
            for recipient_id in self._eligible(candidates, event, ticket, internal_only)
        ]

        if self.uow is None:
            created = [n for n in notifications if self.notification_repo.add(n)]
        else:
            with self.uow:
                created = [n for n in notifications if self.notification_repo.add(n)]

        logger.info(
            f"[EVENT] {event.event_type} {ticket.number}: "
            f"{len(created)} notificação(ões) criada(s)"
        )
        return created

    def _eligible(
        self,
        candidates: List[str],
        event: DomainEvent,
        ticket: TicketEntity,
        internal_only: bool,
    ) -> List[str]:
        recipients: List[str] = []
        for recipient_id in candidates:
            if not recipient_id or recipient_id == event.actor_id or recipient_id in recipients:
                continue
            principal = self.principal_repo.get_by_id(recipient_id)
            if principal is None or not can_view(principal, ticket):
                continue
            if internal_only and not can_view_internal_notes(principal):
                continue
            recipients.append(recipient_id)
        return recipients

    def _plan_created(self, event: TicketCreatedEvent, ticket: TicketEntity) -> Plan:
        agents = [
            p.id for p in self.principal_repo.list_by_roles(r for r in Role if r.is_agent)
            if can_handle_type(p, ticket.type)
        ]
        return (
            agents,
            NotificationKind.TICKET_CREATED,
            f"New {ticket.type.value} ticket {ticket.number}: {ticket.subject}",
            False,
        )

    def _plan_assigned(self, event: AssignedEvent, ticket: TicketEntity) -> Plan:
        return (
            [event.assigned_to],
            NotificationKind.TICKET_ASSIGNED,
            f"Ticket {ticket.number} has been assigned to you",
            False,
        )

    def _plan_status_changed(self, event: StatusChangedEvent, ticket: TicketEntity) -> Plan:
        return (
            [ticket.created_by],
            NotificationKind.STATUS_CHANGED,
            f"Ticket {ticket.number} status changed to {event.new_status}",
            False,
        )

    def _plan_message(self, event: MessagePostedEvent, ticket: TicketEntity) -> Optional[Plan]:
        if event.is_system:
            return None
        if event.is_internal:
            admins = [p.id for p in self.principal_repo.list_by_roles([Role.ADMIN])]
            return (
                [ticket.assigned_to] + admins,
                NotificationKind.INTERNAL_NOTE,
                f"New internal note on ticket {ticket.number}",
                True,
            )
        return (
            [ticket.created_by, ticket.assigned_to],
            NotificationKind.NEW_MESSAGE,
            f"New reply on ticket {ticket.number}",
            False,
        )


class ListNotificationsService:
    """Use Case: Feed de notificações do usuário da sessão."""

    def __init__(self, notification_repo: NotificationRepository):
        self.notification_repo = notification_repo

    def execute(self, session: Session, unread_only: bool = False, limit: int = 50) -> NotificationFeedDTO:
        principal = session.ensure_active()
        items = self.notification_repo.list_for_recipient(
            principal.id, unread_only=unread_only, limit=limit
        )
        return NotificationFeedDTO(
            items=[NotificationOutputDTO.from_entity(n) for n in items],
            unread_count=self.notification_repo.unread_count(principal.id),
        )


class MarkAsReadService:
    """Use Case: Marcar uma notificação como lida."""

    def __init__(self, notification_repo: NotificationRepository, uow: UnitOfWork):
        self.notification_repo = notification_repo
        self.uow = uow

    def execute(self, session: Session, notification_id: str) -> NotificationOutputDTO:
        """
        Raises:
            EntityNotFoundError: Se a notificação não existe
            ForbiddenError: Se pertence a outro usuário
        """
        principal = session.ensure_active()

        with self.uow:
            notification = self.notification_repo.get_by_id(notification_id)
            if notification is None:
                raise EntityNotFoundError(
                    f"Notificação {notification_id} não encontrada",
                    entity_type="Notification",
                    entity_id=notification_id,
                )
            if notification.recipient_id != principal.id:
                raise ForbiddenError(
                    "Notificação pertence a outro usuário",
                    principal_id=principal.id,
                )
            if notification.mark_as_read():
                self.notification_repo.save(notification)

        return NotificationOutputDTO.from_entity(notification)


class MarkAllAsReadService:
    """Use Case: Marcar todo o feed como lido."""

    def __init__(self, notification_repo: NotificationRepository, uow: UnitOfWork):
        self.notification_repo = notification_repo
        self.uow = uow

    def execute(self, session: Session) -> int:
        principal = session.ensure_active()
        with self.uow:
            return self.notification_repo.mark_all_as_read(principal.id)

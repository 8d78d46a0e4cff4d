"""
Workflow Engine - porta de entrada das intenções do help desk.

Cada intenção recebe a Session explícita de quem age, consulta a
política de autorização e aplica as mutações dos Stores dentro de um
único UnitOfWork: ou tudo (ticket, mensagem de auditoria e eventos)
é gravado, ou nada é.

Intenções:
- file_ticket: Abrir ticket
- respond: Resposta pública ou nota interna (reabre se configurado)
- transition: Atribuição e/ou mudança de status + mensagens de sistema
- assign_to_me: Atalho de auto-atribuição

Leituras:
- get_ticket, list_tickets, list_messages, list_agents
- subscribe: Entrega de eventos em tempo real filtrada pela política
"""

from dataclasses import dataclass
import logging
from typing import List, Optional

from campusdesk.core.identity.dtos import PrincipalOutputDTO
from campusdesk.core.identity.entities import Principal
from campusdesk.core.identity.ports import PrincipalRepository
from campusdesk.core.identity.session import Session
from campusdesk.core.identity.use_cases import IdentityResolver, ListAgentsService
from campusdesk.core.messages.dtos import MessageOutputDTO, PostMessageInputDTO
from campusdesk.core.messages.ports import MessageRepository
from campusdesk.core.messages.use_cases import AppendMessageService, ListMessagesService
from campusdesk.core.shared.exceptions import ValidationError
from campusdesk.core.shared.interfaces import UnitOfWork
from campusdesk.core.tickets.dtos import (
    CreateTicketInputDTO,
    PaginatedResultDTO,
    TicketOutputDTO,
    TicketQueryDTO,
)
from campusdesk.core.tickets.entities import STRICT_TRANSITIONS, TicketStatus
from campusdesk.core.tickets.numbering import TicketNumberGenerator
from campusdesk.core.tickets.ports import TicketRepository
from campusdesk.core.tickets.use_cases import (
    AssignTicketService,
    CreateTicketService,
    GetTicketService,
    ListTicketsService,
    UpdateStatusService,
    load_visible_ticket,
)

from .subscriptions import Callback, Subscription, SubscriptionHub


logger = logging.getLogger(__name__)


ASSIGNED_TEMPLATE = "Ticket assigned to {name}"
STATUS_TEMPLATE = "Status changed to {status}"


@dataclass(frozen=True)
class WorkflowSettings:
    """
    Flags do engine (lidas das settings do Django pelo container).

    Attributes:
        ticket_number_prefix: Prefixo dos números ("ECPS")
        reopen_on_reply: Resposta pública do criador reabre ticket Closed
        strict_status_transitions: Restringe transições ao grafo estrito
        conceal_forbidden_tickets: Ticket invisível é reportado como inexistente
    """

    ticket_number_prefix: str = "ECPS"
    reopen_on_reply: bool = False
    strict_status_transitions: bool = False
    conceal_forbidden_tickets: bool = False


class WorkflowEngine:
    """
    Orquestra Ticket Store, Message Store e Authorization Policy.

    Example:
        engine = WorkflowEngine(uow, principal_repo, ticket_repo, message_repo)
        ticket = engine.file_ticket(session, CreateTicketInputDTO(
            ticket_type="IT Support",
            subject="Printer jam",
            description="Printer in room 12 keeps jamming",
        ))
        engine.assign_to_me(agent_session, ticket.id)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        principal_repo: PrincipalRepository,
        ticket_repo: TicketRepository,
        message_repo: MessageRepository,
        settings: Optional[WorkflowSettings] = None,
        subscriptions: Optional[SubscriptionHub] = None,
        number_generator: Optional[TicketNumberGenerator] = None,
    ):
        self.uow = uow
        self.ticket_repo = ticket_repo
        self.settings = settings or WorkflowSettings()
        self.subscriptions = subscriptions
        conceal = self.settings.conceal_forbidden_tickets

        self.identity = IdentityResolver(principal_repo, uow)
        self._create = CreateTicketService(
            ticket_repo,
            uow,
            number_generator or TicketNumberGenerator(self.settings.ticket_number_prefix),
        )
        self._get = GetTicketService(ticket_repo, conceal)
        self._list = ListTicketsService(ticket_repo)
        self._update_status = UpdateStatusService(
            ticket_repo, uow, strict=self.settings.strict_status_transitions,
            conceal_forbidden=conceal,
        )
        self._assign = AssignTicketService(ticket_repo, principal_repo, uow, conceal)
        self._append = AppendMessageService(ticket_repo, message_repo, uow, conceal)
        self._messages = ListMessagesService(ticket_repo, message_repo, conceal)
        self._agents = ListAgentsService(principal_repo)

    def _actor(self, session: Session) -> Principal:
        return self.identity.refresh(session)

    # =========================================================================
    # Intenções
    # =========================================================================

    def file_ticket(self, session: Session, input_dto: CreateTicketInputDTO) -> TicketOutputDTO:
        """
        Abre ticket em nome do principal da sessão.

        Raises:
            ForbiddenError: Sessão encerrada
            ValidationError: Dados inválidos
        """
        actor = self._actor(session)
        return self._create.execute(actor, input_dto)

    def respond(
        self,
        session: Session,
        ticket_id: str,
        body: str,
        internal: bool = False,
    ) -> MessageOutputDTO:
        """
        Adiciona resposta pública ou nota interna.

        Com `reopen_on_reply`, uma resposta pública do criador em um
        ticket Closed o devolve para Open (com evento e mensagem de
        sistema), na mesma transação.

        Raises:
            EntityNotFoundError: Ticket inexistente
            ForbiddenError: Staff em ticket alheio ou nota interna sem permissão
            ValidationError: Corpo vazio
        """
        actor = self._actor(session)

        with self.uow:
            message = self._append.execute(
                actor,
                PostMessageInputDTO(ticket_id=ticket_id, body=body, is_internal=internal),
            )
            if self.settings.reopen_on_reply and not internal:
                self._reopen_if_closed(actor, ticket_id)

        return message

    def _reopen_if_closed(self, actor: Principal, ticket_id: str) -> None:
        ticket = self._get.execute(actor, ticket_id)
        if ticket.status != TicketStatus.CLOSED.value or ticket.created_by != actor.id:
            return
        result = self._update_status.execute(
            actor, ticket_id, TicketStatus.OPEN.value, bypass_policy=True
        )
        if result.changed:
            self._system_message(actor, ticket_id, STATUS_TEMPLATE.format(status=TicketStatus.OPEN.value))
            logger.info(f"Ticket {ticket.number} reaberto por resposta do criador")

    def transition(
        self,
        session: Session,
        ticket_id: str,
        assign_to: Optional[str] = None,
        status: Optional[str] = None,
    ) -> TicketOutputDTO:
        """
        Atribui e/ou altera status em uma única transação.

        Cada mudança efetiva gera uma mensagem interna de sistema.
        Auto-atribuição de ticket sem responsável, sem status explícito,
        move o ticket para In Progress.

        Args:
            session: Sessão de quem age
            ticket_id: Ticket alvo
            assign_to: ID do agente (opcional)
            status: Novo status (opcional)

        Raises:
            ValidationError: Nenhuma mudança pedida, status/agente inválido
            EntityNotFoundError: Ticket ou agente inexistente
            ForbiddenError: Sem permissão
            ConflictError: Mutação concorrente (repetir a intenção inteira)
        """
        actor = self._actor(session)
        if not assign_to and not status:
            raise ValidationError("Informe assign_to e/ou status", field="transition")

        with self.uow:
            if assign_to:
                assigned = self._assign.execute(actor, ticket_id, assign_to)
                if assigned.changed:
                    self._system_message(
                        actor,
                        ticket_id,
                        ASSIGNED_TEMPLATE.format(name=assigned.ticket.assigned_to_name),
                    )
                    if (
                        status is None
                        and assign_to == actor.id
                        and assigned.previous_value is None
                        and self._can_auto_progress(assigned.ticket.status)
                    ):
                        status = TicketStatus.IN_PROGRESS.value

            if status:
                changed = self._update_status.execute(actor, ticket_id, status)
                if changed.changed:
                    self._system_message(
                        actor,
                        ticket_id,
                        STATUS_TEMPLATE.format(status=changed.ticket.status),
                    )

            ticket = self._get.execute(actor, ticket_id)

        return ticket

    def _can_auto_progress(self, current: str) -> bool:
        if not self.settings.strict_status_transitions:
            return True
        return TicketStatus.IN_PROGRESS in STRICT_TRANSITIONS[TicketStatus.from_string(current)]

    def assign_to_me(self, session: Session, ticket_id: str) -> TicketOutputDTO:
        """Atalho: atribui ao principal da sessão."""
        return self.transition(session, ticket_id, assign_to=session.actor_id)

    def _system_message(self, actor: Principal, ticket_id: str, text: str) -> None:
        self._append.execute(
            actor,
            PostMessageInputDTO(ticket_id=ticket_id, body=text, is_internal=True),
            is_system=True,
        )

    # =========================================================================
    # Leituras (nunca alteram updated_at)
    # =========================================================================

    def get_ticket(self, session: Session, ticket_id: str) -> TicketOutputDTO:
        return self._get.execute(self._actor(session), ticket_id)

    def list_tickets(self, session: Session, query: Optional[TicketQueryDTO] = None) -> PaginatedResultDTO:
        return self._list.execute(self._actor(session), query)

    def list_messages(self, session: Session, ticket_id: str) -> List[MessageOutputDTO]:
        return self._messages.execute(self._actor(session), ticket_id)

    def list_agents(self, session: Session, ticket_type: Optional[str] = None) -> List[PrincipalOutputDTO]:
        self._actor(session)
        return self._agents.execute(session, ticket_type)

    def subscribe(
        self,
        session: Session,
        callback: Callback,
        ticket_id: Optional[str] = None,
    ) -> Subscription:
        """
        Assina eventos de tickets visíveis ao principal.

        Com `ticket_id`, o ticket precisa existir e ser visível.

        Raises:
            RuntimeError: Se o engine foi criado sem SubscriptionHub
        """
        if self.subscriptions is None:
            raise RuntimeError("WorkflowEngine configurado sem SubscriptionHub")
        actor = self._actor(session)
        if ticket_id is not None:
            load_visible_ticket(
                self.ticket_repo, actor, ticket_id, self.settings.conceal_forbidden_tickets
            )
        return self.subscriptions.subscribe(session, callback, ticket_id)

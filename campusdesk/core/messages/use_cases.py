"""
Use Cases do Domínio de Mensagens.

- AppendMessageService: Resposta pública, nota interna ou mensagem de sistema
- ListMessagesService: Conversa do ticket, sem notas internas para staff
"""

import logging
from typing import List

from campusdesk.core.authorization.policy import (
    Action,
    authorize,
    can_view_internal_notes,
)
from campusdesk.core.identity.entities import Principal
from campusdesk.core.shared.interfaces import UnitOfWork
from campusdesk.core.tickets.ports import TicketRepository
from campusdesk.core.tickets.use_cases import load_visible_ticket

from .dtos import MessageOutputDTO, PostMessageInputDTO
from .entities import Message
from .events import MessagePostedEvent
from .ports import MessageRepository


logger = logging.getLogger(__name__)


class AppendMessageService:
    """
    Use Case: Adicionar mensagem a um ticket.

    Fluxo:
    1. Buscar ticket visível ao remetente
    2. Autorizar POST_REPLY ou POST_INTERNAL_NOTE
    3. Gravar mensagem (created_at monotônico por ticket)
    4. Avançar updated_at do ticket (máximo atômico, sem versão)
    5. Disparar evento MessagePosted

    Mensagens de sistema (`is_system=True`) são sempre internas e
    dispensam a verificação de capacidade: são geradas pelo engine
    como efeito de uma intenção já autorizada.
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        message_repo: MessageRepository,
        uow: UnitOfWork,
        conceal_forbidden: bool = False,
    ):
        self.ticket_repo = ticket_repo
        self.message_repo = message_repo
        self.uow = uow
        self.conceal_forbidden = conceal_forbidden

    def execute(
        self,
        actor: Principal,
        input_dto: PostMessageInputDTO,
        is_system: bool = False,
    ) -> MessageOutputDTO:
        """
        Raises:
            EntityNotFoundError: Se ticket não existe
            ForbiddenError: Se o remetente não pode postar este tipo de mensagem
            ValidationError: Se corpo vazio
        """
        with self.uow:
            ticket = load_visible_ticket(
                self.ticket_repo, actor, input_dto.ticket_id, self.conceal_forbidden
            )
            if not is_system:
                action = (
                    Action.POST_INTERNAL_NOTE if input_dto.is_internal else Action.POST_REPLY
                )
                authorize(actor, action, ticket)

            message = Message.compose(
                ticket_id=ticket.id,
                sender=actor,
                body=input_dto.body,
                is_internal=input_dto.is_internal,
                is_system=is_system,
            )
            self.message_repo.add(message)
            self.ticket_repo.touch(ticket.id, message.created_at)

            self.uow.publish_event(
                MessagePostedEvent(
                    aggregate_id=ticket.id,
                    actor_id=actor.id,
                    ticket_id=ticket.id,
                    message_id=message.id,
                    ticket_number=ticket.number,
                    sender_id=actor.id,
                    is_internal=message.is_internal,
                    is_system=message.is_system,
                )
            )

        logger.debug(
            f"Mensagem {message.id} em {ticket.number} "
            f"(internal={message.is_internal}, system={message.is_system})"
        )
        return MessageOutputDTO.from_entity(message)


class ListMessagesService:
    """
    Use Case: Listar a conversa de um ticket.

    Notas internas são removidas na consulta ao repositório para
    quem não tem VIEW_INTERNAL_NOTES; nunca chegam à borda.
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        message_repo: MessageRepository,
        conceal_forbidden: bool = False,
    ):
        self.ticket_repo = ticket_repo
        self.message_repo = message_repo
        self.conceal_forbidden = conceal_forbidden

    def execute(self, actor: Principal, ticket_id: str) -> List[MessageOutputDTO]:
        ticket = load_visible_ticket(
            self.ticket_repo, actor, ticket_id, self.conceal_forbidden
        )
        messages = self.message_repo.list_for_ticket(
            ticket.id, include_internal=can_view_internal_notes(actor)
        )
        return [MessageOutputDTO.from_entity(m) for m in messages]

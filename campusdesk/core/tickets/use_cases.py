"""
Use Cases (Application Services) do Domínio de Tickets.

Operações do Ticket Store, sempre executadas em nome de um principal:
- CreateTicketService: Abre ticket com número único
- GetTicketService: Obtém ticket visível ao principal
- ListTicketsService: Lista com visibilidade + filtros + paginação
- UpdateStatusService: Altera status (agent/admin)
- AssignTicketService: Atribui a um agente (agent/admin)

Responsabilidades dos Use Cases:
- Consultar a política de autorização (uma vez por operação)
- Coordenar entidades e repositórios
- Gerenciar transações (via UoW reentrante)
- Disparar eventos de domínio
- Retornar DTOs de saída

O Workflow Engine compõe estes serviços dentro de um UoW externo;
como o UoW é reentrante, o commit acontece só no bloco mais externo.
"""

import logging
from typing import Optional

from campusdesk.core.authorization.policy import (
    Action,
    authorize,
    can_handle_type,
    can_view,
    visibility_for,
)
from campusdesk.core.identity.entities import Principal
from campusdesk.core.identity.ports import PrincipalRepository
from campusdesk.core.shared.exceptions import (
    ConflictError,
    EntityNotFoundError,
    ForbiddenError,
    ValidationError,
)
from campusdesk.core.shared.interfaces import UnitOfWork

from .dtos import (
    CreateTicketInputDTO,
    PaginatedResultDTO,
    TicketChangeResultDTO,
    TicketListItemDTO,
    TicketOutputDTO,
    TicketQueryDTO,
)
from .entities import TicketEntity, TicketPriority, TicketStatus, TicketType
from .events import AssignedEvent, StatusChangedEvent, TicketCreatedEvent
from .numbering import TicketNumberGenerator
from .ports import TicketRepository


logger = logging.getLogger(__name__)


def load_ticket(ticket_repo: TicketRepository, ticket_id: str) -> TicketEntity:
    """
    Busca ticket por ID.

    Raises:
        EntityNotFoundError: Se ticket não existe
    """
    ticket = ticket_repo.get_by_id(ticket_id)
    if ticket is None:
        raise EntityNotFoundError(
            f"Ticket {ticket_id} não encontrado",
            entity_type="Ticket",
            entity_id=ticket_id,
        )
    return ticket


def load_visible_ticket(
    ticket_repo: TicketRepository,
    actor: Principal,
    ticket_id: str,
    conceal_forbidden: bool = False,
) -> TicketEntity:
    """
    Busca ticket e verifica se o principal pode vê-lo.

    Ticket inexistente gera EntityNotFoundError; ticket existente mas
    invisível gera ForbiddenError (ou EntityNotFoundError quando
    `conceal_forbidden` está ativo).
    """
    ticket = load_ticket(ticket_repo, ticket_id)
    if not can_view(actor, ticket):
        if conceal_forbidden:
            raise EntityNotFoundError(
                f"Ticket {ticket_id} não encontrado",
                entity_type="Ticket",
                entity_id=ticket_id,
            )
        raise ForbiddenError(
            f"Sem acesso ao ticket {ticket.number}",
            action=Action.VIEW_OWN_TICKET.value,
            principal_id=actor.id,
        )
    return ticket


class CreateTicketService:
    """
    Use Case: Abrir um novo ticket.

    Fluxo:
    1. Autorizar CREATE_TICKET (sempre em nome do próprio principal)
    2. Validar e criar entidade
    3. Gerar número e inserir (repete se o número colidir)
    4. Disparar evento TicketCreated

    Example:
        service = CreateTicketService(ticket_repo, uow)
        output = service.execute(alice, CreateTicketInputDTO(
            ticket_type="IT Support",
            subject="Printer jam",
            description="Printer in room 12 keeps jamming",
        ))
        print(output.number)  # "ECPS-004211"
    """

    MAX_NUMBER_ATTEMPTS = 10

    def __init__(
        self,
        ticket_repo: TicketRepository,
        uow: UnitOfWork,
        number_generator: Optional[TicketNumberGenerator] = None,
    ):
        self.ticket_repo = ticket_repo
        self.uow = uow
        self.number_generator = number_generator or TicketNumberGenerator()

    def execute(self, actor: Principal, input_dto: CreateTicketInputDTO) -> TicketOutputDTO:
        """
        Raises:
            ForbiddenError: Se o papel não pode abrir tickets
            ValidationError: Se dados inválidos
            ConflictError: Se não foi possível gerar número único
        """
        authorize(actor, Action.CREATE_TICKET)
        ticket_type = TicketType.from_string(input_dto.ticket_type)
        priority = TicketPriority.from_string(input_dto.priority or "Medium")

        with self.uow:
            ticket = self._insert_with_unique_number(
                lambda number: TicketEntity.create(
                    number=number,
                    ticket_type=ticket_type,
                    subject=input_dto.subject,
                    description=input_dto.description,
                    creator=actor,
                    category=input_dto.category,
                    priority=priority,
                    attachments=list(input_dto.attachments),
                )
            )
            self.uow.publish_event(
                TicketCreatedEvent(
                    aggregate_id=ticket.id,
                    actor_id=actor.id,
                    number=ticket.number,
                    ticket_type=ticket.type.value,
                    subject=ticket.subject,
                    created_by=ticket.created_by,
                    created_by_name=ticket.created_by_name,
                )
            )

        logger.info(f"Ticket criado: {ticket.number} por {actor.id}")
        return TicketOutputDTO.from_entity(ticket)

    def _insert_with_unique_number(self, build) -> TicketEntity:
        for attempt in range(1, self.MAX_NUMBER_ATTEMPTS + 1):
            ticket = build(self.number_generator.next())
            try:
                self.ticket_repo.add(ticket)
                return ticket
            except ConflictError:
                logger.debug(f"Número {ticket.number} em uso (tentativa {attempt})")
        raise ConflictError("Não foi possível gerar número de ticket único")


class GetTicketService:
    """Use Case: Obter ticket visível ao principal."""

    def __init__(self, ticket_repo: TicketRepository, conceal_forbidden: bool = False):
        self.ticket_repo = ticket_repo
        self.conceal_forbidden = conceal_forbidden

    def execute(self, actor: Principal, ticket_id: str) -> TicketOutputDTO:
        ticket = load_visible_ticket(
            self.ticket_repo, actor, ticket_id, self.conceal_forbidden
        )
        return TicketOutputDTO.from_entity(ticket)


class ListTicketsService:
    """
    Use Case: Listar tickets com filtros.

    A visibilidade do principal é aplicada antes dos filtros do
    usuário: um staff que filtra por `created_by` de outra pessoa
    recebe lista vazia, nunca os tickets alheios.

    Não usa UoW pois é operação de leitura.
    """

    def __init__(self, ticket_repo: TicketRepository):
        self.ticket_repo = ticket_repo

    def execute(self, actor: Principal, query: Optional[TicketQueryDTO] = None) -> PaginatedResultDTO:
        query = query or TicketQueryDTO()

        page = self.ticket_repo.search(query, visibility_for(actor))
        return PaginatedResultDTO(
            items=[TicketListItemDTO.from_entity(t) for t in page.items],
            total=page.total,
            page=query.page,
            page_size=query.page_size,
        )


class UpdateStatusService:
    """
    Use Case: Alterar status de um ticket.

    Todos os status são alcançáveis por agent/admin. Com `strict`,
    vale o grafo de STRICT_TRANSITIONS. Mesmo status é no-op (sem
    evento e sem gravação).
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        uow: UnitOfWork,
        strict: bool = False,
        conceal_forbidden: bool = False,
    ):
        self.ticket_repo = ticket_repo
        self.uow = uow
        self.strict = strict
        self.conceal_forbidden = conceal_forbidden

    def execute(
        self,
        actor: Principal,
        ticket_id: str,
        new_status: str,
        bypass_policy: bool = False,
    ) -> TicketChangeResultDTO:
        """
        Args:
            actor: Quem está alterando
            ticket_id: ID do ticket
            new_status: Novo status ("In Progress", "IN_PROGRESS"...)
            bypass_policy: Uso interno do engine (reabrir ao responder)

        Raises:
            EntityNotFoundError: Se ticket não existe
            ForbiddenError: Se o principal não pode alterar status
            ValidationError: Se status inválido
            BusinessRuleViolationError: Se transição inválida no modo estrito
        """
        status = TicketStatus.from_string(new_status)

        with self.uow:
            ticket = load_visible_ticket(
                self.ticket_repo, actor, ticket_id, self.conceal_forbidden
            )
            if not bypass_policy:
                authorize(actor, Action.CHANGE_STATUS, ticket)

            previous = ticket.status
            changed = ticket.change_status(status, strict=self.strict)
            if changed:
                self.ticket_repo.save(ticket)
                self.uow.publish_event(
                    StatusChangedEvent(
                        aggregate_id=ticket.id,
                        actor_id=actor.id,
                        number=ticket.number,
                        previous_status=previous.value,
                        new_status=status.value,
                        created_by=ticket.created_by,
                    )
                )

        if changed:
            logger.info(
                f"Status alterado: {ticket.number} {previous.value} -> {status.value} "
                f"por {actor.id}"
            )
        return TicketChangeResultDTO(
            ticket=TicketOutputDTO.from_entity(ticket),
            changed=changed,
            previous_value=previous.value,
        )


class AssignTicketService:
    """
    Use Case: Atribuir ticket a um agente.

    Fluxo:
    1. Buscar ticket e autorizar ASSIGN_TICKET
    2. Validar que o agente existe e atende o tipo do ticket
    3. Atribuir com snapshot do nome de exibição
    4. Disparar evento Assigned

    Mesmo responsável é no-op.
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        principal_repo: PrincipalRepository,
        uow: UnitOfWork,
        conceal_forbidden: bool = False,
    ):
        self.ticket_repo = ticket_repo
        self.principal_repo = principal_repo
        self.uow = uow
        self.conceal_forbidden = conceal_forbidden

    def execute(self, actor: Principal, ticket_id: str, agent_id: str) -> TicketChangeResultDTO:
        """
        Raises:
            EntityNotFoundError: Se ticket ou agente não existe
            ForbiddenError: Se o principal não pode atribuir
            ValidationError: Se o agente não atende o tipo do ticket
        """
        if not agent_id:
            raise ValidationError("ID do agente é obrigatório", field="assigned_to")

        with self.uow:
            ticket = load_visible_ticket(
                self.ticket_repo, actor, ticket_id, self.conceal_forbidden
            )
            authorize(actor, Action.ASSIGN_TICKET, ticket)

            agent = self.principal_repo.get_by_id(agent_id)
            if agent is None:
                raise EntityNotFoundError(
                    f"Agente {agent_id} não encontrado",
                    entity_type="Principal",
                    entity_id=agent_id,
                )
            if not can_handle_type(agent, ticket.type):
                raise ValidationError(
                    f"{agent.display_name} ({agent.role.value}) não atende "
                    f"tickets do tipo {ticket.type.value}",
                    field="assigned_to",
                )

            previous = ticket.assigned_to
            changed = ticket.assign_to(agent.id, agent.display_name)
            if changed:
                self.ticket_repo.save(ticket)
                self.uow.publish_event(
                    AssignedEvent(
                        aggregate_id=ticket.id,
                        actor_id=actor.id,
                        number=ticket.number,
                        assigned_to=agent.id,
                        assigned_to_name=agent.display_name,
                        previous_assignee=previous,
                    )
                )

        if changed:
            logger.info(f"Ticket atribuído: {ticket.number} -> {agent.id} por {actor.id}")
        return TicketChangeResultDTO(
            ticket=TicketOutputDTO.from_entity(ticket),
            changed=changed,
            previous_value=previous,
        )

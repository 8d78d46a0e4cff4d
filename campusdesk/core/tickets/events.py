"""
Domain Events do Domínio de Tickets.

Eventos:
- TicketCreatedEvent: Novo ticket registrado
- AssignedEvent: Ticket atribuído a um agente
- StatusChangedEvent: Status do ticket alterado

Uso:
    Eventos são criados nos use cases e publicados através do
    UnitOfWork após commit bem-sucedido.

    with uow:
        repo.add(ticket)
        uow.publish_event(TicketCreatedEvent(...))
"""

from dataclasses import dataclass
from typing import Optional

from campusdesk.core.shared.events import DomainEvent, EventRegistry


@EventRegistry.register
@dataclass
class TicketCreatedEvent(DomainEvent):
    """
    Evento: Ticket foi criado.

    Handlers típicos:
    - Notificar agentes que atendem o tipo do ticket
    - Atualizar assinantes em tempo real

    Attributes:
        number: Número legível do ticket
        ticket_type: Tipo ("IT Support" / "Facility")
        subject: Assunto
        created_by: ID do criador
        created_by_name: Nome do criador no momento da criação
    """

    number: str = ""
    ticket_type: str = ""
    subject: str = ""
    created_by: str = ""
    created_by_name: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Ticket"


@EventRegistry.register
@dataclass
class AssignedEvent(DomainEvent):
    """
    Evento: Ticket atribuído a um agente.

    Attributes:
        number: Número do ticket
        assigned_to: ID do novo responsável
        assigned_to_name: Snapshot do nome do responsável
        previous_assignee: Responsável anterior (se houver)
    """

    number: str = ""
    assigned_to: str = ""
    assigned_to_name: str = ""
    previous_assignee: Optional[str] = None

    @property
    def aggregate_type(self) -> str:
        return "Ticket"


@EventRegistry.register
@dataclass
class StatusChangedEvent(DomainEvent):
    """
    Evento: Status do ticket alterado.

    Attributes:
        number: Número do ticket
        previous_status: Status anterior
        new_status: Novo status
        created_by: Criador do ticket (destinatário da notificação)
    """

    number: str = ""
    previous_status: str = ""
    new_status: str = ""
    created_by: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

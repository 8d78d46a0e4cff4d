"""
Domain Events do Domínio de Mensagens.
"""

from dataclasses import dataclass

from campusdesk.core.shared.events import DomainEvent, EventRegistry


@EventRegistry.register
@dataclass
class MessagePostedEvent(DomainEvent):
    """
    Evento: Mensagem adicionada a um ticket.

    O agregado é o ticket (aggregate_id = ticket_id), para que
    assinantes de um ticket recebam suas mensagens.

    Attributes:
        ticket_id: Ticket da mensagem (igual ao aggregate_id)
        message_id: ID da mensagem
        ticket_number: Número do ticket
        sender_id: Remetente
        is_internal: Nota interna (nunca entregue a staff)
        is_system: Mensagem de auditoria
    """

    ticket_id: str = ""
    message_id: str = ""
    ticket_number: str = ""
    sender_id: str = ""
    is_internal: bool = False
    is_system: bool = False

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

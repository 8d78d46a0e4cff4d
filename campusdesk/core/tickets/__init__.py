"""
Domínio de Tickets - Chamados de TI e manutenção.

Este módulo contém a lógica de negócio relacionada a tickets:
- Entidades (TicketEntity, TicketType, TicketStatus, TicketPriority)
- Domain Events (TicketCreated, Assigned, StatusChanged)
- DTOs (Input/Output/Query)
- Ports (TicketRepository)
- Numeração legível ("ECPS-004211")

Os use cases ficam em `campusdesk.core.tickets.use_cases`.
"""

from .entities import TicketEntity, TicketPriority, TicketStatus, TicketType
from .events import AssignedEvent, StatusChangedEvent, TicketCreatedEvent
from .numbering import TicketNumberGenerator

__all__ = [
    # Entities
    "TicketEntity",
    "TicketPriority",
    "TicketStatus",
    "TicketType",
    # Events
    "AssignedEvent",
    "StatusChangedEvent",
    "TicketCreatedEvent",
    "TicketNumberGenerator",
]

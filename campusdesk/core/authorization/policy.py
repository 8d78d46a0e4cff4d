"""
Authorization Policy - decisões puras de permissão.

Responde `(principal, ação, ticket?) -> permitir / negar` a partir de
uma única tabela de capacidades por papel. Nunca altera estado.

Regras de escopo por tipo:
- it-agent atende "IT Support"; facility-agent atende "Facility"
- agent e admin atendem todos os tipos
- Um agente especializado só age sobre ticket do outro tipo se o
  ticket estiver atribuído a ele ou tiver sido criado por ele
- staff enxerga apenas os próprios tickets
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional

from campusdesk.core.identity.entities import Principal, Role
from campusdesk.core.shared.exceptions import ForbiddenError
from campusdesk.core.tickets.entities import TicketEntity, TicketType


class Action(Enum):
    """Ações verificadas pela política."""

    CREATE_TICKET = "create_ticket"
    VIEW_OWN_TICKET = "view_own_ticket"
    VIEW_ANY_TICKET = "view_any_ticket"
    CHANGE_STATUS = "change_status"
    ASSIGN_TICKET = "assign_ticket"
    POST_REPLY = "post_reply"
    POST_INTERNAL_NOTE = "post_internal_note"
    VIEW_INTERNAL_NOTES = "view_internal_notes"
    CHANGE_ROLE = "change_role"
    VIEW_REPORTS = "view_reports"
    MANAGE_USERS = "manage_users"


_STAFF = frozenset({
    Action.CREATE_TICKET,
    Action.VIEW_OWN_TICKET,
    Action.POST_REPLY,
})

_AGENT = _STAFF | frozenset({
    Action.VIEW_ANY_TICKET,
    Action.CHANGE_STATUS,
    Action.ASSIGN_TICKET,
    Action.POST_INTERNAL_NOTE,
    Action.VIEW_INTERNAL_NOTES,
    Action.VIEW_REPORTS,
})

CAPABILITIES: Dict[Role, FrozenSet[Action]] = {
    Role.STAFF: _STAFF,
    Role.AGENT: _AGENT,
    Role.IT_AGENT: _AGENT,
    Role.FACILITY_AGENT: _AGENT,
    Role.ADMIN: _AGENT | frozenset({Action.CHANGE_ROLE, Action.MANAGE_USERS}),
}

HANDLED_TYPES: Dict[Role, FrozenSet[TicketType]] = {
    Role.STAFF: frozenset(),
    Role.AGENT: frozenset(TicketType),
    Role.IT_AGENT: frozenset({TicketType.IT_SUPPORT}),
    Role.FACILITY_AGENT: frozenset({TicketType.FACILITY}),
    Role.ADMIN: frozenset(TicketType),
}


@dataclass(frozen=True)
class TicketVisibility:
    """
    Critério de visibilidade de tickets para um principal.

    Aplicado pelos repositórios antes de qualquer filtro do usuário.
    Um ticket é visível se:
        unrestricted
        OR created_by == principal_id
        OR (include_assigned AND assigned_to == principal_id)
        OR type in types

    Attributes:
        principal_id: Quem está consultando
        unrestricted: Enxerga todos os tickets (agent/admin)
        types: Tipos atendidos pelo papel
        include_assigned: Tickets atribuídos ao principal também são visíveis
    """

    principal_id: str
    unrestricted: bool = False
    types: FrozenSet[TicketType] = frozenset()
    include_assigned: bool = False

    def admits(self, ticket: TicketEntity) -> bool:
        if self.unrestricted or ticket.created_by == self.principal_id:
            return True
        if self.include_assigned and ticket.assigned_to == self.principal_id:
            return True
        return ticket.type in self.types


def visibility_for(principal: Principal) -> TicketVisibility:
    """Critério de listagem aplicado antes dos filtros do usuário."""
    handled = HANDLED_TYPES[principal.role]
    if Action.VIEW_ANY_TICKET not in CAPABILITIES[principal.role]:
        return TicketVisibility(principal_id=principal.id)
    return TicketVisibility(
        principal_id=principal.id,
        unrestricted=handled == frozenset(TicketType),
        types=handled,
        include_assigned=True,
    )


def can_handle_type(principal: Principal, ticket_type: TicketType) -> bool:
    """Se o papel do principal atende tickets deste tipo."""
    return ticket_type in HANDLED_TYPES[principal.role]


def can_view(principal: Principal, ticket: TicketEntity) -> bool:
    return visibility_for(principal).admits(ticket)


def is_allowed(
    principal: Principal,
    action: Action,
    ticket: Optional[TicketEntity] = None,
) -> bool:
    """
    Decide se o principal pode executar a ação.

    Args:
        principal: Quem está agindo
        action: Ação solicitada
        ticket: Ticket alvo (para ações sobre um ticket)

    Returns:
        True se permitido
    """
    if action not in CAPABILITIES[principal.role]:
        return False
    if ticket is None:
        return True
    return can_view(principal, ticket)


def authorize(
    principal: Principal,
    action: Action,
    ticket: Optional[TicketEntity] = None,
) -> None:
    """
    Verifica permissão e lança erro se negada.

    Raises:
        ForbiddenError: Se a política nega a ação

    Example:
        authorize(session.principal, Action.CHANGE_STATUS, ticket)
    """
    if not is_allowed(principal, action, ticket):
        target = f" no ticket {ticket.number}" if ticket is not None else ""
        raise ForbiddenError(
            f"Papel '{principal.role.value}' não pode executar "
            f"'{action.value}'{target}",
            action=action.value,
            principal_id=principal.id,
        )


def can_view_internal_notes(principal: Principal) -> bool:
    return Action.VIEW_INTERNAL_NOTES in CAPABILITIES[principal.role]

"""
Testes da Authorization Policy.

A política é pura: recebe principal, ação e ticket opcional e
responde permitir/negar a partir da tabela de capacidades.
"""

import pytest

from campusdesk.core.authorization.policy import (
    CAPABILITIES,
    Action,
    authorize,
    can_handle_type,
    can_view,
    can_view_internal_notes,
    is_allowed,
    visibility_for,
)
from campusdesk.core.identity.entities import Principal, Role
from campusdesk.core.shared.exceptions import ForbiddenError
from campusdesk.core.tickets.entities import TicketEntity, TicketType


def principal(principal_id: str, role: Role = Role.STAFF) -> Principal:
    p = Principal.register(principal_id, f"{principal_id}@school.edu")
    p.role = role
    return p


def ticket(ticket_type: TicketType = TicketType.IT_SUPPORT, owner: str = "alice",
           assigned_to: str = None) -> TicketEntity:
    entity = TicketEntity.create(
        number="ECPS-000001",
        ticket_type=ticket_type,
        subject="Subject",
        description="Description",
        creator=principal(owner),
    )
    if assigned_to:
        entity.assign_to(assigned_to, assigned_to.title())
    return entity


class TestCapabilityTable:

    def test_every_role_has_capabilities(self):
        assert set(CAPABILITIES) == set(Role)

    def test_staff_capabilities(self):
        """Deve permitir a staff apenas abrir, ver os próprios e responder."""
        staff = principal("alice")

        assert is_allowed(staff, Action.CREATE_TICKET)
        assert is_allowed(staff, Action.POST_REPLY)
        assert not is_allowed(staff, Action.CHANGE_STATUS)
        assert not is_allowed(staff, Action.ASSIGN_TICKET)
        assert not is_allowed(staff, Action.POST_INTERNAL_NOTE)
        assert not can_view_internal_notes(staff)

    @pytest.mark.parametrize("role", [Role.AGENT, Role.IT_AGENT, Role.FACILITY_AGENT])
    def test_agents_cannot_manage_roles(self, role):
        agent = principal("bob", role)

        assert is_allowed(agent, Action.CHANGE_STATUS)
        assert can_view_internal_notes(agent)
        assert not is_allowed(agent, Action.CHANGE_ROLE)

    def test_admin_manages_roles(self):
        assert is_allowed(principal("root", Role.ADMIN), Action.CHANGE_ROLE)

    def test_authorize_raises_forbidden_with_action(self):
        with pytest.raises(ForbiddenError) as exc_info:
            authorize(principal("alice"), Action.CHANGE_ROLE)

        assert exc_info.value.action == "change_role"
        assert exc_info.value.principal_id == "alice"


class TestTicketScope:

    def test_staff_sees_only_own(self):
        assert can_view(principal("alice"), ticket(owner="alice"))
        assert not can_view(principal("carol"), ticket(owner="alice"))

    def test_staff_assigned_flag_does_not_widen(self):
        """Deve ignorar atribuição para staff (não atende tickets)."""
        visibility = visibility_for(principal("carol"))

        assert not visibility.include_assigned
        assert not visibility.unrestricted

    def test_it_agent_scope(self):
        """Deve ver IT Support e, de Facility, só o que lhe foi atribuído."""
        ivan = principal("ivan", Role.IT_AGENT)

        assert can_view(ivan, ticket(TicketType.IT_SUPPORT))
        assert not can_view(ivan, ticket(TicketType.FACILITY))
        assert can_view(ivan, ticket(TicketType.FACILITY, assigned_to="ivan"))
        assert can_view(ivan, ticket(TicketType.FACILITY, owner="ivan"))

    def test_general_agent_unrestricted(self):
        assert visibility_for(principal("bob", Role.AGENT)).unrestricted
        assert visibility_for(principal("root", Role.ADMIN)).unrestricted

    def test_handled_types(self):
        assert can_handle_type(principal("fiona", Role.FACILITY_AGENT), TicketType.FACILITY)
        assert not can_handle_type(principal("fiona", Role.FACILITY_AGENT), TicketType.IT_SUPPORT)
        assert not can_handle_type(principal("alice"), TicketType.IT_SUPPORT)

    def test_action_on_invisible_ticket_denied(self):
        """Deve negar ação permitida pelo papel em ticket fora do escopo."""
        fiona = principal("fiona", Role.FACILITY_AGENT)

        assert not is_allowed(fiona, Action.CHANGE_STATUS, ticket(TicketType.IT_SUPPORT))
        assert is_allowed(fiona, Action.CHANGE_STATUS, ticket(TicketType.FACILITY))

"""
Testes de Relatórios (painel e desempenho de agentes).
"""

from datetime import timedelta

import pytest

from campusdesk.core.reports.use_cases import (
    AgentPerformanceService,
    DashboardStatsService,
    period_start,
)
from campusdesk.core.shared.events import utcnow
from campusdesk.core.shared.exceptions import ForbiddenError, ValidationError


@pytest.fixture
def populated(engine, alice, carol, bob, it_agent, ticket_input):
    """Três tickets: um resolvido por bob, um com ivan, um sem responsável."""
    first = engine.file_ticket(alice, ticket_input(subject="Projector"))
    second = engine.file_ticket(alice, ticket_input(subject="Wi-Fi"))
    engine.file_ticket(carol, ticket_input("Facility", subject="Leaking tap"))

    engine.assign_to_me(bob, first.id)
    engine.transition(bob, first.id, status="Resolved")
    engine.transition(bob, second.id, assign_to="ivan")
    return first, second


class TestDashboardStatsService:

    def test_agent_sees_all_tickets(self, container, bob, populated):
        stats = container.dashboard_stats_service().execute(bob, period="all")

        assert stats.total == 3
        assert stats.by_status["Resolved"] == 1
        assert stats.by_status["Open"] == 2
        assert stats.by_status["Closed"] == 0
        assert stats.by_type == {"IT Support": 2, "Facility": 1}
        assert stats.resolution_rate == 33

    def test_staff_scoped_to_own_tickets(self, container, carol, populated):
        """Deve contar apenas os tickets visíveis à staff."""
        stats = container.dashboard_stats_service().execute(carol, period="all")

        assert stats.total == 1
        assert stats.by_type["Facility"] == 1

    def test_period_window(self, container, bob, populated):
        service = DashboardStatsService(
            container.ticket_repository(), clock=lambda: utcnow() + timedelta(days=10)
        )

        assert service.execute(bob, period="week").total == 0
        assert service.execute(bob, period="month").total == 3

    def test_invalid_period(self, container, bob):
        with pytest.raises(ValidationError) as exc_info:
            container.dashboard_stats_service().execute(bob, period="decade")

        assert exc_info.value.field == "period"

    def test_period_start_all_is_unbounded(self):
        assert period_start("all", utcnow()) is None

    def test_empty_dashboard(self, container, bob):
        stats = container.dashboard_stats_service().execute(bob)

        assert stats.total == 0
        assert stats.resolution_rate == 0
        assert stats.to_dict()["period"] == "month"


class TestAgentPerformanceService:

    def test_rows_per_assignee(self, container, bob, populated):
        rows = container.agent_performance_service().execute(bob, period="all")

        assert [(r.agent_id, r.tickets_assigned, r.tickets_resolved) for r in rows] == [
            ("bob", 1, 1),
            ("ivan", 1, 0),
        ]
        assert rows[0].resolution_rate == 100
        assert rows[0].avg_resolution_hours is not None
        assert rows[1].avg_resolution_hours is None

    def test_staff_forbidden(self, container, alice):
        with pytest.raises(ForbiddenError):
            container.agent_performance_service().execute(alice)

    def test_reports_do_not_touch_tickets(self, container, bob, populated):
        first, _ = populated
        before = container.ticket_repository().get_by_id(first.id)

        AgentPerformanceService(container.ticket_repository()).execute(bob, period="all")

        after = container.ticket_repository().get_by_id(first.id)
        assert (after.updated_at, after.version) == (before.updated_at, before.version)

"""
Use Cases de Relatórios (painel e desempenho de agentes).

Leituras puras: nunca alteram tickets. As contagens respeitam a
visibilidade do principal (staff vê estatísticas dos próprios tickets).
"""

from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from campusdesk.core.authorization.policy import Action, authorize, visibility_for
from campusdesk.core.identity.session import Session
from campusdesk.core.shared.events import utcnow
from campusdesk.core.shared.exceptions import ValidationError
from campusdesk.core.tickets.dtos import TicketQueryDTO
from campusdesk.core.tickets.entities import TicketEntity, TicketStatus, TicketType
from campusdesk.core.tickets.ports import TicketRepository

from .dtos import AgentPerformanceDTO, TicketStatsDTO


PERIODS: Dict[str, Optional[timedelta]] = {
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "all": None,
}


def period_start(period: str, now: datetime) -> Optional[datetime]:
    """
    Raises:
        ValidationError: Se período desconhecido
    """
    key = (period or "all").strip().lower()
    if key not in PERIODS:
        raise ValidationError(
            f"Período inválido: {period} (use week, month ou all)",
            field="period",
        )
    window = PERIODS[key]
    return now - window if window else None


class _ReportService:
    def __init__(
        self,
        ticket_repo: TicketRepository,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ticket_repo = ticket_repo
        self.clock = clock

    def _tickets(self, session: Session, since: Optional[datetime]) -> List[TicketEntity]:
        query = TicketQueryDTO(created_since=since, page_size=None)
        return self.ticket_repo.search(query, visibility_for(session.principal)).items


class DashboardStatsService(_ReportService):
    """
    Use Case: Estatísticas do painel.

    Example:
        stats = DashboardStatsService(ticket_repo).execute(session, period="week")
        stats.by_status["Open"]
    """

    def execute(self, session: Session, period: str = "month") -> TicketStatsDTO:
        session.ensure_active()
        since = period_start(period, self.clock())
        tickets = self._tickets(session, since)

        by_status = {status.value: 0 for status in TicketStatus}
        by_type = {ticket_type.value: 0 for ticket_type in TicketType}
        for ticket in tickets:
            by_status[ticket.status.value] += 1
            by_type[ticket.type.value] += 1

        return TicketStatsDTO(
            period=(period or "all").lower(),
            since=since,
            total=len(tickets),
            by_status=by_status,
            by_type=by_type,
        )


class AgentPerformanceService(_ReportService):
    """
    Use Case: Desempenho por responsável (agent/admin).

    Tempo de resolução aproximado por `updated_at - created_at` dos
    tickets em Resolved/Closed.
    """

    def execute(self, session: Session, period: str = "month") -> List[AgentPerformanceDTO]:
        principal = session.ensure_active()
        authorize(principal, Action.VIEW_REPORTS)
        since = period_start(period, self.clock())

        rows: Dict[str, AgentPerformanceDTO] = {}
        hours: Dict[str, List[float]] = {}
        for ticket in self._tickets(session, since):
            if not ticket.is_assigned:
                continue
            row = rows.setdefault(
                ticket.assigned_to,
                AgentPerformanceDTO(
                    agent_id=ticket.assigned_to,
                    agent_name=ticket.assigned_to_name,
                ),
            )
            row.tickets_assigned += 1
            if ticket.status.is_terminal:
                row.tickets_resolved += 1
                elapsed = ticket.updated_at - ticket.created_at
                hours.setdefault(ticket.assigned_to, []).append(elapsed.total_seconds() / 3600)

        for agent_id, values in hours.items():
            rows[agent_id].avg_resolution_hours = round(sum(values) / len(values), 2)

        return sorted(
            rows.values(),
            key=lambda r: (-r.tickets_resolved, -r.tickets_assigned, r.agent_name),
        )

"""
DTOs de Relatórios.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional


@dataclass
class TicketStatsDTO:
    """
    Estatísticas do painel.

    Attributes:
        period: "week", "month" ou "all"
        since: Início do período (None para "all")
        total: Total de tickets no período
        by_status: Contagem por status (todos os status presentes, mesmo zerados)
        by_type: Contagem por tipo
        resolution_rate: % de Resolved + Closed, arredondado
    """

    period: str
    since: Optional[datetime]
    total: int
    by_status: Dict[str, int] = field(default_factory=dict)
    by_type: Dict[str, int] = field(default_factory=dict)

    @property
    def resolution_rate(self) -> int:
        if not self.total:
            return 0
        done = self.by_status.get("Resolved", 0) + self.by_status.get("Closed", 0)
        return round(done * 100 / self.total)

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "since": self.since.isoformat() if self.since else None,
            "total": self.total,
            "by_status": dict(self.by_status),
            "by_type": dict(self.by_type),
            "resolution_rate": self.resolution_rate,
        }


@dataclass
class AgentPerformanceDTO:
    agent_id: str
    agent_name: str
    tickets_assigned: int = 0
    tickets_resolved: int = 0
    avg_resolution_hours: Optional[float] = None

    @property
    def resolution_rate(self) -> int:
        if not self.tickets_assigned:
            return 0
        return round(self.tickets_resolved * 100 / self.tickets_assigned)

    def to_dict(self) -> dict:
        return {
            "agent_id": self.agent_id,
            "agent_name": self.agent_name,
            "tickets_assigned": self.tickets_assigned,
            "tickets_resolved": self.tickets_resolved,
            "resolution_rate": self.resolution_rate,
            "avg_resolution_hours": self.avg_resolution_hours,
        }

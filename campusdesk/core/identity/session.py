"""
Sessão explícita do principal autenticado.

Substitui o contexto global de autenticação: cada chamada ao
Workflow Engine recebe a sessão de quem está agindo. A sessão é
aberta no primeiro request autenticado e encerrada no logout.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
import uuid

from campusdesk.core.shared.events import utcnow
from campusdesk.core.shared.exceptions import ForbiddenError

from .entities import Principal, Role


@dataclass
class Session:
    """
    Contexto de execução de um principal.

    Attributes:
        principal: Snapshot do principal no início da sessão
        session_id: Identificador da sessão
        started_at: Abertura
        ended_at: Encerramento (None enquanto ativa)
    """

    principal: Principal
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: datetime = field(default_factory=utcnow)
    ended_at: Optional[datetime] = None

    @classmethod
    def open(cls, principal: Principal) -> "Session":
        return cls(principal=principal)

    @property
    def is_active(self) -> bool:
        return self.ended_at is None

    @property
    def actor_id(self) -> str:
        return self.principal.id

    @property
    def role(self) -> Role:
        return self.principal.role

    def close(self) -> None:
        if self.ended_at is None:
            self.ended_at = utcnow()

    def ensure_active(self) -> Principal:
        """
        Retorna o principal da sessão ativa.

        Raises:
            ForbiddenError: Se a sessão já foi encerrada
        """
        if not self.is_active:
            raise ForbiddenError(
                "Sessão encerrada",
                principal_id=self.principal.id,
            )
        return self.principal

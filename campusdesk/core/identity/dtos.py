"""
DTOs do Domínio de Identidade.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from .entities import Principal
from .session import Session


@dataclass(frozen=True)
class UpdateProfileInputDTO:
    """
    DTO de entrada para atualização de perfil.

    Campos None não são alterados.
    """

    display_name: Optional[str] = None
    department: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "display_name": self.display_name,
            "department": self.department,
        }


@dataclass
class PrincipalOutputDTO:
    """DTO de saída de um principal."""

    id: str
    email: str
    display_name: str
    role: str
    department: Optional[str]
    created_at: datetime

    @classmethod
    def from_entity(cls, entity: Principal) -> "PrincipalOutputDTO":
        return cls(
            id=entity.id,
            email=entity.email,
            display_name=entity.display_name,
            role=entity.role.value,
            department=entity.department,
            created_at=entity.created_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "display_name": self.display_name,
            "role": self.role,
            "department": self.department,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class SessionOutputDTO:
    session_id: str
    principal: PrincipalOutputDTO
    started_at: datetime

    @classmethod
    def from_session(cls, session: Session) -> "SessionOutputDTO":
        return cls(
            session_id=session.session_id,
            principal=PrincipalOutputDTO.from_entity(session.principal),
            started_at=session.started_at,
        )

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "principal": self.principal.to_dict(),
            "started_at": self.started_at.isoformat(),
        }


@dataclass
class PrincipalDirectoryDTO:
    """
    Listagem administrativa de usuários.

    Attributes:
        items: Principals ordenados por nome
        role_counts: Quantidade de usuários por papel
    """

    items: List[PrincipalOutputDTO]
    role_counts: Dict[str, int]

    @property
    def total(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "role_counts": dict(self.role_counts),
            "total": self.total,
        }

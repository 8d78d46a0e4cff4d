"""
Domínio de Identidade - Principals, papéis e sessões.

Os use cases ficam em `campusdesk.core.identity.use_cases` (dependem
da política de autorização, que depende destas entidades).
"""

from .entities import Principal, Role
from .session import Session
from .events import PrincipalRegisteredEvent, RoleChangedEvent
from .ports import PrincipalRepository, InMemoryPrincipalRepository

__all__ = [
    "Principal",
    "Role",
    "Session",
    "PrincipalRegisteredEvent",
    "RoleChangedEvent",
    "PrincipalRepository",
    "InMemoryPrincipalRepository",
]
